import time
from functools import lru_cache, wraps
from typing import Any, Dict, Iterable, List, Union


def ttl_lru_cache(seconds_to_live: int, maxsize: int = 128):
    """
    An lru_cache whose entries expire after roughly `seconds_to_live` seconds.
    The current time bucket is part of the cache key, so a new bucket misses.
    """

    def wrapper(func):
        @lru_cache(maxsize)
        def inner(__ttl, *args, **kwargs):
            return func(*args, **kwargs)

        @wraps(func)
        def cached(*args, **kwargs):
            return inner(time.monotonic() // seconds_to_live, *args, **kwargs)

        cached.cache_clear = inner.cache_clear
        return cached

    return wrapper


def exclude_keys(d: Dict[str, Any], keys_to_exclude: Iterable[str]) -> Dict[str, Any]:
    excluded = set(keys_to_exclude)
    return {k: v for k, v in d.items() if k not in excluded}


def merge_defaults(data: Union[Dict[str, Any], Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively fill the missing keys of `data` from `defaults`."""
    if not isinstance(data, dict):
        return dict(defaults)

    merged = dict(defaults)
    for key, value in data.items():
        default_value = defaults.get(key)
        if isinstance(value, dict) and isinstance(default_value, dict):
            merged[key] = merge_defaults(value, default_value)
        else:
            merged[key] = value
    return merged


def parse_active_ssid(nmcli_output: str) -> Union[str, None]:
    """
    Pick the active SSID out of `nmcli -t -f active,ssid dev wifi` output.

    Lines look like `yes:MyNet` / `no:Other`. Colons inside the SSID are
    escaped by nmcli as `\\:`.
    """
    if not nmcli_output:
        return None
    for line in nmcli_output.splitlines():
        line = line.strip()
        if not line.startswith("yes:"):
            continue
        ssid = line.split(":", 1)[1].replace("\\:", ":").replace("\\\\", "\\")
        ssid = ssid.strip()
        if ssid and ssid != "--":
            return ssid
    return None

