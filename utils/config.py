import os
from typing import Any, Dict, Union

import pyjson5 as json
import pytomlpp
from loguru import logger

from .constants import CONFIG_DIR_ENV, DEFAULT_CONFIG, DEFAULT_CONFIG_DIR
from .functions import exclude_keys, merge_defaults, ttl_lru_cache


def resolve_config_dir(config_dir: Union[str, None] = None) -> str:
    if config_dir:
        return os.path.expanduser(config_dir)
    return os.path.expanduser(os.environ.get(CONFIG_DIR_ENV) or DEFAULT_CONFIG_DIR)


class TileConfig:
    "A class to read the configuration file and merge it over the default configuration"

    instance = None

    @staticmethod
    def get_default():
        if TileConfig.instance is None:
            logger.info("[Config] Creating new TileConfig instance.")
            TileConfig.instance = TileConfig()
        return TileConfig.instance

    def __init__(self, config_dir: Union[str, None] = None):
        self.config_dir = resolve_config_dir(config_dir)
        self.json_config = os.path.join(self.config_dir, "config.json")
        self.toml_config = os.path.join(self.config_dir, "config.toml")

        logger.debug(f"[Config] JSON config path target: {self.json_config}")
        logger.debug(f"[Config] TOML config path target: {self.toml_config}")
        self.config: Dict[str, Any] = {}
        self.default_config()

    @ttl_lru_cache(5, 10)
    def read_config_json(self) -> Union[dict, None]:
        logger.debug(f"[Config] Reading json config from {self.json_config}")
        try:
            with open(self.json_config, "r", encoding="utf-8") as file:
                data = json.load(file)  # type: ignore[arg-type]
            return data
        except FileNotFoundError:
            logger.error(f"[Config] JSON config file not found: {self.json_config}")
            return None
        except Exception as e:
            logger.error(
                f"[Config] Error reading/parsing JSON config {self.json_config}: {e}"
            )
            return None

    @ttl_lru_cache(5, 10)
    def read_config_toml(self) -> Union[dict, None]:
        logger.debug(f"[Config] Reading toml config from {self.toml_config}")
        try:
            with open(self.toml_config, "r", encoding="utf-8") as file:
                data = pytomlpp.load(file)  # type: ignore[arg-type]
            return data
        except FileNotFoundError:
            logger.error(f"[Config] TOML config file not found: {self.toml_config}")
            return None
        except Exception as e:
            logger.error(
                f"[Config] Error reading/parsing TOML config {self.toml_config}: {e}"
            )
            return None

    def default_config(self) -> None:
        check_json = os.path.exists(self.json_config)
        check_toml = os.path.exists(self.toml_config)

        parsed_data = None
        if check_json:
            parsed_data = self.read_config_json()
        elif check_toml:
            parsed_data = self.read_config_toml()
        else:
            logger.debug(
                f"[Config] No config file in {self.config_dir}, using defaults."
            )

        if parsed_data is not None and not isinstance(parsed_data, dict):
            logger.error(
                f"[Config] Parsed configuration data is not a dictionary (type: {type(parsed_data)}). Using defaults."
            )
            parsed_data = None

        parsed_data = parsed_data or {}

        merged_config = {}
        for key in exclude_keys(DEFAULT_CONFIG, ["$schema"]):
            user_section = parsed_data.get(key, {})
            if not isinstance(user_section, dict):
                logger.warning(
                    f"[Config] Section '{key}' is not a table (type: {type(user_section)}), ignoring it."
                )
                user_section = {}
            merged_config[key] = merge_defaults(user_section, DEFAULT_CONFIG[key])

        for key, value in parsed_data.items():
            if key not in merged_config and key != "$schema":
                merged_config[key] = value

        self.config = merged_config

    def reload(self) -> Dict[str, Any]:
        self.default_config()
        return self.config

    def section(self, name: str) -> Dict[str, Any]:
        return self.config.get(name, {})


class Preferences:
    """Boolean preference reader over one section of the configuration."""

    def __init__(self, config: TileConfig, section: str = "wifi_tile"):
        self._config = config
        self._section = section

    def get_boolean(self, key: str, default: bool) -> bool:
        values = self._config.reload().get(self._section, {})
        if key not in values:
            return default
        value = values[key]
        if isinstance(value, bool):
            return value
        logger.warning(
            f"[Config] Preference '{self._section}.{key}' is not a boolean ({value!r}), using {default}."
        )
        return default
