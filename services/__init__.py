from .network import WifiNetworkService
from .session import SessionLockService
from .shell import ShellService
