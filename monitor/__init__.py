"""监控模块"""

from .stats import ServerMonitors

__all__ = [
    "ServerMonitors",
]
