"""
📊 服务端监控统计
启动完成后注册所有统计项，关闭时释放
"""

from datetime import datetime
from typing import Dict, Optional

from loguru import logger

DEFAULT_STATS = ("instances_recovered", "startups")


class ServerMonitors:
    """
    监控统计注册表
    """

    def __init__(self):
        self._stats: Dict[str, int] = {}
        self.registered_at: Optional[datetime] = None
        self.is_shutdown = False

    def register_all_stats(self):
        """注册所有统计项（已注册的保留原值）"""
        for name in DEFAULT_STATS:
            self._stats.setdefault(name, 0)
        self.registered_at = datetime.now()
        self.is_shutdown = False
        logger.debug(f"已注册监控项: {', '.join(DEFAULT_STATS)}")

    def record(self, name: str, value: int):
        if self.is_shutdown:
            return
        self._stats[name] = value

    def increment(self, name: str, delta: int = 1):
        if self.is_shutdown:
            return
        self._stats[name] = self._stats.get(name, 0) + delta

    def snapshot(self) -> Dict[str, int]:
        return dict(self._stats)

    def shutdown(self):
        """释放所有统计项，重复调用无副作用"""
        if self.is_shutdown:
            return
        self._stats.clear()
        self.is_shutdown = True
