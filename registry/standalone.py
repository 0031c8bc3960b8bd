"""
🏠 单机注册表
没有对等节点时使用：同步总是得到 0 个实例
"""

import time
from typing import Dict, Optional

from loguru import logger

from core.context import InstanceInfo, InstanceStatus, ServerConfig
from .base import PeerAwareRegistry, ServerContext


class StandaloneRegistry(PeerAwareRegistry):
    """无对等节点的内存注册表"""

    def __init__(self, server_config: Optional[ServerConfig] = None):
        self.server_config = server_config or ServerConfig()
        self.instances: Dict[str, InstanceInfo] = {}
        self.is_open = False
        self._opened_at: Optional[float] = None
        self._empty_on_start = False

    async def sync_up(self) -> int:
        logger.info("没有配置对等节点，跳过注册表同步")
        return 0

    async def open_for_traffic(self, self_info: InstanceInfo, instance_count: int):
        self._empty_on_start = instance_count == 0
        self._opened_at = time.monotonic()
        self_info.status = InstanceStatus.UP
        self.instances[self_info.instance_id] = self_info
        self.is_open = True
        logger.info(
            f"开放流量: {self_info.app_name}/{self_info.instance_id}, "
            f"同步实例数 {instance_count}"
        )

    def should_allow_access(self) -> bool:
        """
        启动时注册表为空的话，保护窗口内拒绝客户端读取
        """
        if not self.is_open:
            return False
        if not self._empty_on_start:
            return True
        waited_ms = (time.monotonic() - self._opened_at) * 1000
        return waited_ms >= self.server_config.wait_time_in_ms_when_sync_empty

    async def shutdown(self):
        self.is_open = False
        self.instances.clear()
        logger.info("注册表已关闭")


class StandaloneServerContext(ServerContext):
    """持有 StandaloneRegistry 的上下文"""

    def __init__(self, registry: StandaloneRegistry):
        self._registry = registry
        self.is_shutdown = False

    @property
    def registry(self) -> StandaloneRegistry:
        return self._registry

    async def shutdown(self):
        await self._registry.shutdown()
        self.is_shutdown = True
