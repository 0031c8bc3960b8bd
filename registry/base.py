"""
🔌 注册表协作方基类
生命周期协调器只通过这些接口调用外部组件，不关心其内部实现
"""

from abc import ABC, abstractmethod

from core.context import InstanceInfo


class PeerAwareRegistry(ABC):
    """
    感知对等节点的注册表

    复制协议、剔除定时器、同步重试都由实现方负责
    """

    @abstractmethod
    async def sync_up(self) -> int:
        """
        从对等节点复制注册表

        Returns:
            int: 同步得到的实例数量，可以为 0
        """
        pass

    @abstractmethod
    async def open_for_traffic(self, self_info: InstanceInfo, instance_count: int):
        """
        注册本节点并开始接受客户端流量

        instance_count 为 0 时，实现方应在保护窗口内不向客户端返回注册信息
        """
        pass

    @abstractmethod
    async def shutdown(self):
        """关闭注册表"""
        pass


class ServerContext(ABC):
    """服务端上下文句柄，内部状态归注册表组件所有"""

    @property
    @abstractmethod
    def registry(self) -> PeerAwareRegistry:
        pass

    @abstractmethod
    async def shutdown(self):
        """关闭上下文（通常会连带关闭注册表）"""
        pass


class CloudBinder(ABC):
    """云平台绑定器（弹性 IP、路由等）"""

    @abstractmethod
    async def start(self):
        pass

    @abstractmethod
    async def shutdown(self):
        pass
