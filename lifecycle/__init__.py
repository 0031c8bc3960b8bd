"""
🔄 Lifecycle Module
注册中心节点生命周期管理 - 编排各个阶段

生命周期流程：
1. environment  - 解析部署数据中心 / 环境
2. bootstrap    - 初始化服务端上下文（转换器、云平台绑定器）
3. sync_gate    - 从对等节点同步注册表，开放流量
4. coordinator  - 后台启动、发布事件、停止
5. shutdown     - 尽力而为的完整关闭
"""

from .environment import EnvironmentResolver
from .sync_gate import SyncGate
from .cloud_binder import CloudBinderHandle, OptionalCloudBinder, is_cloud
from .bootstrap import SERVER_CONTEXT_ATTRIBUTE, ServerBootstrap
from .coordinator import LifecycleCoordinator
from .shutdown import Shutdown

__all__ = [
    "EnvironmentResolver",
    "SyncGate",
    "CloudBinderHandle",
    "OptionalCloudBinder",
    "is_cloud",
    "SERVER_CONTEXT_ATTRIBUTE",
    "ServerBootstrap",
    "LifecycleCoordinator",
    "Shutdown",
]
