"""
🛠 Server Bootstrap
解析部署环境 → 初始化服务端上下文 → 同步注册表 → 开放流量；以及对应的关闭流程

context_initialized / context_destroyed 是提供给宿主的两个钩子
"""

import asyncio
from typing import Iterable, MutableMapping, Optional

from loguru import logger

from core.config_loader import ConfigStore
from core.context import ApplicationInfoManager, DeploymentIdentity, ServerConfig
from core.converters import JSON_CODEC, XML_CODEC, ConverterRegistry, register_backward_compat_converters
from core.errors import BootstrapError, StartupAbortedError
from core.state_machine import NodeState, StateMachine
from lifecycle.cloud_binder import CloudBinderHandle, OptionalCloudBinder
from lifecycle.environment import EnvironmentResolver
from lifecycle.shutdown import Shutdown
from lifecycle.sync_gate import SyncGate
from monitor.stats import ServerMonitors
from registry.base import ServerContext

SERVER_CONTEXT_ATTRIBUTE = "registry.server_context"


class ServerBootstrap:
    """
    注册中心节点的启动/关闭流程

    持有服务端上下文句柄与（可选的）云平台绑定器句柄，
    负责在关闭时对每个已启动的资源恰好调用一次 shutdown
    """

    def __init__(
        self,
        store: ConfigStore,
        app_info_manager: ApplicationInfoManager,
        server_context: ServerContext,
        server_config: Optional[ServerConfig] = None,
        state_machine: Optional[StateMachine] = None,
        cloud_binder: Optional[OptionalCloudBinder] = None,
        monitors: Optional[ServerMonitors] = None,
        codecs: Iterable[ConverterRegistry] = (JSON_CODEC, XML_CODEC),
    ):
        self.store = store
        self.app_info_manager = app_info_manager
        self.server_config = server_config or ServerConfig()
        self.state_machine = state_machine or StateMachine()
        self.environment_resolver = EnvironmentResolver(store)
        self.sync_gate = SyncGate(
            server_context.registry,
            app_info_manager,
            self.state_machine,
            should_abort=lambda: self._destroyed,
        )
        self.cloud_binder = cloud_binder or OptionalCloudBinder(app_info_manager)
        self.monitors = monitors or ServerMonitors()
        self.codecs = tuple(codecs)

        self.identity: Optional[DeploymentIdentity] = None
        self.cloud_binder_handle: Optional[CloudBinderHandle] = None
        self.server_context: Optional[ServerContext] = server_context
        self._destroyed = False

    # ========== 启动 ==========

    async def context_initialized(self, host_context: MutableMapping):
        """
        启动入口

        Raises:
            BootstrapError: 任一阶段失败（分类错误原样抛出，其他错误包装后抛出）
        """
        try:
            await self.init_environment()
            await self.init_server_context()
            self._checkpoint("publish server context")
            host_context[SERVER_CONTEXT_ATTRIBUTE] = self.server_context
        except (asyncio.CancelledError, BootstrapError):
            raise
        except Exception as e:
            raise BootstrapError(f"Cannot bootstrap registry server: {e}") from e

    async def init_environment(self) -> DeploymentIdentity:
        await self._transition(NodeState.ENVIRONMENT_RESOLVING, "resolve deployment identity")
        self.identity = self.environment_resolver.resolve()
        logger.info(
            f"部署身份: datacenter={self.identity.datacenter}, "
            f"environment={self.identity.environment}"
        )
        return self.identity

    async def init_server_context(self):
        await self._transition(NodeState.CONTEXT_INITIALIZING, "initialize server context")

        # 兼容旧版本客户端
        register_backward_compat_converters(self.codecs)

        handle = await self.cloud_binder.maybe_start(self.identity)
        if self._destroyed:
            # 关闭已经执行过，不能把句柄留下
            if handle is not None:
                await self.cloud_binder.shutdown(handle)
            raise StartupAbortedError("Node was destroyed while starting the cloud binder")
        self.cloud_binder_handle = handle

        logger.info("Initialized server context")

        # 从相邻节点复制注册表，然后开放流量
        await self._transition(NodeState.SYNCING_UP, "copy registry from peers")
        sync_result = await self.sync_gate.sync_up()
        self._checkpoint("sync_up")
        await self.sync_gate.open_for_traffic(self.identity, sync_result)
        self._checkpoint("open_for_traffic")

        self.monitors.register_all_stats()
        self.monitors.record("instances_recovered", sync_result.instances_recovered)
        self.monitors.increment("startups")

    async def _transition(self, state: NodeState, reason: str):
        self._checkpoint(state.value)
        await self.state_machine.transition_to(state, reason=reason)
        # 状态变更的订阅者可能已经执行了 stop()
        self._checkpoint(state.value)

    def _checkpoint(self, stage: str):
        if self._destroyed:
            raise StartupAbortedError(f"Node was destroyed before stage '{stage}'")

    # ========== 关闭 ==========

    async def context_destroyed(self, host_context: MutableMapping):
        """关闭入口，不会抛出异常"""
        try:
            logger.info("Shutting down registry server..")
            host_context.pop(SERVER_CONTEXT_ATTRIBUTE, None)

            await self.destroy_server_context()
        except Exception as e:
            logger.error(f"Error shutting down registry server: {e}")
        logger.info("Registry server is now shut down...")

    async def destroy_server_context(self):
        """按顺序释放监控、云平台绑定器、服务端上下文、部署环境，可重复调用"""
        self._destroyed = True
        if self.state_machine.can_transition(NodeState.SHUTTING_DOWN):
            await self.state_machine.transition_to(NodeState.SHUTTING_DOWN, reason="stop")

        shutdown = Shutdown()
        shutdown.add_stage("monitors", self.monitors.shutdown)
        shutdown.add_stage("cloud_binder", self._shutdown_cloud_binder)
        shutdown.add_stage("server_context", self._shutdown_server_context)
        shutdown.add_stage("environment", self.destroy_environment)
        await shutdown.run()

        if self.state_machine.can_transition(NodeState.SHUTDOWN):
            await self.state_machine.transition_to(NodeState.SHUTDOWN, reason="teardown completed")

    async def destroy_environment(self):
        """子类可覆盖，自行清理部署环境"""
        pass

    async def _shutdown_cloud_binder(self):
        handle, self.cloud_binder_handle = self.cloud_binder_handle, None
        if handle is not None:
            await self.cloud_binder.shutdown(handle)

    async def _shutdown_server_context(self):
        context, self.server_context = self.server_context, None
        if context is not None:
            await context.shutdown()

    @property
    def destroyed(self) -> bool:
        return self._destroyed
