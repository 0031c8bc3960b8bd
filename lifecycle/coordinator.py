"""
🚦 Lifecycle Coordinator
宿主看到的启动/停止接口

start() 立即返回，启动流程在独立的 asyncio Task 中顺序执行；
stop() 先把 running 置为 False，取消仍在进行的启动，再做尽力而为的完整关闭
"""

import asyncio
from typing import Callable, Dict, MutableMapping, Optional

from loguru import logger

from core.errors import StartupAbortedError
from core.events import (
    Event,
    EventBus,
    RegistryAvailableEvent,
    ServerStartedEvent,
    ServerStoppedEvent,
    StartupFailedEvent,
)
from core.state_machine import NodeState, StateMachine
from lifecycle.bootstrap import ServerBootstrap


class LifecycleCoordinator:
    """
    节点生命周期协调器
    """

    phase = 0
    auto_startup = True
    order = 1

    def __init__(
        self,
        bootstrap: ServerBootstrap,
        event_bus: Optional[EventBus] = None,
        host_context: Optional[MutableMapping] = None,
    ):
        self.bootstrap = bootstrap
        self.event_bus = event_bus or EventBus()
        self.host_context: MutableMapping = host_context if host_context is not None else {}

        self._running = False
        self._stopped = False
        self._torn_down = False
        self._startup_task: Optional[asyncio.Task] = None
        self._stop_lock = asyncio.Lock()
        self.last_error: Optional[BaseException] = None

    @property
    def state_machine(self) -> StateMachine:
        return self.bootstrap.state_machine

    @property
    def state(self) -> NodeState:
        return self.state_machine.get_current_state()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def startup_task(self) -> Optional[asyncio.Task]:
        return self._startup_task

    # ========== 启动 ==========

    def start(self) -> asyncio.Task:
        """
        调度启动流程并立即返回

        Returns:
            asyncio.Task: 启动完成后结果为 True，启动失败为 False
        """
        if self._startup_task is not None:
            logger.warning("start() 只能调用一次，忽略重复调用")
            return self._startup_task

        loop = asyncio.get_running_loop()
        if self._stopped:
            logger.warning("节点已停止，拒绝启动")
            self._startup_task = loop.create_task(self._refuse_startup())
        else:
            self._startup_task = loop.create_task(
                self._run_startup(), name="registry-node-startup"
            )
        return self._startup_task

    async def _run_startup(self) -> bool:
        config = self.bootstrap.server_config
        try:
            await self.bootstrap.context_initialized(self.host_context)
            logger.success("Started registry server")

            await self._publish(RegistryAvailableEvent(server_config=config))
            if self._stopped:
                raise StartupAbortedError("Node was stopped before reaching RUNNING")
            await self.state_machine.transition_to(NodeState.RUNNING, reason="startup completed")
            if self._stopped:
                raise StartupAbortedError("Node was stopped while entering RUNNING")
            self._running = True
            await self._publish(ServerStartedEvent(server_config=config))
            return True

        except asyncio.CancelledError:
            logger.warning("Registry server startup cancelled")
            raise
        except StartupAbortedError as e:
            logger.warning(f"Registry server startup aborted: {e}")
            return False
        except Exception as e:
            self.last_error = e
            logger.exception(f"Could not initialize registry server context: {e}")
            if self.state_machine.is_starting():
                await self.state_machine.transition_to(NodeState.FAILED, reason=str(e))
            await self._publish(StartupFailedEvent(error=e))
            return False

    async def _refuse_startup(self) -> bool:
        return False

    async def wait_until_started(self, timeout: Optional[float] = None) -> bool:
        """
        等待启动流程结束（不会因为等待方超时而取消启动）

        Returns:
            bool: 是否进入 RUNNING，超时也返回 False
        """
        if self._startup_task is None:
            return False
        try:
            return await asyncio.wait_for(asyncio.shield(self._startup_task), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"等待启动超时 ({timeout}s)，启动流程继续进行")
            return False
        except asyncio.CancelledError:
            if self._startup_task.cancelled():
                return False
            raise

    # ========== 停止 ==========

    async def stop(self):
        """
        同步完成关闭：返回时所有已启动的资源都已调用过 shutdown

        任何时候调用都安全，重复调用不会再次关闭任何资源
        """
        self._running = False
        self._stopped = True

        async with self._stop_lock:
            task = self._startup_task
            if task is not None and not task.done() and task is not asyncio.current_task():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

            if self._torn_down:
                return
            self._torn_down = True

            await self.bootstrap.context_destroyed(self.host_context)
            await self._publish(ServerStoppedEvent(server_config=self.bootstrap.server_config))

    def stop_with_callback(self, callback: Callable[[], None]):
        callback()

    async def _publish(self, event: Event):
        await self.event_bus.publish(event)

    def to_dict(self) -> Dict:
        return {
            "running": self._running,
            "phase": self.phase,
            "order": self.order,
            "state": self.state_machine.to_dict(),
            "last_error": str(self.last_error) if self.last_error else None,
        }
