"""
🔄 Sync Gate Phase
从相邻节点复制注册表，然后开放客户端流量

ordering: sync_up 必须先于 open_for_traffic 完成，
open_for_traffic 只接受本 gate 的 sync_up 返回的 SyncResult
"""

from typing import Callable, Optional

from loguru import logger

from core.context import ApplicationInfoManager, DeploymentIdentity, SyncResult
from core.errors import StartupAbortedError, SyncOrderError, SyncUpError
from core.state_machine import NodeState, StateMachine
from registry.base import PeerAwareRegistry


class SyncGate:
    """SyncGate 生命周期阶段 - 同步并开放流量"""

    def __init__(
        self,
        registry: PeerAwareRegistry,
        app_info_manager: ApplicationInfoManager,
        state_machine: Optional[StateMachine] = None,
        should_abort: Optional[Callable[[], bool]] = None,
    ):
        self.registry = registry
        self.app_info_manager = app_info_manager
        self.state_machine = state_machine
        self.should_abort = should_abort or (lambda: False)
        self._issued: Optional[SyncResult] = None
        self._opened = False

    async def sync_up(self) -> SyncResult:
        """
        从对等节点同步，重试策略由注册表自己负责，这里只调用一次

        Raises:
            SyncUpError: 注册表同步失败或返回非法数量
        """
        if self._issued is not None:
            raise SyncOrderError("sync_up already completed for this node")

        try:
            count = await self.registry.sync_up()
        except SyncUpError:
            raise
        except Exception as e:
            raise SyncUpError(f"Registry sync-up failed: {e}") from e

        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise SyncUpError(f"Registry sync-up returned an invalid count: {count!r}")

        result = SyncResult(instances_recovered=count)
        self._issued = result
        if result.is_empty:
            logger.warning("同步得到 0 个实例，注册表将在保护窗口内暂不对外提供注册信息")
        else:
            logger.info(f"从对等节点同步到 {count} 个实例")
        return result

    async def open_for_traffic(self, identity: DeploymentIdentity, sync_result: SyncResult):
        """
        注册本节点并开放流量，同步数量原样传给注册表

        Raises:
            SyncOrderError: 未先调用 sync_up，或传入的不是 sync_up 的结果，或重复调用
        """
        if self._issued is None or sync_result is not self._issued:
            raise SyncOrderError("open_for_traffic requires the result of a completed sync_up")
        if self._opened:
            raise SyncOrderError("open_for_traffic already called")
        self._opened = True

        if self.state_machine is not None:
            await self.state_machine.transition_to(
                NodeState.OPEN_FOR_TRAFFIC, reason="sync_up completed"
            )
        if self.should_abort():
            raise StartupAbortedError("Node was destroyed before registering with the registry")

        self_info = self.app_info_manager.get_info()
        await self.registry.open_for_traffic(self_info, sync_result.instances_recovered)
        logger.info(
            f"已开放流量 [{identity.datacenter}/{identity.environment}] "
            f"recovered={sync_result.instances_recovered}"
        )

    @property
    def opened(self) -> bool:
        return self._opened
