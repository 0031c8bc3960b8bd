"""
⭐⭐ 节点生命周期状态机
定义注册中心节点从创建到关闭的状态转换逻辑
"""

from enum import Enum
from typing import Callable, Dict, Any, Optional
from dataclasses import dataclass
from datetime import datetime
import inspect

from loguru import logger

from .errors import InvalidTransitionError
from .events import Event, EventType, EventBus


class NodeState(Enum):
    """节点状态枚举"""

    CREATED = "created"  # 已创建
    ENVIRONMENT_RESOLVING = "environment_resolving"  # 解析部署环境
    CONTEXT_INITIALIZING = "context_initializing"  # 初始化上下文
    SYNCING_UP = "syncing_up"  # 从对等节点同步
    OPEN_FOR_TRAFFIC = "open_for_traffic"  # 开放客户端流量
    RUNNING = "running"  # 运行中
    SHUTTING_DOWN = "shutting_down"  # 关闭中
    SHUTDOWN = "shutdown"  # 已关闭
    FAILED = "failed"  # 启动失败


# 启动阶段（可以转到 FAILED 的状态）
STARTUP_STATES = (
    NodeState.CREATED,
    NodeState.ENVIRONMENT_RESOLVING,
    NodeState.CONTEXT_INITIALIZING,
    NodeState.SYNCING_UP,
    NodeState.OPEN_FOR_TRAFFIC,
)

VALID_TRANSITIONS: Dict[NodeState, list] = {
    NodeState.CREATED: [
        NodeState.ENVIRONMENT_RESOLVING,
        NodeState.FAILED,
        NodeState.SHUTTING_DOWN,
    ],
    NodeState.ENVIRONMENT_RESOLVING: [
        NodeState.CONTEXT_INITIALIZING,
        NodeState.FAILED,
        NodeState.SHUTTING_DOWN,
    ],
    NodeState.CONTEXT_INITIALIZING: [
        NodeState.SYNCING_UP,
        NodeState.FAILED,
        NodeState.SHUTTING_DOWN,
    ],
    # OPEN_FOR_TRAFFIC 只能从 SYNCING_UP 到达
    NodeState.SYNCING_UP: [
        NodeState.OPEN_FOR_TRAFFIC,
        NodeState.FAILED,
        NodeState.SHUTTING_DOWN,
    ],
    NodeState.OPEN_FOR_TRAFFIC: [
        NodeState.RUNNING,
        NodeState.FAILED,
        NodeState.SHUTTING_DOWN,
    ],
    NodeState.RUNNING: [NodeState.SHUTTING_DOWN],
    NodeState.FAILED: [NodeState.SHUTTING_DOWN],
    NodeState.SHUTTING_DOWN: [NodeState.SHUTDOWN],
    NodeState.SHUTDOWN: [],
}


@dataclass
class StateTransitionEvent:
    """状态转换记录"""

    from_state: NodeState
    to_state: NodeState
    timestamp: datetime
    reason: str = ""


class StateMachine:
    """
    状态机类
    每个进程只有一个实例，只允许向前转换，FAILED 可从任一启动阶段到达
    """

    def __init__(self, event_bus: Optional[EventBus] = None, history_size: int = 100):
        self.current_state = NodeState.CREATED
        self.previous_state = NodeState.CREATED
        self.event_bus = event_bus
        self.history_size = history_size
        self.state_transitions: list[StateTransitionEvent] = []

        # 转换回调函数
        self._transition_callbacks: Dict[
            tuple[NodeState, NodeState], list[Callable]
        ] = {}

    def register_transition_callback(
        self,
        from_state: NodeState,
        to_state: NodeState,
        callback: Callable,
    ):
        """注册状态转换回调函数"""
        key = (from_state, to_state)
        if key not in self._transition_callbacks:
            self._transition_callbacks[key] = []
        self._transition_callbacks[key].append(callback)

    async def transition_to(self, new_state: NodeState, reason: str = ""):
        """
        转换到新状态
        Args:
            new_state: 目标状态
            reason: 转换原因
        Raises:
            InvalidTransitionError: 转换不合法
        """
        from_state = self.current_state
        to_state = new_state

        if not self.can_transition(to_state):
            raise InvalidTransitionError(
                f"Invalid state transition: {from_state.value} -> {to_state.value}"
            )

        self.previous_state = from_state
        self.current_state = to_state

        self.state_transitions.append(
            StateTransitionEvent(
                from_state=from_state,
                to_state=to_state,
                timestamp=datetime.now(),
                reason=reason,
            )
        )
        if len(self.state_transitions) > self.history_size:
            del self.state_transitions[: -self.history_size]

        logger.debug(f"状态转换: {from_state.value} -> {to_state.value} ({reason})")

        if self.event_bus is not None:
            await self.event_bus.publish(
                Event(
                    event_type=EventType.NODE_STATE_CHANGED,
                    data={
                        "from_state": from_state.value,
                        "to_state": to_state.value,
                        "reason": reason,
                    },
                )
            )

        transition_key = (from_state, to_state)
        for callback in self._transition_callbacks.get(transition_key, []):
            try:
                if inspect.iscoroutinefunction(callback):
                    await callback()
                else:
                    callback()
            except Exception as e:
                logger.error(f"Transition callback error: {e}")

    def can_transition(self, to_state: NodeState) -> bool:
        """检查从当前状态到目标状态是否合法"""
        return to_state in VALID_TRANSITIONS.get(self.current_state, [])

    def get_current_state(self) -> NodeState:
        """获取当前状态"""
        return self.current_state

    def is_in_state(self, state: NodeState) -> bool:
        """检查是否处于指定状态"""
        return self.current_state == state

    def is_starting(self) -> bool:
        return self.current_state in STARTUP_STATES

    def get_state_history(self, limit: int = 10) -> list[StateTransitionEvent]:
        """获取状态转换历史"""
        return self.state_transitions[-limit:]

    def path(self) -> list[NodeState]:
        """从 CREATED 开始经过的所有状态（受历史长度限制）"""
        if not self.state_transitions:
            return [self.current_state]
        states = [self.state_transitions[0].from_state]
        states.extend(t.to_state for t in self.state_transitions)
        return states

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "current_state": self.current_state.value,
            "previous_state": self.previous_state.value,
            "transition_count": len(self.state_transitions),
            "recent_transitions": [
                {
                    "from": t.from_state.value,
                    "to": t.to_state.value,
                    "timestamp": t.timestamp.isoformat(),
                    "reason": t.reason,
                }
                for t in self.state_transitions[-5:]
            ],
        }
