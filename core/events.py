"""
🔥 生命周期事件定义
定义节点生命周期中所有可能的事件类型、事件数据结构以及事件总线
"""

from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any, List, Callable

from loguru import logger


class EventType(Enum):
    """
    事件类型枚举
    统一使用字符串值
    """

    # ========== 节点状态 ==========
    NODE_STATE_CHANGED = "node_state_changed"   # 状态机转换

    # ========== 注册中心事件 ==========
    REGISTRY_AVAILABLE = "registry_available"   # 注册表已可查询
    SERVER_STARTED = "server_started"           # 服务端启动完成
    SERVER_STOPPED = "server_stopped"           # 服务端已关闭
    STARTUP_FAILED = "startup_failed"           # 启动失败


@dataclass
class Event:
    """基础事件类"""
    event_type: EventType
    timestamp: datetime = field(default_factory=datetime.now)
    data: Dict[str, Any] = field(default_factory=dict)
    priority: int = 0  # 优先级，数字越大优先级越高

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典，方便日志展示"""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "data": self.data,
            "priority": self.priority,
        }


@dataclass
class RegistryAvailableEvent(Event):
    """注册表可用事件，携带当前服务端配置"""
    event_type: EventType = EventType.REGISTRY_AVAILABLE
    server_config: Any = None


@dataclass
class ServerStartedEvent(Event):
    """服务端启动事件，总是在 RegistryAvailableEvent 之后发布"""
    event_type: EventType = EventType.SERVER_STARTED
    server_config: Any = None


@dataclass
class ServerStoppedEvent(Event):
    """服务端关闭事件"""
    event_type: EventType = EventType.SERVER_STOPPED
    server_config: Any = None


@dataclass
class StartupFailedEvent(Event):
    """启动失败事件"""
    event_type: EventType = EventType.STARTUP_FAILED
    error: Optional[BaseException] = None


class EventBus:
    """
    异步事件总线
    负责把生命周期通知转发给观察者

    发布是 fire-and-forget 的：观察者抛出的异常会被记录并吞掉，
    不影响发布方，也不影响其他观察者。同一发布方按调用顺序投递。
    """

    def __init__(self):
        self._subscribers: Dict[EventType, List[Callable]] = {}

    def subscribe(self, event_type: EventType, callback: Callable):
        """订阅事件"""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(callback)

    def unsubscribe(self, event_type: EventType, callback: Callable):
        """取消订阅"""
        if event_type in self._subscribers:
            try:
                self._subscribers[event_type].remove(callback)
            except ValueError:
                pass

    def subscriber_count(self, event_type: EventType) -> int:
        return len(self._subscribers.get(event_type, []))

    async def publish(self, event: Event):
        """
        发布事件
        按优先级依次调用所有订阅者，同步回调与协程回调均可
        """
        if event.event_type not in self._subscribers:
            return

        # 根据订阅者对象的 priority 属性排序（如果存在）
        callbacks = sorted(
            self._subscribers[event.event_type],
            key=lambda cb: getattr(cb, "priority", 0),
            reverse=True,
        )

        for callback in callbacks:
            try:
                result = callback(event)
                if hasattr(result, "__await__"):
                    await result
            except Exception as e:
                logger.error(f"[EventBus] 转发事件 {event.event_type.value} 出错: {e}")
