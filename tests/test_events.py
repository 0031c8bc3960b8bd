"""
✅ 事件总线测试
"""

import sys
import asyncio
from pathlib import Path

# 添加项目根目录到路径
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.context import ServerConfig
from core.events import (
    Event,
    EventBus,
    EventType,
    RegistryAvailableEvent,
    ServerStartedEvent,
)


async def test_publish_to_sync_and_async_subscribers():
    event_bus = EventBus()
    received = []

    def on_sync(event):
        received.append(("sync", event.event_type))

    async def on_async(event):
        received.append(("async", event.event_type))

    event_bus.subscribe(EventType.SERVER_STARTED, on_sync)
    event_bus.subscribe(EventType.SERVER_STARTED, on_async)
    await event_bus.publish(ServerStartedEvent(server_config=ServerConfig()))

    assert received == [
        ("sync", EventType.SERVER_STARTED),
        ("async", EventType.SERVER_STARTED),
    ]


async def test_failing_subscriber_does_not_block_others():
    event_bus = EventBus()
    received = []

    async def broken(event):
        raise RuntimeError("observer bug")

    async def healthy(event):
        received.append(event)

    event_bus.subscribe(EventType.REGISTRY_AVAILABLE, broken)
    event_bus.subscribe(EventType.REGISTRY_AVAILABLE, healthy)
    event = RegistryAvailableEvent(server_config=ServerConfig())
    await event_bus.publish(event)
    assert received == [event]


async def test_priority_order_and_unsubscribe():
    event_bus = EventBus()
    order = []

    def low(event):
        order.append("low")

    def high(event):
        order.append("high")

    high.priority = 10
    event_bus.subscribe(EventType.SERVER_STOPPED, low)
    event_bus.subscribe(EventType.SERVER_STOPPED, high)
    await event_bus.publish(Event(event_type=EventType.SERVER_STOPPED))
    assert order == ["high", "low"]

    event_bus.unsubscribe(EventType.SERVER_STOPPED, high)
    event_bus.unsubscribe(EventType.SERVER_STOPPED, high)
    assert event_bus.subscriber_count(EventType.SERVER_STOPPED) == 1


async def test_event_types_and_serialization():
    config = ServerConfig()
    available = RegistryAvailableEvent(server_config=config)
    started = ServerStartedEvent(server_config=config)
    assert available.event_type == EventType.REGISTRY_AVAILABLE
    assert started.event_type == EventType.SERVER_STARTED
    assert available.server_config is config
    assert started.to_dict()["event_type"] == "server_started"


async def main():
    await test_publish_to_sync_and_async_subscribers()
    await test_failing_subscriber_does_not_block_others()
    await test_priority_order_and_unsubscribe()
    await test_event_types_and_serialization()
    print("✅ 所有测试通过")


if __name__ == "__main__":
    asyncio.run(main())
