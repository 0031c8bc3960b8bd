"""
✅ 关闭阶段测试
"""

import sys
import asyncio
from pathlib import Path

# 添加项目根目录到路径
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.errors import ShutdownStageError
from lifecycle.shutdown import Shutdown
from monitor.stats import ServerMonitors


async def test_failing_stage_does_not_stop_later_stages():
    ran = []

    def first():
        ran.append("first")
        raise RuntimeError("first failed")

    async def second():
        ran.append("second")

    failures = await Shutdown().add_stage("first", first).add_stage("second", second).run()

    assert ran == ["first", "second"]
    assert len(failures) == 1
    assert isinstance(failures[0], ShutdownStageError)
    assert failures[0].stage == "first"
    assert isinstance(failures[0].cause, RuntimeError)


async def test_monitors_lifecycle():
    monitors = ServerMonitors()
    monitors.register_all_stats()
    monitors.record("instances_recovered", 7)
    monitors.increment("startups")
    assert monitors.snapshot() == {"instances_recovered": 7, "startups": 1}

    monitors.shutdown()
    monitors.shutdown()
    monitors.increment("startups")
    assert monitors.is_shutdown
    assert monitors.snapshot() == {}


async def main():
    await test_failing_stage_does_not_stop_later_stages()
    await test_monitors_lifecycle()
    print("✅ 所有测试通过")


if __name__ == "__main__":
    asyncio.run(main())
