"""
✅ 云平台绑定器测试
只有数据中心类型为 Amazon 时才构造并启动绑定器
"""

import sys
import asyncio
from pathlib import Path

# 添加项目根目录到路径
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.context import ApplicationInfoManager, DataCenterName, DeploymentIdentity
from core.errors import CloudBinderStartError
from lifecycle.cloud_binder import OptionalCloudBinder, is_cloud
from fakes import BinderFactory, make_instance_info

IDENTITY = DeploymentIdentity("cloud-dc", "prod")


def _binder(datacenter, factory):
    manager = ApplicationInfoManager(make_instance_info(datacenter))
    return OptionalCloudBinder(manager, factory)


async def test_cloud_datacenter_starts_binder():
    factory = BinderFactory()
    handle = await _binder(DataCenterName.AMAZON, factory).maybe_start(IDENTITY)

    assert handle is not None
    assert handle.identity == IDENTITY
    assert len(factory.created) == 1
    assert factory.created[0].start_count == 1


async def test_non_cloud_datacenter_never_constructs_binder():
    for datacenter in (DataCenterName.MY_OWN, DataCenterName.NETFLIX):
        factory = BinderFactory()
        handle = await _binder(datacenter, factory).maybe_start(IDENTITY)
        assert handle is None
        assert factory.created == []


async def test_start_failure_is_fatal():
    factory = BinderFactory(start_error=TimeoutError("metadata unreachable"))
    try:
        await _binder(DataCenterName.AMAZON, factory).maybe_start(IDENTITY)
        assert False, "应该抛出异常"
    except CloudBinderStartError as e:
        assert isinstance(e.__cause__, TimeoutError)


async def test_missing_factory_for_cloud_node_is_fatal():
    try:
        await _binder(DataCenterName.AMAZON, None).maybe_start(IDENTITY)
        assert False, "应该抛出异常"
    except CloudBinderStartError:
        pass


async def test_shutdown_handle():
    factory = BinderFactory()
    binder = _binder(DataCenterName.AMAZON, factory)
    handle = await binder.maybe_start(IDENTITY)
    await binder.shutdown(handle)
    assert factory.created[0].shutdown_count == 1


async def test_cancelled_start_releases_binder():
    factory = BinderFactory(start_delay=10)
    binder = _binder(DataCenterName.AMAZON, factory)
    task = asyncio.create_task(binder.maybe_start(IDENTITY))
    await asyncio.sleep(0.01)
    task.cancel()
    try:
        await task
        assert False, "应该被取消"
    except asyncio.CancelledError:
        pass
    assert factory.created[0].shutdown_count == 1


async def test_is_cloud_predicate():
    assert is_cloud(make_instance_info(DataCenterName.AMAZON))
    assert not is_cloud(make_instance_info(DataCenterName.MY_OWN))


async def main():
    await test_cloud_datacenter_starts_binder()
    await test_non_cloud_datacenter_never_constructs_binder()
    await test_start_failure_is_fatal()
    await test_missing_factory_for_cloud_node_is_fatal()
    await test_shutdown_handle()
    await test_cancelled_start_releases_binder()
    await test_is_cloud_predicate()
    print("✅ 所有测试通过")


if __name__ == "__main__":
    asyncio.run(main())
