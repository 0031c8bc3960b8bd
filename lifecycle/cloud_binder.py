"""
☁️ Cloud Binder Phase
只有在本节点声明为云数据中心时才启动云平台绑定器
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from core.context import ApplicationInfoManager, DataCenterName, DeploymentIdentity, InstanceInfo
from core.errors import CloudBinderStartError
from registry.base import CloudBinder

CLOUD_DATACENTER = DataCenterName.AMAZON


def is_cloud(self_info: InstanceInfo) -> bool:
    """判断本节点是否运行在云数据中心，结果总是记录日志"""
    result = self_info.data_center_info.name == CLOUD_DATACENTER
    logger.info(f"is_cloud returned {result}")
    return result


@dataclass
class CloudBinderHandle:
    """已启动的绑定器，由协调器持有直到关闭"""

    binder: CloudBinder
    identity: DeploymentIdentity


class OptionalCloudBinder:
    """
    OptionalCloudBinder 生命周期阶段

    binder_factory 只在判定为云环境时才会被调用
    """

    def __init__(
        self,
        app_info_manager: ApplicationInfoManager,
        binder_factory: Optional[Callable[[], CloudBinder]] = None,
    ):
        self.app_info_manager = app_info_manager
        self.binder_factory = binder_factory

    async def maybe_start(self, identity: DeploymentIdentity) -> Optional[CloudBinderHandle]:
        """
        Raises:
            CloudBinderStartError: 需要绑定器但无法创建或启动
        """
        if not is_cloud(self.app_info_manager.get_info()):
            return None

        if self.binder_factory is None:
            raise CloudBinderStartError(
                "Node declares a cloud data center but no cloud binder is configured"
            )

        try:
            binder = self.binder_factory()
        except Exception as e:
            raise CloudBinderStartError(f"Cloud binder could not be created: {e}") from e

        try:
            await binder.start()
        except asyncio.CancelledError:
            # 启动途中被取消，绑定器可能已部分启动
            logger.warning("云平台绑定器启动被取消，正在释放")
            await self._release(binder)
            raise
        except Exception as e:
            raise CloudBinderStartError(f"Cloud binder failed to start: {e}") from e

        logger.success(f"云平台绑定器已启动 [{identity.datacenter}]")
        return CloudBinderHandle(binder=binder, identity=identity)

    async def shutdown(self, handle: CloudBinderHandle):
        await handle.binder.shutdown()
        logger.info("云平台绑定器已关闭")

    @staticmethod
    async def _release(binder: CloudBinder):
        try:
            await binder.shutdown()
        except Exception as e:
            logger.error(f"释放云平台绑定器失败: {e}")
