"""
🌍 Environment Phase
解析部署数据中心 / 环境，未设置时使用默认值
"""

from typing import Optional

from loguru import logger

from core.config_loader import ConfigStore
from core.context import DEFAULT_DATACENTER, DEFAULT_ENVIRONMENT, DeploymentIdentity

REGISTRY_DATACENTER = "registry.datacenter"
REGISTRY_ENVIRONMENT = "registry.environment"
DEPLOYMENT_DATACENTER = "deployment.datacenter"
DEPLOYMENT_ENVIRONMENT = "deployment.environment"


class EnvironmentResolver:
    """
    EnvironmentResolver 生命周期阶段 - 解析部署身份

    读取 registry.datacenter / registry.environment，写入进程级的
    deployment.* 键，并返回不可变的 DeploymentIdentity。
    配置存储不可用时抛出 ConfigurationUnavailableError。
    """

    def __init__(self, store: ConfigStore):
        self.store = store

    def resolve(self) -> DeploymentIdentity:
        logger.info("Setting the registry deployment configuration..")

        datacenter = self._read(REGISTRY_DATACENTER)
        if datacenter is None:
            logger.info(
                f"Registry data center value {REGISTRY_DATACENTER} is not set, "
                f"defaulting to {DEFAULT_DATACENTER}"
            )
            datacenter = DEFAULT_DATACENTER
        self.store.set_property(DEPLOYMENT_DATACENTER, datacenter)

        environment = self._read(REGISTRY_ENVIRONMENT)
        if environment is None:
            logger.info(
                f"Registry environment value {REGISTRY_ENVIRONMENT} is not set, "
                f"defaulting to {DEFAULT_ENVIRONMENT}"
            )
            environment = DEFAULT_ENVIRONMENT
        self.store.set_property(DEPLOYMENT_ENVIRONMENT, environment)

        return DeploymentIdentity(datacenter=datacenter, environment=environment)

    def _read(self, key: str) -> Optional[str]:
        # 空白值视为未设置
        value = self.store.get_string(key)
        if value is None or not value.strip():
            return None
        return value
