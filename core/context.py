"""
🔥 节点上下文数据模型
部署身份、同步结果、实例信息、服务端配置
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

DEFAULT_DATACENTER = "default"
DEFAULT_ENVIRONMENT = "test"


@dataclass(frozen=True)
class DeploymentIdentity:
    """
    部署身份

    每次进程启动时由 EnvironmentResolver 计算一次，之后只读，
    并作为参数传递给后续所有阶段
    """

    datacenter: str = DEFAULT_DATACENTER
    environment: str = DEFAULT_ENVIRONMENT

    def __post_init__(self):
        if not self.datacenter or not self.datacenter.strip():
            raise ValueError("DeploymentIdentity.datacenter must be non-empty")
        if not self.environment or not self.environment.strip():
            raise ValueError("DeploymentIdentity.environment must be non-empty")

    def to_dict(self) -> Dict[str, Any]:
        return {"datacenter": self.datacenter, "environment": self.environment}


@dataclass(frozen=True)
class SyncResult:
    """从对等节点同步得到的实例数量，0 不代表失败"""

    instances_recovered: int = 0

    def __post_init__(self):
        if self.instances_recovered < 0:
            raise ValueError("SyncResult.instances_recovered must be >= 0")

    @property
    def is_empty(self) -> bool:
        return self.instances_recovered == 0


class DataCenterName(Enum):
    """数据中心类型"""

    MY_OWN = "MyOwn"
    AMAZON = "Amazon"
    NETFLIX = "Netflix"


class InstanceStatus(Enum):
    """实例状态"""

    UP = "UP"
    DOWN = "DOWN"
    STARTING = "STARTING"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class DataCenterInfo:
    """数据中心信息"""

    name: DataCenterName = DataCenterName.MY_OWN
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class InstanceInfo:
    """本节点自身的实例信息"""

    app_name: str
    instance_id: str
    host_name: str = "localhost"
    port: int = 8761
    status: InstanceStatus = InstanceStatus.STARTING
    overridden_status: InstanceStatus = InstanceStatus.UNKNOWN
    data_center_info: DataCenterInfo = field(default_factory=DataCenterInfo)
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app": self.app_name,
            "instanceId": self.instance_id,
            "hostName": self.host_name,
            "port": self.port,
            "status": self.status.value,
            "overriddenStatus": self.overridden_status.value,
            "dataCenterInfo": {
                "name": self.data_center_info.name.value,
                "metadata": dict(self.data_center_info.metadata),
            },
            "metadata": dict(self.metadata),
        }


class ApplicationInfoManager:
    """持有本节点实例信息"""

    def __init__(self, info: InstanceInfo):
        self._info = info

    def get_info(self) -> InstanceInfo:
        return self._info


@dataclass(frozen=True)
class ServerConfig:
    """
    服务端配置

    同步重试与空注册表保护窗口由注册表组件自己执行，
    这里只负责读取并传递
    """

    registry_sync_retries: int = 5
    registry_sync_retry_wait_ms: int = 30_000
    wait_time_in_ms_when_sync_empty: int = 300_000  # 5 分钟
    log_level: str = "INFO"
    console_log_level: str = "INFO"
    log_file: Optional[str] = "logs/registry_node.log"

    def __post_init__(self):
        if self.registry_sync_retries < 0:
            raise ValueError("registry_sync_retries must be >= 0")
        if self.registry_sync_retry_wait_ms < 0:
            raise ValueError("registry_sync_retry_wait_ms must be >= 0")
        if self.wait_time_in_ms_when_sync_empty < 0:
            raise ValueError("wait_time_in_ms_when_sync_empty must be >= 0")

    @classmethod
    def from_store(cls, store) -> "ServerConfig":
        """从 ConfigStore 读取配置，未设置的键使用默认值"""
        defaults = cls()

        def _int(key: str, default: int) -> int:
            raw = store.get_string(key)
            if raw is None:
                return default
            try:
                return int(raw)
            except ValueError:
                raise ValueError(f"Config key '{key}' must be an integer, got {raw!r}")

        log_file = store.get_string("logging.file")
        return cls(
            registry_sync_retries=_int(
                "server.registry_sync_retries", defaults.registry_sync_retries
            ),
            registry_sync_retry_wait_ms=_int(
                "server.registry_sync_retry_wait_ms", defaults.registry_sync_retry_wait_ms
            ),
            wait_time_in_ms_when_sync_empty=_int(
                "server.wait_time_in_ms_when_sync_empty",
                defaults.wait_time_in_ms_when_sync_empty,
            ),
            log_level=store.get_string("logging.level") or defaults.log_level,
            console_log_level=(
                store.get_string("logging.console_level") or defaults.console_log_level
            ),
            log_file=log_file if log_file is not None else defaults.log_file,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "registry_sync_retries": self.registry_sync_retries,
            "registry_sync_retry_wait_ms": self.registry_sync_retry_wait_ms,
            "wait_time_in_ms_when_sync_empty": self.wait_time_in_ms_when_sync_empty,
            "log_level": self.log_level,
            "console_log_level": self.console_log_level,
            "log_file": self.log_file,
        }
