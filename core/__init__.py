"""
📦 Core Package
"""

from .config_loader import ConfigStore
from .context import (
    ApplicationInfoManager,
    DataCenterInfo,
    DataCenterName,
    DeploymentIdentity,
    InstanceInfo,
    InstanceStatus,
    ServerConfig,
    SyncResult,
)
from .events import Event, EventBus, EventType
from .state_machine import NodeState, StateMachine

__all__ = [
    # Config
    "ConfigStore",
    "ServerConfig",
    # Data model
    "ApplicationInfoManager",
    "DataCenterInfo",
    "DataCenterName",
    "DeploymentIdentity",
    "InstanceInfo",
    "InstanceStatus",
    "SyncResult",
    # Events / state
    "Event",
    "EventBus",
    "EventType",
    "NodeState",
    "StateMachine",
]
