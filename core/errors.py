"""
🚨 异常定义
节点启动/关闭过程中可能出现的所有错误类型
"""


class BootstrapError(Exception):
    """注册中心节点生命周期错误基类"""


class ConfigurationUnavailableError(BootstrapError):
    """配置存储不可用（文件损坏、无法读取等），启动中止"""


class CloudBinderStartError(BootstrapError):
    """云平台绑定器启动失败，启动中止"""


class SyncUpError(BootstrapError):
    """从对等节点同步注册表失败（重试耗尽后），启动中止"""


class SyncOrderError(BootstrapError):
    """
    开放流量前未完成同步

    open_for_traffic 只接受同一个 SyncGate 的 sync_up 返回的结果
    """


class StartupAbortedError(BootstrapError):
    """启动流程在检查点发现节点已被销毁"""


class ShutdownStageError(BootstrapError):
    """
    关闭阶段失败

    只用于日志记录，不会抛给宿主
    """

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"Shutdown stage '{stage}' failed: {cause}")
        self.stage = stage
        self.cause = cause


class InvalidTransitionError(BootstrapError, ValueError):
    """非法的状态转换"""


__all__ = [
    "BootstrapError",
    "ConfigurationUnavailableError",
    "CloudBinderStartError",
    "SyncUpError",
    "SyncOrderError",
    "StartupAbortedError",
    "ShutdownStageError",
    "InvalidTransitionError",
]
