"""
🛑 Shutdown Phase
按顺序执行关闭阶段，单个阶段失败只记录日志，后续阶段照常执行
"""

import inspect
from typing import Awaitable, Callable, List, Tuple, Union

from loguru import logger

from core.errors import ShutdownStageError

Stage = Callable[[], Union[None, Awaitable[None]]]


class Shutdown:
    """Shutdown 生命周期阶段 - 尽力而为的完整关闭"""

    def __init__(self):
        self.stages: List[Tuple[str, Stage]] = []

    def add_stage(self, name: str, stage: Stage) -> "Shutdown":
        self.stages.append((name, stage))
        return self

    async def run(self) -> List[ShutdownStageError]:
        """
        执行所有关闭阶段

        Returns:
            List[ShutdownStageError]: 失败的阶段，不会抛出
        """
        failures: List[ShutdownStageError] = []
        for name, stage in self.stages:
            try:
                result = stage()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                failure = ShutdownStageError(name, e)
                logger.error(f"关闭阶段 [{name}] 失败: {e}")
                failures.append(failure)
        return failures
