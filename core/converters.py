"""
🔁 序列化转换器注册
注册表的 JSON / XML 编解码层使用的转换器，兼容 v1 协议客户端
"""

from typing import Any, Dict, List, Tuple

from loguru import logger

from .context import InstanceInfo, InstanceStatus

PRIORITY_VERY_HIGH = 10000
PRIORITY_NORMAL = 0
PRIORITY_LOW = -10


class V1AwareInstanceInfoConverter:
    """
    兼容 v1 客户端的实例信息转换器

    v1 客户端不理解 overriddenStatus 字段，
    所以当覆盖状态不是 UNKNOWN 时，直接把它作为 status 返回
    """

    def can_convert(self, obj: Any) -> bool:
        return isinstance(obj, InstanceInfo)

    def effective_status(self, info: InstanceInfo, version: str = "v2") -> InstanceStatus:
        if version == "v1" and info.overridden_status != InstanceStatus.UNKNOWN:
            return info.overridden_status
        return info.status

    def to_dict(self, info: InstanceInfo, version: str = "v2") -> Dict[str, Any]:
        payload = info.to_dict()
        payload["status"] = self.effective_status(info, version).value
        return payload


class ConverterRegistry:
    """
    一个编解码格式的转换器表

    同类型的转换器只注册一次，重复注册直接忽略
    """

    def __init__(self, name: str):
        self.name = name
        self._converters: List[Tuple[int, Any]] = []

    def register_converter(self, converter: Any, priority: int = PRIORITY_NORMAL) -> bool:
        """
        注册转换器

        Returns:
            bool: 本次是否新增
        """
        if any(type(existing) is type(converter) for _, existing in self._converters):
            return False
        self._converters.append((priority, converter))
        self._converters.sort(key=lambda item: item[0], reverse=True)
        logger.debug(
            f"[{self.name}] 注册转换器 {type(converter).__name__} (priority={priority})"
        )
        return True

    def converters(self) -> List[Any]:
        """按优先级从高到低返回"""
        return [converter for _, converter in self._converters]

    def find(self, obj: Any):
        for converter in self.converters():
            if converter.can_convert(obj):
                return converter
        return None

    def __len__(self) -> int:
        return len(self._converters)


JSON_CODEC = ConverterRegistry("json")
XML_CODEC = ConverterRegistry("xml")


def register_backward_compat_converters(codecs=(JSON_CODEC, XML_CODEC)) -> int:
    """
    为每个编解码器注册 v1 兼容转换器，可重复调用

    Returns:
        int: 新增的注册数量
    """
    added = 0
    for codec in codecs:
        if codec.register_converter(V1AwareInstanceInfoConverter(), PRIORITY_VERY_HIGH):
            added += 1
    return added
