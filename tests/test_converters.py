"""
✅ 兼容转换器测试
"""

import sys
import asyncio
from pathlib import Path

# 添加项目根目录到路径
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.context import InstanceStatus
from core.converters import (
    PRIORITY_NORMAL,
    PRIORITY_VERY_HIGH,
    ConverterRegistry,
    V1AwareInstanceInfoConverter,
    register_backward_compat_converters,
)
from fakes import make_instance_info


class _OtherConverter:
    def can_convert(self, obj):
        return True


async def test_registration_is_idempotent():
    codecs = (ConverterRegistry("json"), ConverterRegistry("xml"))
    assert register_backward_compat_converters(codecs) == 2
    assert register_backward_compat_converters(codecs) == 0
    for codec in codecs:
        assert len(codec) == 1
        assert isinstance(codec.converters()[0], V1AwareInstanceInfoConverter)


async def test_very_high_priority_wins():
    codec = ConverterRegistry("json")
    codec.register_converter(_OtherConverter(), PRIORITY_NORMAL)
    register_backward_compat_converters((codec,))

    info = make_instance_info()
    assert isinstance(codec.find(info), V1AwareInstanceInfoConverter)
    assert isinstance(codec.find("not an instance"), _OtherConverter)
    assert PRIORITY_VERY_HIGH > PRIORITY_NORMAL


async def test_v1_clients_see_overridden_status():
    converter = V1AwareInstanceInfoConverter()
    info = make_instance_info()
    info.status = InstanceStatus.UP
    info.overridden_status = InstanceStatus.OUT_OF_SERVICE

    assert converter.to_dict(info, version="v1")["status"] == "OUT_OF_SERVICE"
    assert converter.to_dict(info, version="v2")["status"] == "UP"

    info.overridden_status = InstanceStatus.UNKNOWN
    assert converter.to_dict(info, version="v1")["status"] == "UP"


async def main():
    await test_registration_is_idempotent()
    await test_very_high_priority_wins()
    await test_v1_clients_see_overridden_status()
    print("✅ 所有测试通过")


if __name__ == "__main__":
    asyncio.run(main())
