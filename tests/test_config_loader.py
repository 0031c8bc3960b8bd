"""
✅ 配置存储测试
测试 YAML 加载、环境变量替换、运行时属性与不可用状态
"""

import os
import sys
import asyncio
import tempfile
from pathlib import Path

# 添加项目根目录到路径
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config_loader import ConfigStore, DEFAULT_CONFIG_FILE
from core.context import ServerConfig
from core.errors import ConfigurationUnavailableError


def _write(directory: str, text: str) -> Path:
    path = Path(directory) / "server.yaml"
    path.write_text(text, encoding="utf-8")
    return path


async def test_nested_and_literal_keys():
    store = ConfigStore(
        data={
            "registry": {"datacenter": "dc-east", "port": 8761},
            "registry.environment": "prod",
        }
    )
    assert store.get_string("registry.datacenter") == "dc-east"
    assert store.get_string("registry.environment") == "prod"
    assert store.get_string("registry.port") == "8761"
    assert store.get_string("registry") is None
    assert store.get_string("missing.key") is None
    assert store.get("missing.key", "fallback") == "fallback"


async def test_set_property_overrides_file_values():
    store = ConfigStore(data={"deployment": {"datacenter": "from-file"}})
    store.set_property("deployment.datacenter", "runtime")
    assert store.get_string("deployment.datacenter") == "runtime"
    assert store.properties() == {"deployment.datacenter": "runtime"}
    store.clear_property("deployment.datacenter")
    assert store.get_string("deployment.datacenter") == "from-file"


async def test_env_substitution():
    os.environ["REGISTRY_TEST_DC"] = "dc-from-env"
    try:
        with tempfile.TemporaryDirectory() as tmp:
            path = _write(
                tmp,
                "registry:\n  datacenter: ${REGISTRY_TEST_DC}\n"
                "  environment: ${REGISTRY_TEST_UNSET_VAR}\n",
            )
            store = ConfigStore(path).load()
            assert store.available
            assert store.get_string("registry.datacenter") == "dc-from-env"
            # 未设置的变量替换为空，YAML 解析为 None
            assert store.get_string("registry.environment") is None
    finally:
        del os.environ["REGISTRY_TEST_DC"]


async def test_missing_file_is_empty_store():
    store = ConfigStore("/nonexistent/dir/server.yaml").load()
    assert store.available
    assert store.get_string("registry.datacenter") is None


async def test_malformed_file_is_unavailable():
    with tempfile.TemporaryDirectory() as tmp:
        path = _write(tmp, "registry: [unclosed\n")
        store = ConfigStore(path).load()

    assert not store.available
    for call in (
        lambda: store.get_string("registry.datacenter"),
        lambda: store.set_property("deployment.datacenter", "x"),
    ):
        try:
            call()
            assert False, "应该抛出异常"
        except ConfigurationUnavailableError:
            pass


async def test_non_mapping_document_is_unavailable():
    with tempfile.TemporaryDirectory() as tmp:
        path = _write(tmp, "- just\n- a list\n")
        store = ConfigStore(path).load()
    assert not store.available


async def test_server_config_from_store():
    assert ServerConfig.from_store(ConfigStore(data={})) == ServerConfig()

    store = ConfigStore(
        data={
            "server": {"registry_sync_retries": 2, "wait_time_in_ms_when_sync_empty": 0},
            "logging": {"level": "DEBUG", "file": ""},
        }
    )
    config = ServerConfig.from_store(store)
    assert config.registry_sync_retries == 2
    assert config.wait_time_in_ms_when_sync_empty == 0
    assert config.registry_sync_retry_wait_ms == 30_000
    assert config.log_level == "DEBUG"
    assert config.log_file == ""

    try:
        ServerConfig.from_store(ConfigStore(data={"server": {"registry_sync_retries": "many"}}))
        assert False, "应该抛出异常"
    except ValueError:
        pass


async def test_shipped_default_config():
    store = ConfigStore(DEFAULT_CONFIG_FILE).load()
    assert store.available
    config = ServerConfig.from_store(store)
    assert config.wait_time_in_ms_when_sync_empty == 300_000
    assert store.get_string("instance.datacenter_type") == "MyOwn"


async def main():
    await test_nested_and_literal_keys()
    await test_set_property_overrides_file_values()
    await test_env_substitution()
    await test_missing_file_is_empty_store()
    await test_malformed_file_is_unavailable()
    await test_non_mapping_document_is_unavailable()
    await test_server_config_from_store()
    await test_shipped_default_config()
    print("✅ 所有测试通过")


if __name__ == "__main__":
    asyncio.run(main())
