"""
🚀 注册中心节点入口
加载配置 → 启动节点 → 等待退出信号 → 安全关闭
"""

import sys
import uuid
import signal
import asyncio
import argparse
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from core.config_loader import ConfigStore, DEFAULT_CONFIG_FILE
from core.context import (
    ApplicationInfoManager,
    DataCenterInfo,
    DataCenterName,
    InstanceInfo,
    ServerConfig,
)
from core.events import EventBus, EventType
from core.state_machine import StateMachine
from lifecycle import LifecycleCoordinator, ServerBootstrap
from registry.standalone import StandaloneRegistry, StandaloneServerContext


def configure_logging(config: ServerConfig):
    logger.remove()
    # 配置日志输出到文件
    if config.log_file:
        Path(config.log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(config.log_file, rotation="500 MB", level=config.log_level)
    # 配置日志输出到控制台
    logger.add(sys.stderr, level=config.console_log_level)


def build_instance_info(store: ConfigStore) -> InstanceInfo:
    datacenter_type = store.get_string("instance.datacenter_type") or DataCenterName.MY_OWN.value
    return InstanceInfo(
        app_name=store.get_string("instance.app_name") or "registry-server",
        instance_id=uuid.uuid4().hex,
        host_name=store.get_string("instance.host_name") or "localhost",
        port=int(store.get_string("instance.port") or 8761),
        data_center_info=DataCenterInfo(name=DataCenterName(datacenter_type)),
    )


def build_coordinator(
    store: ConfigStore, settings: ConfigStore, server_config: ServerConfig
) -> LifecycleCoordinator:
    event_bus = EventBus()
    registry = StandaloneRegistry(server_config)
    bootstrap = ServerBootstrap(
        store=store,
        app_info_manager=ApplicationInfoManager(build_instance_info(settings)),
        server_context=StandaloneServerContext(registry),
        server_config=server_config,
        state_machine=StateMachine(event_bus),
    )
    return LifecycleCoordinator(bootstrap, event_bus=event_bus)


async def run(config_file: Path) -> int:
    store = ConfigStore(config_file).load()
    # 配置存储不可用时仍然构建节点，由启动流程报告失败
    settings = store if store.available else ConfigStore()
    server_config = ServerConfig.from_store(settings)
    configure_logging(server_config)

    coordinator = build_coordinator(store, settings, server_config)

    async def on_started(event):
        logger.success(f"注册中心节点已就绪: {coordinator.state.value}")

    coordinator.event_bus.subscribe(EventType.SERVER_STARTED, on_started)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows 不支持 add_signal_handler
            pass

    if coordinator.auto_startup:
        coordinator.start()

    started = await coordinator.wait_until_started()
    if not started:
        logger.error("注册中心节点启动失败")
        await coordinator.stop()
        return 1

    await stop_event.wait()
    await coordinator.stop()
    return 0


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(description="Registry node lifecycle runner")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_FILE), help="YAML config file")
    args = parser.parse_args()

    try:
        exit_code = asyncio.run(run(Path(args.config)))
    except KeyboardInterrupt:
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
