"""
🔧 Config Store - 配置存储
==============================
从 YAML 文件加载配置，支持环境变量替换，并允许运行时写入属性
"""

import os
import re
import yaml
from pathlib import Path
from typing import Any, Dict, Optional, Union

from loguru import logger

from .errors import ConfigurationUnavailableError

DEFAULT_CONFIG_FILE = Path(__file__).parent.parent / "config" / "server.yaml"

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


class ConfigStore:
    """
    配置存储

    功能：
    - 从 YAML 文件加载配置
    - 支持环境变量替换 (${VAR_NAME})
    - 运行时属性写入 (set_property)，优先级高于文件内容
    - 文件损坏时整个存储标记为不可用，读取即报错
    """

    def __init__(
        self,
        config_file: Optional[Union[str, Path]] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            config_file: YAML 配置文件路径
            data: 直接给定的配置字典（不读文件）
        """
        self.config_file = Path(config_file) if config_file is not None else None
        self._data: Dict[str, Any] = dict(data) if data else {}
        self._properties: Dict[str, str] = {}
        self._load_error: Optional[Exception] = None

    def load(self) -> "ConfigStore":
        """
        加载配置文件

        Returns:
            ConfigStore: self，便于链式调用
        """
        if self.config_file is None:
            return self

        if not self.config_file.exists():
            logger.warning(f"配置文件不存在: {self.config_file}，使用默认配置")
            self._data = {}
            return self

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                content = self._replace_env_vars(f.read())
            loaded = yaml.safe_load(content)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"加载配置文件失败 {self.config_file}: {e}")
            self._load_error = e
            return self

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            self._load_error = ValueError(
                f"Top-level document of {self.config_file} must be a mapping"
            )
            logger.error(str(self._load_error))
            return self

        self._data = loaded
        logger.info(f"加载配置: {self.config_file}")
        return self

    @staticmethod
    def _replace_env_vars(text: str) -> str:
        """替换 ${VAR_NAME} 格式的环境变量，未设置的替换为空字符串"""

        def replacer(match):
            return os.getenv(match.group(1), "")

        return _ENV_PATTERN.sub(replacer, text)

    @property
    def available(self) -> bool:
        return self._load_error is None

    def _ensure_available(self):
        if self._load_error is not None:
            raise ConfigurationUnavailableError(
                f"Configuration store unavailable: {self._load_error}"
            ) from self._load_error

    def get(self, key: str, default: Any = None) -> Any:
        """
        获取配置值

        查找顺序: set_property 写入值 → 顶层字面键 → 点分路径
        """
        self._ensure_available()

        if key in self._properties:
            return self._properties[key]
        if key in self._data:
            return self._data[key]

        value: Any = self._data
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value

    def get_string(self, key: str) -> Optional[str]:
        """获取字符串配置，不存在返回 None"""
        value = self.get(key)
        if value is None or isinstance(value, dict):
            return None
        return str(value)

    def set_property(self, key: str, value: str):
        """写入运行时属性"""
        self._ensure_available()
        self._properties[key] = value

    def clear_property(self, key: str):
        self._properties.pop(key, None)

    def properties(self) -> Dict[str, str]:
        """运行时写入的属性快照"""
        return dict(self._properties)


__all__ = ["ConfigStore", "DEFAULT_CONFIG_FILE"]
