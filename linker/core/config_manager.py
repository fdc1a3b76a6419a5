"""配置管理器

提供用户级 settings.yaml 的加载、验证和合并功能。
文件缺失时使用默认配置。
"""

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from linker.core.exceptions import ConfigIOError, ConfigParseError, ConfigValidationError
from linker.core.logger import get_logger

logger = get_logger("config_manager")


class ConfigManager:
    """配置管理器

    负责加载、验证和合并 ~/.linker/settings.yaml。
    """

    DEFAULT_CONFIG = {
        "manifest": {
            "filename": "resource.toml",
            "table": "resource",
        },
        "instance": {
            "suffix_length": 9,
        },
        "logging": {
            "level": "WARNING",
            "json": False,
            "log_dir": None,
        },
    }

    CONFIG_FILENAME = "settings.yaml"

    VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

    def __init__(self, config_dir: Optional[Path] = None):
        """初始化配置管理器

        Args:
            config_dir: 配置目录，默认为 ~/.linker
        """
        self.config_dir = Path(config_dir) if config_dir else Path.home() / ".linker"
        self._config: Optional[Dict[str, Any]] = None
        logger.debug("ConfigManager initialized", config_dir=str(self.config_dir))

    @property
    def config_path(self) -> Path:
        """获取配置文件路径"""
        return self.config_dir / self.CONFIG_FILENAME

    def get_default_config(self) -> Dict[str, Any]:
        """获取默认配置的深拷贝"""
        return copy.deepcopy(self.DEFAULT_CONFIG)

    def load_config(self, config_path: Optional[Path] = None) -> Dict[str, Any]:
        """加载配置文件

        Args:
            config_path: 配置文件路径，如果为 None 则使用默认路径

        Returns:
            与默认配置深度合并后的配置字典

        Raises:
            ConfigIOError: 文件读取失败时抛出
            ConfigParseError: YAML 解析失败时抛出
            ConfigValidationError: 配置值类型错误时抛出
        """
        path = config_path or self.config_path

        if not path.exists():
            logger.debug("Settings file not found, using defaults", path=str(path))
            self._config = self.get_default_config()
            return self._config

        try:
            with open(path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error("Failed to parse settings file", path=str(path), error=str(e))
            raise ConfigParseError(f"无法解析配置文件 {path}: {e}", details=str(e))
        except OSError as e:
            logger.error("Failed to read settings file", path=str(path), error=str(e))
            raise ConfigIOError(f"无法读取配置文件 {path}: {e}", details=str(e))

        if config_data is None:
            config_data = self.get_default_config()
        elif not isinstance(config_data, dict):
            raise ConfigValidationError(
                f"配置文件顶层必须是映射: {path}",
                details={"type": type(config_data).__name__},
            )
        else:
            config_data = self.merge_configs(self.get_default_config(), config_data)

        self.validate_config(config_data)
        self._config = config_data
        logger.info("Settings loaded", path=str(path))
        return self._config

    def validate_config(self, config: Optional[Dict[str, Any]] = None) -> bool:
        """验证配置结构和值

        Raises:
            ConfigValidationError: 配置验证失败时抛出
        """
        cfg = config if config is not None else self._config

        if cfg is None:
            raise ConfigValidationError("No configuration loaded or provided")

        errors = []

        for section in ("manifest", "instance", "logging"):
            if not isinstance(cfg.get(section), dict):
                errors.append(f"{section} must be a dictionary")

        manifest = cfg.get("manifest")
        if isinstance(manifest, dict):
            for key in ("filename", "table"):
                value = manifest.get(key)
                if not isinstance(value, str) or not value:
                    errors.append(f"manifest.{key} must be a non-empty string")

        instance = cfg.get("instance")
        if isinstance(instance, dict):
            length = instance.get("suffix_length")
            if isinstance(length, bool) or not isinstance(length, int) or length < 1:
                errors.append("instance.suffix_length must be a positive integer")

        logging_cfg = cfg.get("logging")
        if isinstance(logging_cfg, dict):
            level = logging_cfg.get("level")
            if not isinstance(level, str) or level.upper() not in self.VALID_LEVELS:
                errors.append(f"logging.level must be one of {self.VALID_LEVELS}")
            if not isinstance(logging_cfg.get("json"), bool):
                errors.append("logging.json must be a boolean")
            log_dir = logging_cfg.get("log_dir")
            if log_dir is not None and not isinstance(log_dir, str):
                errors.append("logging.log_dir must be a string or null")

        if errors:
            logger.error("Settings validation failed", errors=errors)
            raise ConfigValidationError(f"配置验证失败: {'; '.join(errors)}", details=errors)

        return True

    def merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """深度合并配置，override 中的值优先"""
        result = copy.deepcopy(base)

        for key, value in override.items():
            if isinstance(result.get(key), dict) and isinstance(value, dict):
                result[key] = self.merge_configs(result[key], value)
            else:
                result[key] = copy.deepcopy(value)

        return result
