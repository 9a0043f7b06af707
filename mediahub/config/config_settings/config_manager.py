import os
import yaml
from string import Template
from pathlib import Path
from functools import lru_cache
from dotenv import load_dotenv

from mediahub.config.config_settings.config_schema import AppConfig
from mediahub.core.logger import logger


BASE_DIR = Path(__file__).resolve().parents[3]
CONFIG_DIR = Path(__file__).resolve().parents[1]
DEFAULT_ENV = "dev"


def load_yaml(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"配置文件未找到: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def interpolate_env_vars(obj):
    """
    替换 YAML 中的 ${VAR} 为 os.environ 中的值
    并做类型转换（true/false/null）
    """
    def convert(value: str):
        v = value.lower()
        if v == "true": return True
        if v == "false": return False
        if v in ("null", "none", ""): return None
        return value

    if isinstance(obj, dict):
        return {k: interpolate_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [interpolate_env_vars(i) for i in obj]
    elif isinstance(obj, str):
        raw = Template(obj).safe_substitute(os.environ)
        if raw == obj:
            return obj
        return convert(raw)
    else:
        return obj


def get_env() -> str:
    return os.getenv("ENV", DEFAULT_ENV)


@lru_cache()
def get_app_config() -> AppConfig:
    env = get_env()
    logger.info(f"🌍 当前环境: {env}")

    # 1. 首先加载通用的 .env 文件 (如果存在)
    base_env_path = BASE_DIR / ".env"
    if base_env_path.exists():
        load_dotenv(dotenv_path=base_env_path)
        logger.info(f"✔️ 已加载通用 .env 文件: {base_env_path}")

    # 2. 然后加载特定环境的 .env 文件 (例如 .env.prod)，它会覆盖通用设置
    env_specific_path = BASE_DIR / f".env.{env}"
    if env_specific_path.exists():
        load_dotenv(dotenv_path=env_specific_path, override=True)
        logger.info(f"✔️ 已加载特定环境 .env 文件: {env_specific_path}")

    config_path = Path(os.getenv("MEDIAHUB_CONFIG_FILE", CONFIG_DIR / f"{env}.yaml"))
    logger.info(f"🔧 加载配置文件: {config_path}")

    data = load_yaml(config_path)
    # 环境变量插值会使用刚刚加载完 .env 文件后的最新环境变量
    data = interpolate_env_vars(data)

    config = AppConfig(**data)
    logger.debug(f"🔧 配置加载完成: server={config.server}, media={config.media}")
    return config


def reload_app_config():
    get_app_config.cache_clear()
    return get_app_config()
