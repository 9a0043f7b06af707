# mediahub/core/logger.py
import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# 清除默认 handler，在 setup_logging 之前先输出到控制台
logger.remove()
logger.add(sys.stderr, level="INFO", colorize=True, format=CONSOLE_FORMAT)


def setup_logging(logging_config, env: str = "dev") -> None:
    """
    根据配置重新装配 loguru 的输出端。
    由 mediahub.config.settings 在配置加载完成后调用一次。
    """
    logger.remove()

    # 控制台输出
    logger.add(
        sys.stderr,
        level="DEBUG" if env == "dev" else "INFO",
        colorize=True,
        enqueue=True,
        backtrace=True,
        diagnose=env == "dev",
        format=CONSOLE_FORMAT,
    )

    if not logging_config.enable_file:
        logger.debug(f"Log system initialized in {env} mode (console only).")
        return

    log_dir = Path(logging_config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    # 普通文本日志输出到文件
    logger.add(
        log_dir / "mediahub.log",
        level="DEBUG",
        rotation=logging_config.rotation,
        retention=logging_config.retention,
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
    )

    # JSON 结构化日志输出，只记录警告及以上 (孤儿对象、存储失败都在这里)
    logger.add(
        log_dir / "mediahub.json",
        level="WARNING",
        rotation=logging_config.rotation,
        retention=logging_config.retention,
        serialize=True,
        encoding="utf-8",
        enqueue=True,
    )
    logger.debug(f"Log system initialized in {env} mode.")


def get_logger(name: str = None):
    """仿 logging.getLogger() 实现的 loguru logger 工厂方法"""
    if name:
        return logger.bind(module=name)
    return logger
