from mediahub.config.config_settings.config_manager import get_app_config
from mediahub.core.logger import setup_logging

settings = get_app_config()

setup_logging(settings.logging, settings.server.env)
