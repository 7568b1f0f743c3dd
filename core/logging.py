from loguru import logger

from core.config import get_settings

_settings = get_settings()

logger.add(
    _settings.log_path,
    rotation=_settings.log_rotation,
    retention=_settings.log_retention,
    serialize=True,
)

__all__ = ["logger"]
