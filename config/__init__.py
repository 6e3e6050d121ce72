from .config_loader import ConfigLoader
from .settings import BotSettings

__all__ = ["BotSettings", "ConfigLoader"]
