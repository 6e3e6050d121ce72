"""
Utilities Package

Common utilities and helper functions for the bot.
"""

from .errors import BotError, DirectoryError
from .logging import get_logger, setup_logging
from .tasks import spawn
from .types import Err, ErrorKind, Ok, Result

__all__ = [
    "BotError",
    "DirectoryError",
    "Err",
    "ErrorKind",
    "Ok",
    "Result",
    "get_logger",
    "setup_logging",
    "spawn",
]
