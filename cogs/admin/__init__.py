"""
Admin Package

Application review, admin grants and the manual daily post.
"""

from .admins import AdminGrantsCog
from .commands import AdminCog

__all__ = ["AdminCog", "AdminGrantsCog"]
