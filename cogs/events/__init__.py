"""
Events Package

Society events and member registrations.
"""

from .commands import EventsCog

__all__ = ["EventsCog"]
