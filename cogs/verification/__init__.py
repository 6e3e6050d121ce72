"""
Verification Package

Links members to their society membership and grants member access.
"""

from .commands import VerificationCog

__all__ = ["VerificationCog"]
