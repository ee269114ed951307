"""
Users of the task board.
"""

from taskboard.user.service import USER, UserService

__all__ = ["USER", "UserService"]
