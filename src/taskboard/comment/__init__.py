"""
Comments left on tasks.
"""

from taskboard.comment.service import COMMENT, CommentService

__all__ = ["COMMENT", "CommentService"]
