"""
Tasks belonging to projects.
"""

from taskboard.task.service import TASK, TaskService

__all__ = ["TASK", "TaskService"]
