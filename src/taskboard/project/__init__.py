"""
Projects, which group tasks.
"""

from taskboard.project.service import PROJECT, ProjectService

__all__ = ["PROJECT", "ProjectService"]
