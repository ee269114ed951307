"""
Taskboard: a generic data-access layer for task board entities.
"""

__version__ = "0.1.0"
