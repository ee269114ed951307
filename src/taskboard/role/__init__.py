"""
Roles that can be granted to users.
"""

from taskboard.role.service import ROLE, RoleService

__all__ = ["ROLE", "RoleService"]
