from taskboard.entity import EntityDescriptor, fields
from taskboard.repository import RepositoryService

ROLE = EntityDescriptor(
    name="roles",
    table="roles",
    fields=fields("id", "name", "description", "created_at", "updated_at"),
)


class RoleService(RepositoryService):
    descriptor = ROLE
