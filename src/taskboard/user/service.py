from taskboard.entity import EntityDescriptor, fields
from taskboard.repository import RepositoryService

USER = EntityDescriptor(
    name="users",
    table="users",
    fields=fields(
        "id",
        "username",
        "email",
        "full_name",
        "role_id",
        "created_at",
        "updated_at",
    ),
)


class UserService(RepositoryService):
    descriptor = USER
