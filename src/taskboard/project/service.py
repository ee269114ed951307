from taskboard.entity import EntityDescriptor, fields
from taskboard.repository import RepositoryService

PROJECT = EntityDescriptor(
    name="projects",
    table="projects",
    fields=fields(
        "id",
        "name",
        "description",
        "start_date",
        "end_date",
        "owner_id",
        "created_at",
        "updated_at",
    ),
)


class ProjectService(RepositoryService):
    descriptor = PROJECT
