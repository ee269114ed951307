from taskboard.entity import EntityDescriptor, fields
from taskboard.repository import RepositoryService

TASK = EntityDescriptor(
    name="tasks",
    table="tasks",
    fields=fields(
        "id",
        "name",
        "description",
        "status",
        "priority",
        "due_date",
        "project_id",
        ("assignee_id", "assigned_to"),
        "created_at",
        "updated_at",
    ),
)


class TaskService(RepositoryService):
    descriptor = TASK
