from taskboard.entity import EntityDescriptor, fields
from taskboard.repository import RepositoryService

# Stored columns predate the field names: comment -> body, user_id -> author_id
COMMENT = EntityDescriptor(
    name="comments",
    table="comments",
    fields=fields(
        "id",
        ("body", "comment"),
        "task_id",
        ("author_id", "user_id"),
        "created_at",
        "updated_at",
    ),
)


class CommentService(RepositoryService):
    descriptor = COMMENT
