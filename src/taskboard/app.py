"""
Application wiring.

create_app() is the single startup path: it builds the connection registry,
connects once, and constructs every per-entity service with the registry
passed in. Application.close() tears the connection down.
"""

import logging
from dataclasses import dataclass, field

from taskboard.comment import CommentService
from taskboard.config import Config, config as default_config
from taskboard.db import ConnectionRegistry
from taskboard.project import ProjectService
from taskboard.repository import RepositoryService
from taskboard.role import RoleService
from taskboard.task import TaskService
from taskboard.user import UserService

logger = logging.getLogger(__name__)

SERVICES: dict[str, type[RepositoryService]] = {
    "roles": RoleService,
    "users": UserService,
    "projects": ProjectService,
    "tasks": TaskService,
    "comments": CommentService,
}


@dataclass
class Application:
    config: Config
    registry: ConnectionRegistry
    services: dict[str, RepositoryService] = field(default_factory=dict)

    def service(self, entity: str) -> RepositoryService:
        """Get the service for an entity name. Raises KeyError if unknown."""
        return self.services[entity]

    @property
    def roles(self) -> RoleService:
        return self.services["roles"]

    @property
    def users(self) -> UserService:
        return self.services["users"]

    @property
    def projects(self) -> ProjectService:
        return self.services["projects"]

    @property
    def tasks(self) -> TaskService:
        return self.services["tasks"]

    @property
    def comments(self) -> CommentService:
        return self.services["comments"]

    async def close(self) -> None:
        await self.registry.close()

    async def __aenter__(self) -> "Application":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def build_services(registry: ConnectionRegistry) -> dict[str, RepositoryService]:
    return {name: service_cls(registry) for name, service_cls in SERVICES.items()}


async def create_app(
    config: Config | None = None, registry: ConnectionRegistry | None = None
) -> Application:
    """Application factory."""
    config = config or default_config
    registry = registry or ConnectionRegistry()

    if await registry.connect(config) is None:
        logger.warning("Starting without a database connection")

    return Application(config=config, registry=registry, services=build_services(registry))
