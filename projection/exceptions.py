"""
Exceptions for the projection engine.

Configuration errors are deployment bugs (a missing handler, a colliding
output key, an unknown route) and abort the transform. Missing relation
data is not an error; handlers resolve it to their documented defaults.
"""


class ProjectionError(Exception):
    """Base exception for all projection errors."""

    pass


class ConfigurationError(ProjectionError):
    """Handler, registry or route configuration is invalid."""

    pass


class HandlerNotFoundError(ConfigurationError, LookupError):
    """No handler is registered for an entity type."""

    def __init__(self, entity_type: str, available: list[str] | None = None):
        self.entity_type = entity_type
        available_str = ", ".join(sorted(available or [])) or "none"
        super().__init__(
            f"No handler registered for '{entity_type}'. Available: {available_str}"
        )


class DuplicateHandlerError(ConfigurationError):
    """A second handler was registered for the same entity type."""

    pass


class MappingCollisionError(ConfigurationError):
    """Two output keys of one handler collide, or one uses a reserved key."""

    pass


class RegistryFrozenError(ConfigurationError):
    """The registry no longer accepts registrations."""

    pass


class LinkError(ConfigurationError):
    """A link could not be built from the route table."""

    pass


class RelationError(ProjectionError):
    """A relation name does not exist or is not supported for batch loading."""

    pass


class EntityTypeMismatchError(ProjectionError):
    """A batch mixed entities of different types."""

    pass


__all__ = [
    "ProjectionError",
    "ConfigurationError",
    "HandlerNotFoundError",
    "DuplicateHandlerError",
    "MappingCollisionError",
    "RegistryFrozenError",
    "LinkError",
    "RelationError",
    "EntityTypeMismatchError",
]
