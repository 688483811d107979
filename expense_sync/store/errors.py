"""Domain errors raised by the store to its callers."""


class DomainError(Exception):
    """A precondition of the store was violated. Nothing was changed."""
    pass


class ProtectedEntityError(DomainError):
    """Attempted to delete an entity that can never be deleted."""

    def __init__(self, resource: str, entity_id: str):
        self.resource = resource
        self.entity_id = entity_id
        super().__init__("Default categories cannot be deleted")


class EntityNotFoundError(DomainError):
    """The referenced entity is not in local state."""

    def __init__(self, resource: str, entity_id: str):
        self.resource = resource
        self.entity_id = entity_id
        super().__init__(f"No {resource} with id {entity_id}")
