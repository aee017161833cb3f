class EntityNotFound(ValueError):
    """Raised when a lookup by id finds no matching record in a collection."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidStatusTransition(ValueError):
    """Raised when a purchase request is moved along an edge the workflow does not allow."""

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move purchase request from '{current}' to '{requested}'")


class ConcurrentModificationError(RuntimeError):
    """Raised when a collection keeps changing underneath a write after all retries."""

    def __init__(self, key: str, attempts: int):
        self.key = key
        self.attempts = attempts
        super().__init__(f"Collection '{key}' was modified concurrently; gave up after {attempts} attempts")
