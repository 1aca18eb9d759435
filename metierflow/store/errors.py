"""Entity store failures."""


class StoreError(Exception):
    """The store is unavailable or a request to it failed."""


class EntityNotFoundError(StoreError):
    """Update or delete addressed an id that is not in the collection."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class UnknownEntityError(StoreError):
    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"Unknown entity collection: {entity}")
