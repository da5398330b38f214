"""
Exceptions raised by the service and storage layers.

Services never raise ``HTTPException`` themselves; routers translate these
into status codes, and ``NotFoundError`` has an app-wide handler in
``app.main`` that turns it into a 404.
"""


class NotFoundError(ValueError):
    """A row looked up by primary key does not exist."""

    def __init__(self, entity: str, entity_id: int) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class StorageError(Exception):
    """Uploading or fetching an image blob failed."""
