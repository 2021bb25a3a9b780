"""
Error hierarchy for the catalog core.

Every error carries a ``kind`` (the classification used in failure
descriptors) and a ``status_code`` (what the HTTP boundary answers with).
"""

from typing import Optional


class CatalogError(Exception):
    """Base class for errors the catalog core classifies"""

    kind = "CatalogError"
    status_code = 500

    def __init__(self, message: str = "", *, entity_type: Optional[str] = None, entity_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.entity_type = entity_type
        self.entity_id = entity_id


class NotFoundError(CatalogError):
    kind = "NotFound"
    status_code = 404


class MalformedIdentifierError(NotFoundError):
    """Identifier is not a well-formed store id; classified as NotFound"""


class StoreError(CatalogError):
    kind = "StoreError"
    status_code = 500


class StoreUnavailableError(StoreError):
    kind = "StoreUnavailable"


class DuplicateKeyError(StoreError):
    """A write collided with the store-level natural key constraint"""

    kind = "DuplicateKey"

    def __init__(self, message: str = "", *, entity_type: Optional[str] = None, key: Optional[str] = None):
        super().__init__(message, entity_type=entity_type)
        self.key = key
