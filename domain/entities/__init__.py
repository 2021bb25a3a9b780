from .catalog import (
    ENTITY_CLASSES,
    Author,
    Book,
    BookInstance,
    BookInstanceStatus,
    CatalogEntity,
    EntitySummary,
    EntityType,
    Genre,
    is_valid_identifier,
    new_identifier,
)
from .operations import (
    EXISTENCE_POLICIES,
    ExistencePolicy,
    Failure,
    OperationKind,
    OperationRequest,
    OperationResult,
    Redirect,
    Render,
)

__all__ = [
    "ENTITY_CLASSES",
    "Author",
    "Book",
    "BookInstance",
    "BookInstanceStatus",
    "CatalogEntity",
    "EntitySummary",
    "EntityType",
    "Genre",
    "is_valid_identifier",
    "new_identifier",
    "EXISTENCE_POLICIES",
    "ExistencePolicy",
    "Failure",
    "OperationKind",
    "OperationRequest",
    "OperationResult",
    "Redirect",
    "Render",
]
