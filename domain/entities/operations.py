from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from domain.entities.catalog import EntityType


class OperationKind(str, Enum):
    LIST = "list"
    DETAIL = "detail"
    CREATE_GET = "create_get"
    CREATE_POST = "create_post"
    UPDATE_GET = "update_get"
    UPDATE_POST = "update_post"
    DELETE_GET = "delete_get"
    DELETE_POST = "delete_post"


class ExistencePolicy(str, Enum):
    """How an operation treats a target that does not exist"""

    # missing or malformed identifier surfaces as NotFound
    STRICT_EXISTENCE = "strict_existence"
    # missing or malformed identifier counts as already done
    IDEMPOTENT_ABSENCE = "idempotent_absence"


EXISTENCE_POLICIES = {
    OperationKind.DETAIL: ExistencePolicy.STRICT_EXISTENCE,
    OperationKind.UPDATE_GET: ExistencePolicy.STRICT_EXISTENCE,
    OperationKind.UPDATE_POST: ExistencePolicy.STRICT_EXISTENCE,
    OperationKind.DELETE_GET: ExistencePolicy.IDEMPOTENT_ABSENCE,
    OperationKind.DELETE_POST: ExistencePolicy.IDEMPOTENT_ABSENCE,
}


@dataclass
class OperationRequest:
    kind: OperationKind
    entity_type: EntityType
    id: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Render:
    view_name: str
    data: Dict[str, Any]


@dataclass
class Redirect:
    path: str


@dataclass
class Failure:
    kind: str
    message: str
    status_code: int = 500


OperationResult = Union[Render, Redirect, Failure]
