"""
Lifecycle of catalog entities: list, detail, create, update and delete.

Create and update run validate -> deduplicate -> persist strictly in order.
Detail and delete issue their two independent reads concurrently and only
continue once both are back.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from domain.entities import (
    ENTITY_CLASSES,
    EXISTENCE_POLICIES,
    BookInstanceStatus,
    CatalogEntity,
    EntityType,
    ExistencePolicy,
    Failure,
    OperationKind,
    OperationRequest,
    OperationResult,
    Redirect,
    Render,
    is_valid_identifier,
)
from domain.exceptions import CatalogError, DuplicateKeyError, MalformedIdentifierError, NotFoundError
from domain.repositories import CatalogRepository
from domain.services.duplicate_resolver import DuplicateResolver
from domain.services.reference_checker import FORWARD_REFERENCES, ReferenceChecker
from domain.services.validator import validate

logger = logging.getLogger(__name__)


class EntityLifecycleUseCase:
    def __init__(
        self,
        repository: CatalogRepository,
        duplicate_resolver: Optional[DuplicateResolver] = None,
        reference_checker: Optional[ReferenceChecker] = None,
    ):
        self.repository = repository
        self.duplicate_resolver = duplicate_resolver or DuplicateResolver(repository)
        self.reference_checker = reference_checker or ReferenceChecker(repository)

    async def execute(self, request: OperationRequest) -> OperationResult:
        """Run one operation and classify any catalog error into a Failure"""
        handlers = {
            OperationKind.LIST: lambda: self.list_entities(request.entity_type),
            OperationKind.DETAIL: lambda: self.detail(request.entity_type, request.id),
            OperationKind.CREATE_GET: lambda: self.create_form(request.entity_type),
            OperationKind.CREATE_POST: lambda: self.create(request.entity_type, request.fields),
            OperationKind.UPDATE_GET: lambda: self.update_form(request.entity_type, request.id),
            OperationKind.UPDATE_POST: lambda: self.update(request.entity_type, request.id, request.fields),
            OperationKind.DELETE_GET: lambda: self.delete_confirmation(request.entity_type, request.id),
            OperationKind.DELETE_POST: lambda: self.delete(request.entity_type, request.id),
        }
        try:
            return await handlers[request.kind]()
        except CatalogError as e:
            logger.warning(f"{request.kind.value} {request.entity_type.value} {request.id or ''} failed: {e.kind} {e}")
            return Failure(kind=e.kind, message=e.message, status_code=e.status_code)

    # ---------------------- Helpers ----------------------
    async def _gather(self, *calls):
        return await asyncio.gather(*(asyncio.to_thread(fn, *args) for fn, *args in calls))

    def _accepts_identifier(self, kind: OperationKind, entity_type: EntityType, entity_id: Optional[str]) -> bool:
        if is_valid_identifier(entity_id):
            return True
        if EXISTENCE_POLICIES[kind] == ExistencePolicy.STRICT_EXISTENCE:
            raise MalformedIdentifierError(
                f"invalid {entity_type.label} ID", entity_type=entity_type.value, entity_id=entity_id
            )
        return False

    def _not_found(self, entity_type: EntityType, entity_id: Optional[str]) -> NotFoundError:
        return NotFoundError(f"{entity_type.label} not found", entity_type=entity_type.value, entity_id=entity_id)

    async def _linked(self, entity: CatalogEntity) -> Dict[str, Optional[CatalogEntity]]:
        """Records the entity points at, keyed by the referencing field"""
        links = FORWARD_REFERENCES.get(entity.entity_type, {})
        names = [name for name in links if is_valid_identifier(getattr(entity, name))]
        found = await self._gather(
            *((self.repository.get_by_id, links[name], getattr(entity, name)) for name in names)
        )
        linked = {name: None for name in links}
        linked.update(zip(names, found))
        return linked

    async def _choices(self, entity_type: EntityType) -> Dict[str, Any]:
        """Options a form needs for its reference fields"""
        links = FORWARD_REFERENCES.get(entity_type, {})
        if not links:
            return {}
        names = list(links)
        lists = await self._gather(
            *(
                (self.repository.list_all, links[name], ENTITY_CLASSES[links[name]].list_fields,
                 ENTITY_CLASSES[links[name]].sort_field)
                for name in names
            )
        )
        choices: Dict[str, Any] = {f"{links[name].value}_choices": items for name, items in zip(names, lists)}
        if entity_type == EntityType.BOOK_INSTANCE:
            choices["status_choices"] = [status.value for status in BookInstanceStatus]
        return choices

    async def _render_form(self, entity_type: EntityType, title: str, entity: Any, errors: List[str]) -> Render:
        data = {"title": title, "entity": entity, "errors": errors}
        data.update(await self._choices(entity_type))
        return Render(f"{entity_type.value}_form", data)

    def _render_delete(self, entity: CatalogEntity, referencing) -> Render:
        return Render(
            f"{entity.entity_type.value}_delete",
            {"title": f"Delete {entity.entity_type.label}", "entity": entity, "referencing": referencing},
        )

    # ---------------------- Operations ----------------------
    async def list_entities(self, entity_type: EntityType) -> Render:
        entity_class = ENTITY_CLASSES[entity_type]
        items = await asyncio.to_thread(
            self.repository.list_all, entity_type, entity_class.list_fields, entity_class.sort_field
        )
        return Render(f"{entity_type.value}_list", {"title": f"{entity_type.label} List", "items": items})

    async def detail(self, entity_type: EntityType, entity_id: Optional[str]) -> Render:
        self._accepts_identifier(OperationKind.DETAIL, entity_type, entity_id)
        entity, related = await self._gather(
            (self.repository.get_by_id, entity_type, entity_id),
            (self.reference_checker.find_referencing, entity_type, entity_id),
        )
        if entity is None:
            raise self._not_found(entity_type, entity_id)
        data = {"title": f"{entity_type.label} Detail", "entity": entity, "related": related}
        data.update(await self._linked(entity))
        return Render(f"{entity_type.value}_detail", data)

    async def create_form(self, entity_type: EntityType) -> Render:
        return await self._render_form(entity_type, f"Create {entity_type.label}", entity=None, errors=[])

    async def create(self, entity_type: EntityType, fields: Optional[Dict[str, Any]]) -> OperationResult:
        result = validate(entity_type, fields)
        if not result.is_valid:
            return await self._render_form(
                entity_type, f"Create {entity_type.label}", entity=result.sanitized, errors=result.errors
            )

        candidate = ENTITY_CLASSES[entity_type](**result.cleaned)
        existing = await asyncio.to_thread(self.duplicate_resolver.find_existing, candidate)
        if existing is not None:
            logger.info(f"{entity_type.value} '{candidate.natural_key}' exists, redirecting to {existing.id}")
            return Redirect(existing.url)

        try:
            candidate.id = await asyncio.to_thread(self.repository.insert, candidate)
        except DuplicateKeyError:
            # a concurrent create won the race for this natural key
            existing = await asyncio.to_thread(self.duplicate_resolver.find_existing, candidate)
            if existing is None:
                raise
            logger.info(f"{entity_type.value} '{candidate.natural_key}' created concurrently as {existing.id}")
            return Redirect(existing.url)

        logger.info(f"Created {entity_type.value} {candidate.id}")
        return Redirect(candidate.url)

    async def update_form(self, entity_type: EntityType, entity_id: Optional[str]) -> Render:
        self._accepts_identifier(OperationKind.UPDATE_GET, entity_type, entity_id)
        entity = await asyncio.to_thread(self.repository.get_by_id, entity_type, entity_id)
        if entity is None:
            raise self._not_found(entity_type, entity_id)
        return await self._render_form(entity_type, f"Update {entity_type.label}", entity=entity, errors=[])

    async def update(
        self, entity_type: EntityType, entity_id: Optional[str], fields: Optional[Dict[str, Any]]
    ) -> OperationResult:
        self._accepts_identifier(OperationKind.UPDATE_POST, entity_type, entity_id)
        result = validate(entity_type, fields)
        if not result.is_valid:
            return await self._render_form(
                entity_type,
                f"Update {entity_type.label}",
                entity={**result.sanitized, "id": entity_id},
                errors=result.errors,
            )

        candidate = ENTITY_CLASSES[entity_type](**result.cleaned, id=entity_id)
        conflicting = await asyncio.to_thread(self.duplicate_resolver.find_conflicting, candidate)
        if conflicting is not None:
            logger.info(f"{entity_type.value} '{candidate.natural_key}' is held by {conflicting.id}, not renaming")
            return Redirect(conflicting.url)

        try:
            replaced = await asyncio.to_thread(self.repository.replace, candidate)
        except DuplicateKeyError:
            conflicting = await asyncio.to_thread(self.duplicate_resolver.find_conflicting, candidate)
            if conflicting is None:
                raise
            return Redirect(conflicting.url)
        if not replaced:
            raise self._not_found(entity_type, entity_id)

        logger.info(f"Updated {entity_type.value} {entity_id}")
        return Redirect(candidate.url)

    async def delete_confirmation(self, entity_type: EntityType, entity_id: Optional[str]) -> OperationResult:
        if not self._accepts_identifier(OperationKind.DELETE_GET, entity_type, entity_id):
            return Redirect(entity_type.list_path)
        entity, referencing = await self._gather(
            (self.repository.get_by_id, entity_type, entity_id),
            (self.reference_checker.find_referencing, entity_type, entity_id),
        )
        if entity is None:
            return Redirect(entity_type.list_path)
        return self._render_delete(entity, referencing)

    async def delete(self, entity_type: EntityType, entity_id: Optional[str]) -> OperationResult:
        if not self._accepts_identifier(OperationKind.DELETE_POST, entity_type, entity_id):
            return Redirect(entity_type.list_path)
        # state may have moved on since the confirmation page was rendered
        entity, referencing = await self._gather(
            (self.repository.get_by_id, entity_type, entity_id),
            (self.reference_checker.find_referencing, entity_type, entity_id),
        )
        if entity is None:
            return Redirect(entity_type.list_path)
        if referencing:
            logger.info(f"Not deleting {entity_type.value} {entity_id}: referenced by {len(referencing)} records")
            return self._render_delete(entity, referencing)

        await asyncio.to_thread(self.repository.delete, entity_type, entity_id)
        logger.info(f"Deleted {entity_type.value} {entity_id}")
        return Redirect(entity_type.list_path)

    async def summary(self) -> Render:
        """Record counts for the catalog home page"""
        books, copies, available, authors, genres = await self._gather(
            (self.repository.count, EntityType.BOOK),
            (self.repository.count, EntityType.BOOK_INSTANCE),
            (self.repository.count, EntityType.BOOK_INSTANCE, {"status": BookInstanceStatus.AVAILABLE.value}),
            (self.repository.count, EntityType.AUTHOR),
            (self.repository.count, EntityType.GENRE),
        )
        return Render(
            "index",
            {
                "title": "Local Library Home",
                "counts": {
                    "books": books,
                    "book_instances": copies,
                    "book_instances_available": available,
                    "authors": authors,
                    "genres": genres,
                },
            },
        )
