from typing import Dict, List, Tuple

from domain.entities import Book, BookInstance, CatalogEntity, EntitySummary, EntityType
from domain.repositories import CatalogRepository

# referenced type -> (referencing type, field holding the reference)
REFERENCES: Dict[EntityType, Tuple[EntityType, str]] = {
    EntityType.GENRE: (EntityType.BOOK, "genre"),
    EntityType.AUTHOR: (EntityType.BOOK, "author"),
    EntityType.BOOK: (EntityType.BOOK_INSTANCE, "book"),
}

# the same links seen from the referencing side
FORWARD_REFERENCES: Dict[EntityType, Dict[str, EntityType]] = {
    EntityType.BOOK: {"author": EntityType.AUTHOR, "genre": EntityType.GENRE},
    EntityType.BOOK_INSTANCE: {"book": EntityType.BOOK},
}

SUMMARY_FIELDS: Dict[EntityType, Tuple[str, ...]] = {
    EntityType.BOOK: ("title", "summary"),
    EntityType.BOOK_INSTANCE: ("imprint", "status"),
}


def summarize(entity: CatalogEntity) -> EntitySummary:
    if isinstance(entity, Book):
        detail = entity.summary
    elif isinstance(entity, BookInstance):
        detail = entity.status
    else:
        detail = None
    return EntitySummary(entity_type=entity.entity_type, id=entity.id, label=entity.label, detail=detail)


class ReferenceChecker:
    """Lists the records that hold an entity's identifier; an empty list means it can be deleted"""

    def __init__(self, repository: CatalogRepository):
        self.repository = repository

    def find_referencing(self, entity_type: EntityType, entity_id: str) -> List[EntitySummary]:
        if entity_type not in REFERENCES:
            return []
        referencing_type, field = REFERENCES[entity_type]
        records = self.repository.find_by_reference(
            referencing_type, field, entity_id, fields=SUMMARY_FIELDS[referencing_type]
        )
        summaries = [summarize(record) for record in records]
        summaries.sort(key=lambda summary: summary.label)
        return summaries
