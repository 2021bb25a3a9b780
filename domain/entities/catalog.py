import uuid
from dataclasses import dataclass, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple


class EntityType(str, Enum):
    GENRE = "genre"
    AUTHOR = "author"
    BOOK = "book"
    BOOK_INSTANCE = "bookinstance"

    @property
    def plural(self) -> str:
        return f"{self.value}s"

    @property
    def label(self) -> str:
        return {"bookinstance": "Book Instance"}.get(self.value, self.value.capitalize())

    @property
    def list_path(self) -> str:
        return f"/catalog/{self.plural}"

    def detail_path(self, entity_id: Optional[str]) -> str:
        return f"/catalog/{self.value}/{entity_id}"

    @classmethod
    def from_plural(cls, plural: str) -> "EntityType":
        for entity_type in cls:
            if entity_type.plural == plural:
                return entity_type
        raise ValueError(f"Unknown entity collection: {plural}")


class BookInstanceStatus(str, Enum):
    AVAILABLE = "Available"
    MAINTENANCE = "Maintenance"
    LOANED = "Loaned"
    RESERVED = "Reserved"


def new_identifier() -> str:
    return str(uuid.uuid4())


def is_valid_identifier(value: Any) -> bool:
    """Whether ``value`` is a store identifier in its canonical lowercase dashed form"""
    if not isinstance(value, str) or not value:
        return False
    try:
        return str(uuid.UUID(value)) == value
    except ValueError:
        return False


def format_date(value: Optional[date]) -> str:
    """en-US style ``M/D/YYYY``, empty string when absent"""
    if value is None:
        return ""
    return f"{value.month}/{value.day}/{value.year}"


def format_date_iso(value: Optional[date]) -> str:
    if value is None:
        return ""
    return value.isoformat()


def _as_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


class CatalogEntity:
    """Shared behaviour of the catalog dataclasses.

    Subclasses declare which fields the list view projects, which field the
    list is sorted by, and which fields hold calendar dates.
    """

    entity_type: ClassVar[EntityType]
    list_fields: ClassVar[Tuple[str, ...]] = ()
    sort_field: ClassVar[str] = ""
    date_fields: ClassVar[Tuple[str, ...]] = ()
    has_natural_key: ClassVar[bool] = False

    id: Optional[str]

    @property
    def url(self) -> str:
        return self.entity_type.detail_path(self.id)

    @property
    def natural_key(self) -> Optional[str]:
        """Human-meaningful key used for duplicate detection, None if the type has none"""
        return None

    @property
    def label(self) -> str:
        return str(getattr(self, self.sort_field, "") or "")

    def to_record(self) -> Dict[str, Any]:
        """Stored fields, without the identifier"""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "id"}

    @classmethod
    def from_record(cls, record: Dict[str, Any]):
        values = {}
        for f in fields(cls):
            if f.name not in record:
                continue
            value = record[f.name]
            if f.name in cls.date_fields:
                value = _as_date(value)
            values[f.name] = value
        return cls(**values)

    def derived(self) -> Dict[str, Any]:
        return {"url": self.url}

    def to_view(self) -> Dict[str, Any]:
        view = {"id": self.id, **self.to_record()}
        for name in self.date_fields:
            view[name] = format_date_iso(view[name]) or None
        view.update(self.derived())
        return view


@dataclass
class Genre(CatalogEntity):
    entity_type: ClassVar[EntityType] = EntityType.GENRE
    list_fields: ClassVar[Tuple[str, ...]] = ("name",)
    sort_field: ClassVar[str] = "name"
    has_natural_key: ClassVar[bool] = True

    name: str = ""
    id: Optional[str] = None

    @property
    def natural_key(self) -> Optional[str]:
        return self.name or None


@dataclass
class Author(CatalogEntity):
    entity_type: ClassVar[EntityType] = EntityType.AUTHOR
    list_fields: ClassVar[Tuple[str, ...]] = ("first_name", "family_name", "date_of_birth", "date_of_death")
    sort_field: ClassVar[str] = "family_name"
    has_natural_key: ClassVar[bool] = True
    date_fields: ClassVar[Tuple[str, ...]] = ("date_of_birth", "date_of_death")

    first_name: str = ""
    family_name: str = ""
    date_of_birth: Optional[date] = None
    date_of_death: Optional[date] = None
    id: Optional[str] = None

    @property
    def name(self) -> str:
        if self.first_name and self.family_name:
            return f"{self.family_name}, {self.first_name}"
        return ""

    @property
    def natural_key(self) -> Optional[str]:
        return self.name or None

    @property
    def label(self) -> str:
        return self.name

    @property
    def date_of_birth_formatted(self) -> str:
        return format_date(self.date_of_birth)

    @property
    def date_of_death_formatted(self) -> str:
        return format_date(self.date_of_death)

    @property
    def date_of_birth_yyyy_mm_dd(self) -> str:
        return format_date_iso(self.date_of_birth)

    @property
    def date_of_death_yyyy_mm_dd(self) -> str:
        return format_date_iso(self.date_of_death)

    @property
    def lifespan(self) -> str:
        if not self.date_of_birth and not self.date_of_death:
            return ""
        return f"{self.date_of_birth_formatted} - {self.date_of_death_formatted}"

    def derived(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "name": self.name,
            "lifespan": self.lifespan,
            "date_of_birth_formatted": self.date_of_birth_formatted,
            "date_of_death_formatted": self.date_of_death_formatted,
            "date_of_birth_yyyy_mm_dd": self.date_of_birth_yyyy_mm_dd,
            "date_of_death_yyyy_mm_dd": self.date_of_death_yyyy_mm_dd,
        }


@dataclass
class Book(CatalogEntity):
    entity_type: ClassVar[EntityType] = EntityType.BOOK
    list_fields: ClassVar[Tuple[str, ...]] = ("title", "author")
    sort_field: ClassVar[str] = "title"
    has_natural_key: ClassVar[bool] = True

    title: str = ""
    author: Optional[str] = None
    summary: str = ""
    isbn: str = ""
    genre: Optional[str] = None
    id: Optional[str] = None

    @property
    def natural_key(self) -> Optional[str]:
        return self.isbn or None


@dataclass
class BookInstance(CatalogEntity):
    entity_type: ClassVar[EntityType] = EntityType.BOOK_INSTANCE
    list_fields: ClassVar[Tuple[str, ...]] = ("book", "imprint", "status", "due_back")
    sort_field: ClassVar[str] = "imprint"
    date_fields: ClassVar[Tuple[str, ...]] = ("due_back",)

    book: Optional[str] = None
    imprint: str = ""
    status: str = BookInstanceStatus.MAINTENANCE.value
    due_back: Optional[date] = None
    id: Optional[str] = None

    @property
    def due_back_formatted(self) -> str:
        return format_date(self.due_back)

    @property
    def due_back_yyyy_mm_dd(self) -> str:
        return format_date_iso(self.due_back)

    def derived(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "due_back_formatted": self.due_back_formatted,
            "due_back_yyyy_mm_dd": self.due_back_yyyy_mm_dd,
        }


ENTITY_CLASSES = {
    EntityType.GENRE: Genre,
    EntityType.AUTHOR: Author,
    EntityType.BOOK: Book,
    EntityType.BOOK_INSTANCE: BookInstance,
}


@dataclass
class EntitySummary:
    """Minimal projection of a record, used where one entity lists others"""

    entity_type: EntityType
    id: str
    label: str
    detail: Optional[str] = None

    @property
    def url(self) -> str:
        return self.entity_type.detail_path(self.id)

    def to_view(self) -> Dict[str, Any]:
        return {
            "entity_type": self.entity_type.value,
            "id": self.id,
            "label": self.label,
            "detail": self.detail,
            "url": self.url,
        }
