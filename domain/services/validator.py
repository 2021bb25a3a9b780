"""
Form validation for catalog entities.

The form models below are the single source of the field rules; messages
quote the same length constants the models enforce.
"""

import html
from dataclasses import dataclass, field
from datetime import date
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from domain.entities import BookInstanceStatus, EntityType, is_valid_identifier

GENRE_NAME_MIN_LENGTH = 3
GENRE_NAME_MAX_LENGTH = 100
PERSON_NAME_MAX_LENGTH = 100
TITLE_MAX_LENGTH = 200
SUMMARY_MAX_LENGTH = 2000
ISBN_MAX_LENGTH = 20
IMPRINT_MAX_LENGTH = 200


class CatalogForm(BaseModel):
    """Base for per-entity form rules.

    ``text_fields`` are free text: checked as trimmed, HTML-escaped afterwards.
    ``messages`` maps a field to messages per pydantic error type; ``"*"``
    is the field's catch-all.
    """

    model_config = ConfigDict(extra="ignore")

    text_fields: ClassVar[Tuple[str, ...]] = ()
    messages: ClassVar[Dict[str, Dict[str, str]]] = {}

    @classmethod
    def message_for(cls, error: Mapping[str, Any]) -> str:
        loc = error.get("loc") or ()
        field_name = str(loc[0]) if loc else ""
        per_field = cls.messages.get(field_name, {})
        if error.get("type") in per_field:
            return per_field[error["type"]]
        if "*" in per_field:
            return per_field["*"]
        message = str(error.get("msg", "Invalid value"))
        # pydantic prefixes errors raised from validators
        return message[len("Value error, "):] if message.startswith("Value error, ") else message


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value:
        return None
    return value


def _check_identifier(value: Any, label: str) -> str:
    if not is_valid_identifier(value):
        raise ValueError(f"{label} must be specified")
    return value


class GenreForm(CatalogForm):
    text_fields: ClassVar[Tuple[str, ...]] = ("name",)
    messages: ClassVar[Dict[str, Dict[str, str]]] = {
        "name": {
            "string_too_long": f"Genre name must not exceed {GENRE_NAME_MAX_LENGTH} characters",
            "*": f"Genre name must contain at least {GENRE_NAME_MIN_LENGTH} characters",
        },
    }

    name: str = Field(min_length=GENRE_NAME_MIN_LENGTH, max_length=GENRE_NAME_MAX_LENGTH)


class AuthorForm(CatalogForm):
    text_fields: ClassVar[Tuple[str, ...]] = ("first_name", "family_name")
    messages: ClassVar[Dict[str, Dict[str, str]]] = {
        "first_name": {
            "string_too_long": f"First name must not exceed {PERSON_NAME_MAX_LENGTH} characters",
            "*": "First name must be specified",
        },
        "family_name": {
            "string_too_long": f"Family name must not exceed {PERSON_NAME_MAX_LENGTH} characters",
            "*": "Family name must be specified",
        },
        "date_of_birth": {"*": "Invalid date of birth"},
        "date_of_death": {"*": "Invalid date of death"},
    }

    first_name: str = Field(min_length=1, max_length=PERSON_NAME_MAX_LENGTH)
    family_name: str = Field(min_length=1, max_length=PERSON_NAME_MAX_LENGTH)
    date_of_birth: Optional[date] = None
    date_of_death: Optional[date] = None

    @field_validator("date_of_birth", "date_of_death", mode="before")
    @classmethod
    def blank_dates(cls, value):
        return _blank_to_none(value)

    @model_validator(mode="after")
    def death_after_birth(self):
        if self.date_of_birth and self.date_of_death and self.date_of_death < self.date_of_birth:
            raise ValueError("Date of death must not be before date of birth")
        return self


class BookForm(CatalogForm):
    text_fields: ClassVar[Tuple[str, ...]] = ("title", "summary", "isbn")
    messages: ClassVar[Dict[str, Dict[str, str]]] = {
        "title": {
            "string_too_long": f"Title must not exceed {TITLE_MAX_LENGTH} characters",
            "*": "Title must not be empty",
        },
        "summary": {
            "string_too_long": f"Summary must not exceed {SUMMARY_MAX_LENGTH} characters",
            "*": "Summary must not be empty",
        },
        "isbn": {
            "string_too_long": f"ISBN must not exceed {ISBN_MAX_LENGTH} characters",
            "*": "ISBN must not be empty",
        },
    }

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    author: str
    summary: str = Field(min_length=1, max_length=SUMMARY_MAX_LENGTH)
    isbn: str = Field(min_length=1, max_length=ISBN_MAX_LENGTH)
    genre: str

    @field_validator("author", mode="before")
    @classmethod
    def author_reference(cls, value):
        return _check_identifier(value, "Author")

    @field_validator("genre", mode="before")
    @classmethod
    def genre_reference(cls, value):
        return _check_identifier(value, "Genre")


class BookInstanceForm(CatalogForm):
    text_fields: ClassVar[Tuple[str, ...]] = ("imprint",)
    messages: ClassVar[Dict[str, Dict[str, str]]] = {
        "imprint": {
            "string_too_long": f"Imprint must not exceed {IMPRINT_MAX_LENGTH} characters",
            "*": "Imprint must be specified",
        },
        "status": {"*": "Status must be one of " + ", ".join(s.value for s in BookInstanceStatus)},
        "due_back": {"*": "Invalid date"},
    }

    book: str
    imprint: str = Field(min_length=1, max_length=IMPRINT_MAX_LENGTH)
    status: BookInstanceStatus = BookInstanceStatus.MAINTENANCE
    due_back: Optional[date] = None

    @field_validator("due_back", mode="before")
    @classmethod
    def blank_due_back(cls, value):
        return _blank_to_none(value)

    @field_validator("book", mode="before")
    @classmethod
    def book_reference(cls, value):
        return _check_identifier(value, "Book")

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, value):
        return value or BookInstanceStatus.MAINTENANCE


FORMS: Dict[EntityType, Type[CatalogForm]] = {
    EntityType.GENRE: GenreForm,
    EntityType.AUTHOR: AuthorForm,
    EntityType.BOOK: BookForm,
    EntityType.BOOK_INSTANCE: BookInstanceForm,
}


@dataclass
class ValidationResult:
    sanitized: Dict[str, Any]
    errors: List[str] = field(default_factory=list)
    cleaned: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def trim(entity_type: EntityType, raw_fields: Mapping[str, Any]) -> Dict[str, str]:
    """Every declared field as trimmed text, missing ones as empty strings"""
    trimmed = {}
    for name in FORMS[entity_type].model_fields:
        value = raw_fields.get(name)
        trimmed[name] = "" if value is None else str(value).strip()
    return trimmed


def escape_text(entity_type: EntityType, values: Dict[str, Any]) -> Dict[str, Any]:
    """Escape markup in the free-text fields, leaving the rest untouched"""
    text_fields = FORMS[entity_type].text_fields
    return {
        name: html.escape(value) if name in text_fields and isinstance(value, str) else value
        for name, value in values.items()
    }


def sanitize(entity_type: EntityType, raw_fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Trim every declared field, escape markup in the free-text ones"""
    return escape_text(entity_type, trim(entity_type, raw_fields))


def validate(entity_type: EntityType, raw_fields: Optional[Mapping[str, Any]]) -> ValidationResult:
    """Check submitted fields against the entity's form rules.

    Length rules apply to the trimmed text as submitted; escaping happens
    afterwards. Returns the sanitized submission together with the ordered
    error messages; ``cleaned`` holds typed, escaped values ready for the
    entity only when there are no errors.
    """
    form = FORMS[entity_type]
    trimmed = trim(entity_type, raw_fields or {})
    sanitized = escape_text(entity_type, trimmed)
    try:
        parsed = form.model_validate(trimmed)
    except ValidationError as e:
        order = list(form.model_fields)

        def position(error):
            loc = error.get("loc") or ()
            return order.index(loc[0]) if loc and loc[0] in order else len(order)

        errors = sorted(e.errors(), key=position)
        return ValidationResult(sanitized=sanitized, errors=[form.message_for(error) for error in errors])
    cleaned = escape_text(entity_type, parsed.model_dump())
    for name, value in cleaned.items():
        if isinstance(value, BookInstanceStatus):
            cleaned[name] = value.value
    return ValidationResult(sanitized=sanitized, cleaned=cleaned)
