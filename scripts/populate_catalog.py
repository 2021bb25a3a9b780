#!/usr/bin/env python3
"""Load a small sample catalog through the lifecycle use case.

Every record goes through validation and duplicate resolution: a second run
reuses the stored genres, authors and books, and only adds more copies.

Usage:
    python scripts/populate_catalog.py
    CATALOG_STORE=memory python scripts/populate_catalog.py  # dry run against the in-memory store
"""

import asyncio
import logging
import os
import sys
from typing import Any, Dict

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from config import env  # noqa: F401,E402
from config.settings import CatalogSettings  # noqa: E402
from domain.entities import EntityType, OperationKind, OperationRequest, Redirect  # noqa: E402
from domain.use_cases import EntityLifecycleUseCase  # noqa: E402
from infrastructure.database import create_repository  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

GENRES = ["Fantasy", "Science Fiction", "French Poetry"]

AUTHORS = [
    {"first_name": "Patrick", "family_name": "Rothfuss", "date_of_birth": "1973-06-06"},
    {"first_name": "Ben", "family_name": "Bova", "date_of_birth": "1932-11-08"},
    {"first_name": "Isaac", "family_name": "Asimov", "date_of_birth": "1920-01-02", "date_of_death": "1992-04-06"},
    {"first_name": "Bob", "family_name": "Billings"},
]

# (title, author family name, genre, isbn, summary)
BOOKS = [
    (
        "The Name of the Wind (The Kingkiller Chronicle, #1)",
        "Rothfuss",
        "Fantasy",
        "9781473211896",
        "I have stolen princesses back from sleeping barrow kings. I burned down the town of Trebon.",
    ),
    (
        "The Wise Man's Fear (The Kingkiller Chronicle, #2)",
        "Rothfuss",
        "Fantasy",
        "9788401352836",
        "Picking up the tale of Kvothe Kingkiller once again, we follow him into exile.",
    ),
    (
        "Apes and Angels",
        "Bova",
        "Science Fiction",
        "9780765379528",
        "Humankind headed out to the stars not for conquest, nor exploration, nor even for curiosity.",
    ),
    (
        "The Gods Themselves",
        "Asimov",
        "Science Fiction",
        "9780553288100",
        "Only a handful of people know that the Electron Pump is about to destroy the universe.",
    ),
]

# (book title, imprint, status, due back)
COPIES = [
    ("The Name of the Wind (The Kingkiller Chronicle, #1)", "London Gollancz, 2014.", "Available", ""),
    ("The Name of the Wind (The Kingkiller Chronicle, #1)", "Gollancz, 2011.", "Loaned", "2026-11-01"),
    ("The Wise Man's Fear (The Kingkiller Chronicle, #2)", "Gollancz, 2011.", "Maintenance", ""),
    ("Apes and Angels", "New York Tom Doherty Associates, 2016.", "Available", ""),
    ("The Gods Themselves", "Bantam Spectra, 1990.", "Reserved", ""),
]


async def create(use_case: EntityLifecycleUseCase, entity_type: EntityType, fields: Dict[str, Any]) -> str:
    """Create one record and return the id it ended up with (new or existing)"""
    result = await use_case.execute(
        OperationRequest(kind=OperationKind.CREATE_POST, entity_type=entity_type, fields=fields)
    )
    if not isinstance(result, Redirect):
        raise RuntimeError(f"Could not create {entity_type.value} {fields}: {result}")
    return result.path.rsplit("/", 1)[-1]


async def populate(use_case: EntityLifecycleUseCase) -> None:
    genres = {name: await create(use_case, EntityType.GENRE, {"name": name}) for name in GENRES}
    logger.info(f"Genres: {len(genres)}")

    authors = {}
    for fields in AUTHORS:
        authors[fields["family_name"]] = await create(use_case, EntityType.AUTHOR, fields)
    logger.info(f"Authors: {len(authors)}")

    books = {}
    for title, family_name, genre, isbn, summary in BOOKS:
        books[title] = await create(
            use_case,
            EntityType.BOOK,
            {"title": title, "author": authors[family_name], "genre": genres[genre], "isbn": isbn, "summary": summary},
        )
    logger.info(f"Books: {len(books)}")

    for title, imprint, status, due_back in COPIES:
        await create(
            use_case,
            EntityType.BOOK_INSTANCE,
            {"book": books[title], "imprint": imprint, "status": status, "due_back": due_back},
        )
    logger.info(f"Book instances: {len(COPIES)}")


def main():
    repository = create_repository(CatalogSettings.from_env())
    try:
        asyncio.run(populate(EntityLifecycleUseCase(repository)))
        logger.info("Done!")
    finally:
        repository.close()


if __name__ == "__main__":
    main()
