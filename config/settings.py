"""Runtime settings read from the environment (see config/env.py for .env loading)."""

import os
from dataclasses import dataclass
from typing import Optional

from domain.services.collation import Collation


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class CatalogSettings:
    store: str = "neo4j"
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = "password"
    neo4j_database: Optional[str] = None
    collation_strength: str = "secondary"
    log_level: str = "INFO"

    @property
    def use_memory_store(self) -> bool:
        return self.store == "memory"

    @property
    def collation(self) -> Collation:
        return Collation.from_name(self.collation_strength)

    @classmethod
    def from_env(cls) -> "CatalogSettings":
        store = os.getenv("CATALOG_STORE", "neo4j").strip().lower()
        # USE_MOCK_NEO4J=true forces the in-memory store
        if _flag("USE_MOCK_NEO4J"):
            store = "memory"
        return cls(
            store=store,
            neo4j_uri=os.getenv("NEO4J_URI", "bolt://localhost:7687"),
            neo4j_user=os.getenv("NEO4J_USER", "neo4j"),
            neo4j_password=os.getenv("NEO4J_PASSWORD", "password"),
            neo4j_database=os.getenv("NEO4J_DATABASE") or None,
            collation_strength=os.getenv("CATALOG_COLLATION_STRENGTH", "secondary"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
