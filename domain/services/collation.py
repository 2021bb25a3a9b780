"""
Collation keys for natural-key comparison.

Two strings collate equal when their keys are equal:

    SECONDARY: ignores case, keeps accents   ("Fiction" == "FICTION", "Éclair" != "Eclair")
    PRIMARY:   ignores case and accents      ("Éclair" == "eclair")
"""

import unicodedata
from dataclasses import dataclass
from enum import Enum


class CollationStrength(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class Collation:
    strength: CollationStrength = CollationStrength.SECONDARY

    def key(self, text: str) -> str:
        decomposed = unicodedata.normalize("NFKD", text or "")
        if self.strength == CollationStrength.PRIMARY:
            decomposed = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
        return unicodedata.normalize("NFC", decomposed.casefold())

    def equal(self, left: str, right: str) -> bool:
        return self.key(left) == self.key(right)

    @classmethod
    def from_name(cls, name: str) -> "Collation":
        return cls(CollationStrength(name.strip().lower()))
