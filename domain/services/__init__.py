from .collation import Collation, CollationStrength
from .duplicate_resolver import DuplicateResolver
from .reference_checker import ReferenceChecker
from .validator import ValidationResult, validate

__all__ = [
    "Collation",
    "CollationStrength",
    "DuplicateResolver",
    "ReferenceChecker",
    "ValidationResult",
    "validate",
]
