"""
rules package for cmdwarden

This package contains the pattern catalog the scanner and hook validator
match against.
"""

from .catalog import (
    CAUTION_PATTERNS,
    CURATED_SOURCES,
    DANGEROUS_PATTERNS,
    WILDCARD_GRANT_PATTERNS,
    Pattern,
    all_patterns,
    is_curated_source,
)

__all__ = [
    "Pattern",
    "DANGEROUS_PATTERNS",
    "CAUTION_PATTERNS",
    "WILDCARD_GRANT_PATTERNS",
    "CURATED_SOURCES",
    "all_patterns",
    "is_curated_source",
]
