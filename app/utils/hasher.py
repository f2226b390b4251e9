"""
Cache key generation utilities.

Sandi Metz Principles:
- Single Responsibility: Hash generation
- Small functions: Each does one thing
- Pure functions: No side effects
"""

import hashlib
import re

# String literals are matched first so comment markers inside them survive.
_SQL_LITERAL_OR_COMMENT = re.compile(
    r"('(?:[^']|'')*'|\"(?:[^\"]|\"\")*\")|(--[^\n]*|/\*.*?\*/)",
    re.DOTALL,
)
_WHITESPACE = re.compile(r"\s+")


def hash_text(text: str) -> str:
    """
    Hash already-normalized text.

    Args:
        text: Normalized text

    Returns:
        Lowercase hex SHA-256 digest
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def normalize_sql(sql: str) -> str:
    """
    Normalize SQL text for exact-match caching.

    Strips line and block comments, lowercases and collapses whitespace
    outside string literals. Literals are kept verbatim, so 'Alice' and
    'alice' produce different keys.

    Args:
        sql: SQL text

    Returns:
        Normalized SQL text
    """
    pieces = []
    code = []
    position = 0

    for match in _SQL_LITERAL_OR_COMMENT.finditer(sql):
        code.append(sql[position : match.start()])
        position = match.end()
        if match.group(1) is None:
            code.append(" ")
            continue
        pieces.append(_normalize_code("".join(code)))
        pieces.append(match.group(1))
        code = []

    code.append(sql[position:])
    pieces.append(_normalize_code("".join(code)))
    return "".join(pieces).strip()


def _normalize_code(code: str) -> str:
    """Lowercase SQL outside literals and collapse its whitespace."""
    return _WHITESPACE.sub(" ", code.lower())


def generate_sql_key(sql: str) -> str:
    """
    Generate cache key for SQL text.

    Args:
        sql: SQL text

    Returns:
        Cache key (hex SHA-256 of the normalized SQL)
    """
    return hash_text(normalize_sql(sql))
