"""Defines common Value Objects used across different domain contexts.

These objects represent simple values like canonical IDs, cursors and
JSON paths, ensuring consistency across the resolver, pagination and
cache contexts.
"""

from typing import Any, NewType, Sequence

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are strings at runtime.
CanonicalId = NewType("CanonicalId", str)      # Backend UUID for an entity
HumanInput = NewType("HumanInput", str)        # Name, key, email or "me" as typed by the user
Cursor = NewType("Cursor", str)                # Opaque pagination token (endCursor/startCursor)
GraphQLDocument = NewType("GraphQLDocument", str)

# GraphQL responses are opaque JSON trees
JsonValue = Any
JsonPath = Sequence[str]                       # e.g. ("data", "teams", "nodes")

UUID_LENGTH = 36
UUID_DASH_COUNT = 4


def is_uuid(value: str) -> bool:
    """Returns True if the value already has the canonical ID shape."""
    return len(value) == UUID_LENGTH and value.count("-") == UUID_DASH_COUNT


def get_path(value: JsonValue, path: JsonPath) -> JsonValue:
    """Walks a JSON tree by object keys, returning None on the first miss."""
    current = value
    for part in path:
        if not isinstance(current, dict):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current
