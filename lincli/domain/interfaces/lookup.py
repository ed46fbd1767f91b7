"""Interface for resolvable entity types.

An EntityLookup describes how to turn a human-typed identifier into a
canonical ID for one kind of entity: which cache file holds the full
catalog, which server-side filtered query to try first, which paginated
query lists everything, and how to pick a match among candidates. The
resolver service runs the same traversal for every lookup.
"""

import abc
from typing import List, Optional, Sequence

from ..models.cache import CacheType
from ..models.common import CanonicalId, GraphQLDocument, JsonPath, JsonValue

class EntityLookup(abc.ABC):
    """Abstract Base Class for a resolvable entity type."""

    #: Human-readable entity name, used in logs ("team", "user", ...)
    entity_name: str = "entity"
    cache_type: CacheType
    filtered_query: GraphQLDocument
    filtered_variable: str
    filtered_nodes_path: JsonPath
    paginated_query: GraphQLDocument
    nodes_path: JsonPath
    page_info_path: JsonPath

    @abc.abstractmethod
    def match(self, candidates: Sequence[JsonValue], human_input: str) -> Optional[CanonicalId]:
        """Picks the ID of the node matching the input, if any.

        Args:
            candidates: Node objects in server-returned order.
            human_input: The identifier as typed by the user.

        Returns:
            The matching node's ID, or None.
        """
        pass

    @abc.abstractmethod
    def not_found_message(self, human_input: str) -> str:
        """Message for the final NotFound error, with a remediation hint."""
        pass

    def columns(self) -> List[str]:
        """Node fields shown when listing this entity type."""
        return ["id", "name"]
