"""Interface for the GraphQL transport.

The data-access core never builds HTTP requests itself. It talks to the
backend through this contract and treats every document and response as
opaque JSON.
"""

import abc
from typing import Optional

from ..models.common import GraphQLDocument, JsonValue

class GraphQLTransport(abc.ABC):
    """Abstract Base Class for backend access.

    Implementations raise ApiError (see domain.models.errors) so callers
    can consult `is_retryable()` and `retry_after`.
    """

    @abc.abstractmethod
    async def query(self, document: GraphQLDocument, variables: Optional[JsonValue] = None) -> JsonValue:
        """Executes a GraphQL query and returns the decoded response body.

        Args:
            document: The GraphQL query text.
            variables: Optional JSON object of variables.

        Returns:
            The full response document (including the top-level "data" key).
        """
        pass

    @abc.abstractmethod
    async def mutate(self, document: GraphQLDocument, variables: Optional[JsonValue] = None) -> JsonValue:
        """Executes a GraphQL mutation.

        Mutations may be retried; the backend is assumed to treat creates
        and updates as safely re-appliable.
        """
        pass

    @abc.abstractmethod
    async def fetch_bytes(self, url: str) -> bytes:
        """Downloads an authenticated resource (e.g. an upload) as bytes."""
        pass
