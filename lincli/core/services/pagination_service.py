"""Pagination Service: walks GraphQL cursor connections.

Two entry points share one cursor-walking loop:
- paginate_nodes materializes every page into one list;
- stream_nodes hands each page to an async handler and keeps nothing,
  for memory-bounded exports.

Pages are fetched strictly in order, since each request depends on the
cursor returned by the previous one.
"""

import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

from lincli.domain.interfaces.transport import GraphQLTransport
from lincli.domain.models.common import (
    Cursor, GraphQLDocument, JsonPath, JsonValue, get_path
)
from lincli.domain.models.pagination import Direction, PaginationOptions

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 250  # Largest page the API serves

BatchHandler = Callable[[List[JsonValue]], Awaitable[Any]]


class PaginationService:
    """Drives repeated queries against a cursor-paginated connection."""

    def __init__(self, transport: GraphQLTransport):
        self.transport = transport

    async def paginate_nodes(
        self,
        query: GraphQLDocument,
        variables: Optional[Dict[str, JsonValue]],
        nodes_path: JsonPath,
        page_info_path: JsonPath,
        options: PaginationOptions,
        default_page_size: int = DEFAULT_PAGE_SIZE,
    ) -> List[JsonValue]:
        """Fetches pages until a stopping condition holds and returns all nodes.

        Args:
            query: GraphQL document accepting first/after and/or last/before.
            variables: Extra variables sent with every page request.
            nodes_path: Path to the node list in each response.
            page_info_path: Path to the pageInfo object in each response.
            options: Limit, cursors, page size and the fetch-all flag.
            default_page_size: Page size used when options do not set one.

        Returns:
            The accumulated nodes, truncated to `options.limit` if set.
        """
        items: List[JsonValue] = []
        async for batch in self._walk_pages(
            query, variables, nodes_path, page_info_path, options, default_page_size,
            stop_on_empty=False,
        ):
            items.extend(batch)
        return items

    async def stream_nodes(
        self,
        query: GraphQLDocument,
        variables: Optional[Dict[str, JsonValue]],
        nodes_path: JsonPath,
        page_info_path: JsonPath,
        options: PaginationOptions,
        handler: BatchHandler,
        default_page_size: int = DEFAULT_PAGE_SIZE,
    ) -> int:
        """Fetches pages and passes each batch to `handler` as it arrives.

        An empty page ends the walk even if the server claims more pages.

        Returns:
            Total number of nodes handed to the handler.
        """
        total = 0
        async for batch in self._walk_pages(
            query, variables, nodes_path, page_info_path, options, default_page_size,
            stop_on_empty=True,
        ):
            await handler(batch)
            total += len(batch)
        return total

    async def _walk_pages(
        self,
        query: GraphQLDocument,
        variables: Optional[Dict[str, JsonValue]],
        nodes_path: JsonPath,
        page_info_path: JsonPath,
        options: PaginationOptions,
        default_page_size: int,
        stop_on_empty: bool,
    ) -> AsyncIterator[List[JsonValue]]:
        if options.has_conflicting_cursors:
            logger.warning("Both 'after' and 'before' cursors given; ignoring 'before' and paginating forward.")

        direction = options.direction
        forward = direction is Direction.FORWARD
        cursor: Optional[Cursor] = options.after if forward else options.before
        limit = None if options.all else options.limit
        page_size = min(options.effective_page_size(default_page_size), MAX_PAGE_SIZE)
        request_vars: Dict[str, JsonValue] = dict(variables or {})
        fetched = 0
        page_number = 0

        while True:
            remaining = limit - fetched if limit is not None else page_size
            batch_size = max(1, min(remaining, page_size))
            page_number += 1
            set_cursor_variables(request_vars, direction, batch_size, cursor)
            logger.debug(f"Fetching page {page_number} ({direction.value}, size={batch_size}, cursor={cursor})")

            result = await self.transport.query(query, dict(request_vars))

            nodes = get_path(result, nodes_path)
            batch = list(nodes) if isinstance(nodes, list) else []

            if stop_on_empty and not batch:
                logger.debug(f"Page {page_number} returned no nodes; stopping.")
                return

            if limit is not None and fetched + len(batch) >= limit:
                yield batch[: limit - fetched]
                return

            fetched += len(batch)
            yield batch

            if not options.walks_past_first_page:
                return

            cursor = next_cursor(get_path(result, page_info_path), direction)
            if cursor is None:
                return


def set_cursor_variables(
    variables: Dict[str, JsonValue],
    direction: Direction,
    batch_size: int,
    cursor: Optional[Cursor],
) -> None:
    """Writes first/after or last/before into `variables`, removing the other pair."""
    if direction is Direction.FORWARD:
        size_key, cursor_key, stale = "first", "after", ("last", "before")
    else:
        size_key, cursor_key, stale = "last", "before", ("first", "after")

    variables[size_key] = batch_size
    if cursor is not None:
        variables[cursor_key] = cursor
    else:
        variables.pop(cursor_key, None)
    for key in stale:
        variables.pop(key, None)


def next_cursor(page_info: JsonValue, direction: Direction) -> Optional[Cursor]:
    """Cursor for the next page, or None when the walk should stop.

    A "has more" flag without a cursor (malformed response) also stops.
    """
    if not isinstance(page_info, dict):
        return None
    if direction is Direction.FORWARD:
        has_more, cursor = page_info.get("hasNextPage"), page_info.get("endCursor")
    else:
        has_more, cursor = page_info.get("hasPreviousPage"), page_info.get("startCursor")
    if has_more is not True or not isinstance(cursor, str):
        return None
    return Cursor(cursor)
