"""Export Service: streams issues to CSV page by page.

Only one page of issues is held in memory at a time; each batch is
written and flushed before the next page is requested.
"""

import csv
import logging
from typing import Any, Dict, List, Optional, TextIO

from lincli.core.services.pagination_service import PaginationService
from lincli.domain.models.common import GraphQLDocument, JsonValue, get_path
from lincli.domain.models.pagination import PaginationOptions

logger = logging.getLogger(__name__)

ISSUES_QUERY = GraphQLDocument("""
    query($first: Int, $after: String, $last: Int, $before: String, $filter: IssueFilter) {
        issues(first: $first, after: $after, last: $last, before: $before, filter: $filter) {
            nodes {
                id identifier title priority createdAt updatedAt
                state { name }
                assignee { name }
                team { key }
            }
            pageInfo { hasNextPage endCursor hasPreviousPage startCursor }
        }
    }
""")
ISSUES_NODES_PATH = ("data", "issues", "nodes")
ISSUES_PAGE_INFO_PATH = ("data", "issues", "pageInfo")

# (CSV header, path inside an issue node)
ISSUE_COLUMNS = [
    ("id", ("id",)),
    ("identifier", ("identifier",)),
    ("title", ("title",)),
    ("state", ("state", "name")),
    ("assignee", ("assignee", "name")),
    ("team", ("team", "key")),
    ("priority", ("priority",)),
    ("created_at", ("createdAt",)),
    ("updated_at", ("updatedAt",)),
]

EXPORT_PAGE_SIZE = 100


def issue_row(node: JsonValue) -> List[str]:
    """Flattens one issue node into CSV cells (missing values become empty)."""
    row = []
    for _, path in ISSUE_COLUMNS:
        value = get_path(node, path)
        row.append("" if value is None else str(value))
    return row


class ExportService:
    """Writes paginated issue listings to CSV."""

    def __init__(self, pagination: PaginationService):
        self.pagination = pagination

    async def export_issues(
        self,
        out: TextIO,
        options: PaginationOptions,
        team_id: Optional[str] = None,
    ) -> int:
        """Streams issues matching the filter to `out` as CSV.

        Args:
            out: Text stream the CSV is written to.
            options: Limit, cursors, page size and fetch-all flag.
            team_id: Restrict the export to one team.

        Returns:
            Number of issues written.
        """
        variables: Dict[str, Any] = {}
        if team_id:
            variables["filter"] = {"team": {"id": {"eq": team_id}}}

        writer = csv.writer(out)
        writer.writerow([header for header, _ in ISSUE_COLUMNS])

        async def write_batch(batch: List[JsonValue]) -> None:
            writer.writerows(issue_row(node) for node in batch)
            out.flush()
            logger.debug(f"Exported batch of {len(batch)} issues")

        total = await self.pagination.stream_nodes(
            ISSUES_QUERY, variables, ISSUES_NODES_PATH, ISSUES_PAGE_INFO_PATH,
            options, write_batch, EXPORT_PAGE_SIZE,
        )
        logger.info(f"Exported {total} issues")
        return total
