"""Value Objects for cursor pagination."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from lincli.domain.models.common import Cursor


class Direction(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


@dataclass(frozen=True)
class PaginationOptions:
    """How much of a connection to fetch and from where.

    With neither `all` nor `limit` set, exactly one page is fetched.
    """
    limit: Optional[int] = None
    after: Optional[Cursor] = None
    before: Optional[Cursor] = None
    page_size: Optional[int] = None
    all: bool = False

    @property
    def has_conflicting_cursors(self) -> bool:
        return self.after is not None and self.before is not None

    @property
    def direction(self) -> Direction:
        # `before` alone walks backward; with both cursors `before` is dropped
        if self.before is not None and self.after is None:
            return Direction.BACKWARD
        return Direction.FORWARD

    @property
    def walks_past_first_page(self) -> bool:
        """True when traversal may continue past the first page."""
        return self.all or self.limit is not None

    def effective_page_size(self, default_page_size: int) -> int:
        size = self.page_size if self.page_size is not None else default_page_size
        return max(size, 1)
