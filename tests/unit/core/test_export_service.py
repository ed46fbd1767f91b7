import csv
import io

import pytest

from conftest import FakeTransport, connection_page
from lincli.core.services.export_service import ExportService, issue_row
from lincli.core.services.pagination_service import PaginationService
from lincli.domain.models.pagination import PaginationOptions


def issue(n, state="Todo", assignee="Ada"):
    return {
        "id": f"id-{n}",
        "identifier": f"ENG-{n}",
        "title": f"Issue, number {n}",
        "priority": 2,
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-01-02T00:00:00.000Z",
        "state": {"name": state},
        "assignee": {"name": assignee} if assignee else None,
        "team": {"key": "ENG"},
    }


@pytest.mark.asyncio
async def test_export_streams_all_pages_to_csv():
    transport = FakeTransport([
        connection_page("issues", [issue(1), issue(2)], has_next=True, end_cursor="c1"),
        connection_page("issues", [issue(3, assignee=None)]),
    ])
    out = io.StringIO()

    total = await ExportService(PaginationService(transport)).export_issues(
        out, PaginationOptions(all=True, page_size=2)
    )

    rows = list(csv.reader(io.StringIO(out.getvalue())))
    assert total == 3
    assert rows[0][:3] == ["id", "identifier", "title"]
    assert rows[1][2] == "Issue, number 1"
    assert rows[3][4] == ""
    assert len(rows) == 4


@pytest.mark.asyncio
async def test_export_filters_by_team():
    transport = FakeTransport([connection_page("issues", [])])
    await ExportService(PaginationService(transport)).export_issues(
        io.StringIO(), PaginationOptions(), team_id="team-eng-id"
    )
    assert transport.variables[0]["filter"] == {"team": {"id": {"eq": "team-eng-id"}}}
    assert transport.variables[0]["first"] == 100


def test_issue_row_flattens_nested_fields():
    row = issue_row(issue(7, state="Done"))
    assert row[1] == "ENG-7"
    assert row[3] == "Done"
    assert row[5] == "ENG"
