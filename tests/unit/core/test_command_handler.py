import io
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from lincli.core.command_handler import CommandHandler
from lincli.core.services.export_service import ExportService
from lincli.core.services.lookups import LABELS, TEAMS
from lincli.core.services.pagination_service import PaginationService
from lincli.core.services.resolver_service import ResolverService
from lincli.domain.interfaces.user_interface import UserInterface
from lincli.domain.models.cache import CacheOptions, CacheStatus, CacheType
from lincli.domain.models.pagination import PaginationOptions
from lincli.infrastructure.cache.file_cache import FileCache


@pytest.fixture
def mock_resolver():
    return MagicMock(spec=ResolverService)


@pytest.fixture
def mock_pagination():
    return MagicMock(spec=PaginationService)


@pytest.fixture
def mock_export_service():
    return MagicMock(spec=ExportService)


@pytest.fixture
def mock_cache():
    return MagicMock(spec=FileCache)


@pytest.fixture
def mock_ui():
    return MagicMock(spec=UserInterface)


@pytest.fixture
def command_handler(mock_resolver, mock_pagination, mock_export_service, mock_cache, mock_ui):
    """Fixture to create CommandHandler with mocked services."""
    return CommandHandler(
        resolver=mock_resolver,
        pagination=mock_pagination,
        export_service=mock_export_service,
        cache=mock_cache,
        cache_dir=Path("/tmp/lincli-cache"),
        ui=mock_ui,
    )


@pytest.mark.asyncio
async def test_handle_resolve_prints_id(command_handler, mock_resolver, mock_ui):
    mock_resolver.resolve.return_value = "team-eng-id"

    await command_handler.handle_resolve("team", "ENG")

    mock_resolver.resolve.assert_awaited_once_with(TEAMS, "ENG", CacheOptions())
    mock_ui.display_output.assert_called_once_with("team-eng-id")


@pytest.mark.asyncio
async def test_handle_resolve_user_goes_through_user_entry_point(command_handler, mock_resolver):
    mock_resolver.resolve_user_id.return_value = "viewer-id"
    assert await command_handler.handle_resolve("user", "me") == "viewer-id"
    mock_resolver.resolve.assert_not_called()


@pytest.mark.asyncio
async def test_handle_resolve_json(command_handler, mock_resolver, mock_ui):
    command_handler.output_format = "json"
    mock_resolver.resolve.return_value = "label-id"

    await command_handler.handle_resolve("label", "bug")

    mock_ui.display_json.assert_called_once_with({"type": "label", "input": "bug", "id": "label-id"})


@pytest.mark.asyncio
async def test_handle_resolve_unknown_entity(command_handler):
    with pytest.raises(ValueError):
        await command_handler.handle_resolve("cycle", "x")


@pytest.mark.asyncio
async def test_handle_resolve_state(command_handler, mock_resolver, mock_ui):
    mock_resolver.resolve_team_id.return_value = "team-id"
    mock_resolver.resolve_state_id.return_value = "state-id"

    await command_handler.handle_resolve_state("ENG", "Done")

    mock_resolver.resolve_state_id.assert_awaited_once_with("team-id", "Done", CacheOptions())
    mock_ui.display_output.assert_called_once_with("state-id")


@pytest.mark.asyncio
async def test_handle_resolve_many_renders_table(command_handler, mock_resolver, mock_ui):
    mock_resolver.resolve_many.return_value = {"bug": "l1", "ui": "l2"}

    await command_handler.handle_resolve_many("label", ["bug", "ui"], 4)

    mock_resolver.resolve_many.assert_awaited_once_with(LABELS, ["bug", "ui"], CacheOptions(), 4)
    mock_ui.display_table.assert_called_once_with("Resolved labels", ["input", "id"], [("bug", "l1"), ("ui", "l2")])


@pytest.mark.asyncio
async def test_handle_list_all_refreshes_cache(command_handler, mock_pagination, mock_resolver, mock_ui, team_nodes):
    mock_pagination.paginate_nodes.return_value = team_nodes

    await command_handler.handle_list("team", PaginationOptions(all=True))

    mock_resolver.store_catalog.assert_awaited_once_with(CacheType.TEAMS, team_nodes)
    title, columns, rows = mock_ui.display_table.call_args.args
    assert title == "Teams"
    assert columns == ["id", "key", "name"]
    assert rows[0] == ["team-eng-id", "ENG", "Engineering"]


@pytest.mark.asyncio
async def test_handle_list_partial_does_not_touch_cache(command_handler, mock_pagination, mock_resolver):
    mock_pagination.paginate_nodes.return_value = []
    await command_handler.handle_list("team", PaginationOptions(limit=5))
    mock_resolver.store_catalog.assert_not_called()


@pytest.mark.asyncio
async def test_handle_list_respects_no_cache(command_handler, mock_pagination, mock_resolver):
    command_handler.cache_options = CacheOptions(no_cache=True)
    mock_pagination.paginate_nodes.return_value = []
    await command_handler.handle_list("label", PaginationOptions(all=True))
    mock_resolver.store_catalog.assert_not_called()


@pytest.mark.asyncio
async def test_handle_export_to_file(command_handler, mock_resolver, mock_export_service, mock_ui, tmp_path):
    mock_resolver.resolve_team_id.return_value = "team-id"
    mock_export_service.export_issues.return_value = 12
    target = tmp_path / "issues.csv"

    total = await command_handler.handle_export_issues(PaginationOptions(all=True), team="ENG", file=target)

    assert total == 12
    out, options, team_id = mock_export_service.export_issues.call_args.args
    assert isinstance(out, io.TextIOBase)
    assert team_id == "team-id"
    mock_ui.display_info.assert_called_once_with(f"Exported 12 issues to {target}")


@pytest.mark.asyncio
async def test_handle_cache_status_table(command_handler, mock_cache, mock_ui):
    mock_cache.status = AsyncMock(return_value=[
        CacheStatus(CacheType.TEAMS, valid=True, age_seconds=30, size_bytes=100, item_count=2),
        CacheStatus(CacheType.USERS, valid=False),
    ])

    await command_handler.handle_cache_status()

    _, columns, rows = mock_ui.display_table.call_args.args
    assert columns == ["Type", "Status", "Age", "Size", "Items"]
    assert rows[0] == ["Teams", "valid", "30s", "100 B", 2]
    assert rows[1] == ["Users", "empty", "-", "-", None]


@pytest.mark.asyncio
async def test_handle_cache_clear_one_type(command_handler, mock_cache, mock_ui):
    await command_handler.handle_cache_clear("Teams")
    mock_cache.clear_type.assert_awaited_once_with(CacheType.TEAMS)
    mock_ui.display_info.assert_called_once_with("Teams cache cleared.")


@pytest.mark.asyncio
async def test_handle_cache_clear_all(command_handler, mock_cache):
    await command_handler.handle_cache_clear()
    mock_cache.clear_all.assert_awaited_once()


@pytest.mark.asyncio
async def test_handle_cache_clear_invalid_type(command_handler, mock_cache):
    with pytest.raises(ValueError):
        await command_handler.handle_cache_clear("widgets")
    mock_cache.clear_type.assert_not_called()


@pytest.mark.asyncio
async def test_handle_cache_path(command_handler, mock_ui):
    await command_handler.handle_cache_path()
    mock_ui.display_output.assert_called_once_with("/tmp/lincli-cache")
