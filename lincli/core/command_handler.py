"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py) and delegates
the work to the application services (ResolverService, PaginationService,
ExportService) and the cache. Errors propagate to main.py, which turns
them into a message on stderr and an exit code.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from lincli.core.services.export_service import ExportService
from lincli.core.services.lookups import LOOKUPS
from lincli.core.services.pagination_service import PaginationService
from lincli.core.services.resolver_service import ResolverService
from lincli.domain.interfaces.cache import CacheStore
from lincli.domain.interfaces.lookup import EntityLookup
from lincli.domain.interfaces.user_interface import UserInterface
from lincli.domain.models.cache import CacheOptions, CacheType
from lincli.domain.models.common import JsonValue
from lincli.domain.models.pagination import PaginationOptions

logger = logging.getLogger(__name__)

OUTPUT_TABLE = "table"
OUTPUT_JSON = "json"


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        resolver: ResolverService,
        pagination: PaginationService,
        export_service: ExportService,
        cache: CacheStore,
        cache_dir: Path,
        ui: UserInterface,
        cache_options: Optional[CacheOptions] = None,
        output_format: str = OUTPUT_TABLE,
    ):
        """Initializes the CommandHandler with required services."""
        self.resolver = resolver
        self.pagination = pagination
        self.export_service = export_service
        self.cache = cache
        self.cache_dir = cache_dir
        self.ui = ui
        self.cache_options = cache_options or CacheOptions()
        self.output_format = output_format

    @property
    def json_output(self) -> bool:
        return self.output_format == OUTPUT_JSON

    @staticmethod
    def lookup_for(entity: str) -> EntityLookup:
        try:
            return LOOKUPS[entity]
        except KeyError:
            raise ValueError(f"Unknown entity type '{entity}'. Choose from: {', '.join(LOOKUPS)}") from None

    # --- resolve ---

    async def handle_resolve(self, entity: str, human_input: str) -> str:
        """Handles 'resolve <entity> INPUT'."""
        logger.info(f"Handling 'resolve' for {entity}: {human_input}")
        if entity == "user":
            resolved = await self.resolver.resolve_user_id(human_input, self.cache_options)
        else:
            resolved = await self.resolver.resolve(self.lookup_for(entity), human_input, self.cache_options)
        self._show_resolved(entity, human_input, resolved)
        return resolved

    async def handle_resolve_state(self, team: str, state: str) -> str:
        """Handles 'resolve state STATE --team TEAM'."""
        logger.info(f"Handling 'resolve state' for {state} in team {team}")
        team_id = await self.resolver.resolve_team_id(team, self.cache_options)
        resolved = await self.resolver.resolve_state_id(team_id, state, self.cache_options)
        self._show_resolved("state", state, resolved)
        return resolved

    async def handle_resolve_many(self, entity: str, inputs: List[str], concurrency: int) -> Dict[str, str]:
        """Handles 'resolve <entity>' with several inputs."""
        resolved = await self.resolver.resolve_many(
            self.lookup_for(entity), inputs, self.cache_options, concurrency
        )
        if self.json_output:
            self.ui.display_json([{"input": key, "id": value} for key, value in resolved.items()])
        else:
            self.ui.display_table(f"Resolved {entity}s", ["input", "id"], list(resolved.items()))
        return resolved

    def _show_resolved(self, entity: str, human_input: str, resolved: str) -> None:
        if self.json_output:
            self.ui.display_json({"type": entity, "input": human_input, "id": resolved})
        else:
            self.ui.display_output(resolved)

    # --- list ---

    async def handle_list(self, entity: str, options: PaginationOptions) -> List[JsonValue]:
        """Handles 'list <entity>s'. A complete listing also refreshes the cache."""
        lookup = self.lookup_for(entity)
        logger.info(f"Handling 'list' for {entity} with {options}")
        items = await self.pagination.paginate_nodes(
            lookup.paginated_query, None, lookup.nodes_path, lookup.page_info_path, options
        )
        complete = options.all and options.after is None and options.before is None
        if complete and not self.cache_options.no_cache:
            await self.resolver.store_catalog(lookup.cache_type, items)

        if self.json_output:
            self.ui.display_json(items)
        else:
            columns = lookup.columns()
            rows = [[node.get(column) if isinstance(node, dict) else None for column in columns] for node in items]
            self.ui.display_table(lookup.cache_type.display_name, columns, rows)
        return items

    # --- export ---

    async def handle_export_issues(
        self,
        options: PaginationOptions,
        team: Optional[str] = None,
        file: Optional[Path] = None,
    ) -> int:
        """Handles 'export issues'. Writes to `file`, or stdout when None."""
        team_id = await self.resolver.resolve_team_id(team, self.cache_options) if team else None
        if file is None:
            return await self.export_service.export_issues(sys.stdout, options, team_id)

        with open(file, "w", newline="", encoding="utf-8") as out:
            total = await self.export_service.export_issues(out, options, team_id)
        self.ui.display_info(f"Exported {total} issues to {file}")
        return total

    # --- cache ---

    async def handle_cache_status(self) -> None:
        """Handles 'cache status'."""
        statuses = await self.cache.status()
        if self.json_output:
            self.ui.display_json({
                "cache_dir": str(self.cache_dir),
                "entries": [status.to_dict() for status in statuses],
            })
            return
        rows: List[List[Any]] = [
            [
                status.cache_type.display_name,
                "valid" if status.valid else ("expired" if status.age_seconds is not None else "empty"),
                status.age_display(),
                status.size_display(),
                status.item_count,
            ]
            for status in statuses
        ]
        self.ui.display_table(f"Cache ({self.cache_dir})", ["Type", "Status", "Age", "Size", "Items"], rows)

    async def handle_cache_clear(self, cache_type: Optional[str] = None) -> None:
        """Handles 'cache clear [--type TYPE]'."""
        if cache_type is None:
            await self.cache.clear_all()
            logger.info("Cleared all caches")
            self.ui.display_info("All caches cleared.")
            return
        try:
            selected = CacheType(cache_type.lower())
        except ValueError:
            choices = ", ".join(t.value for t in CacheType.all())
            raise ValueError(f"Invalid cache type '{cache_type}'. Choose from: {choices}") from None
        await self.cache.clear_type(selected)
        self.ui.display_info(f"{selected.display_name} cache cleared.")

    async def handle_cache_path(self) -> None:
        """Handles 'cache path'."""
        if self.json_output:
            self.ui.display_json({"cache_dir": str(self.cache_dir)})
        else:
            self.ui.display_output(str(self.cache_dir))
