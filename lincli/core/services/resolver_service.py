"""Resolver Service: human identifier -> canonical ID.

Strategies run cheapest first and stop at the first match:
1. input already has the UUID shape (no I/O);
2. the cached full catalog for the entity type;
3. a server-side filtered query on the literal input;
4. a full paginated sweep, which also refreshes the cache.
Only a miss in the final sweep is an error.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from lincli.core.services.lookups import TEAM_STATES_PATH, TEAM_STATES_QUERY, TEAMS, USERS, LABELS, PROJECTS
from lincli.core.services.pagination_service import MAX_PAGE_SIZE, PaginationService
from lincli.domain.events.api_events import ResolvedFromCache
from lincli.domain.interfaces.cache import CacheStore
from lincli.domain.interfaces.lookup import EntityLookup
from lincli.domain.interfaces.transport import GraphQLTransport
from lincli.domain.models.cache import CacheOptions, CacheType
from lincli.domain.models.common import CanonicalId, JsonValue, get_path, is_uuid
from lincli.domain.models.errors import ApiError, CacheWriteError
from lincli.domain.models.pagination import PaginationOptions

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 10

# Full sweeps fetch everything in the largest pages the API allows
SWEEP_OPTIONS = PaginationOptions(all=True, page_size=MAX_PAGE_SIZE)


class ResolverService:
    """Resolves names, keys and emails to backend IDs."""

    def __init__(
        self,
        transport: GraphQLTransport,
        pagination: PaginationService,
        cache: CacheStore,
    ):
        self.transport = transport
        self.pagination = pagination
        self.cache = cache

    async def resolve(
        self,
        lookup: EntityLookup,
        human_input: str,
        cache_options: Optional[CacheOptions] = None,
    ) -> CanonicalId:
        """Resolves `human_input` to a canonical ID for the lookup's entity type.

        Raises:
            ApiError: NOT_FOUND when no strategy matches; transport errors
                propagate unchanged.
        """
        opts = cache_options or CacheOptions()
        if is_uuid(human_input):
            return CanonicalId(human_input)

        if not opts.no_cache:
            cached = await self.cache.get(lookup.cache_type, ttl_override=opts.ttl_seconds)
            if isinstance(cached, list):
                found = lookup.match(cached, human_input)
                if found is not None:
                    logger.debug(f"EVENT: {ResolvedFromCache(cache_type=lookup.cache_type.value, lookup=human_input)}")
                    return found

        result = await self.transport.query(lookup.filtered_query, {lookup.filtered_variable: human_input})
        nodes = get_path(result, lookup.filtered_nodes_path)
        found = lookup.match(nodes if isinstance(nodes, list) else [], human_input)
        if found is not None:
            return found

        logger.info(f"No direct match for {lookup.entity_name} '{human_input}'; fetching the full list.")
        all_items = await self.pagination.paginate_nodes(
            lookup.paginated_query, None, lookup.nodes_path, lookup.page_info_path,
            SWEEP_OPTIONS, MAX_PAGE_SIZE,
        )
        if not opts.no_cache:
            await self.store_catalog(lookup.cache_type, all_items)

        found = lookup.match(all_items, human_input)
        if found is not None:
            return found
        raise ApiError.not_found(lookup.not_found_message(human_input))

    async def store_catalog(self, cache_type: CacheType, items: List[JsonValue]) -> None:
        """Caches a complete listing. A failed write is logged, never fatal."""
        try:
            await self.cache.set(cache_type, items)
        except CacheWriteError as e:
            logger.warning(f"Could not update {cache_type.display_name} cache: {e}")

    async def resolve_many(
        self,
        lookup: EntityLookup,
        inputs: Sequence[str],
        cache_options: Optional[CacheOptions] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> Dict[str, CanonicalId]:
        """Resolves several inputs concurrently, at most `concurrency` at a time.

        Returns:
            Mapping of each distinct input to its ID. The first failure
            propagates.
        """
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def bounded(value: str) -> CanonicalId:
            async with semaphore:
                return await self.resolve(lookup, value, cache_options)

        unique = list(dict.fromkeys(inputs))
        ids = await asyncio.gather(*(bounded(value) for value in unique))
        return dict(zip(unique, ids))

    # --- Entity-specific entry points ---

    async def resolve_team_id(self, team: str, cache_options: Optional[CacheOptions] = None) -> CanonicalId:
        return await self.resolve(TEAMS, team, cache_options)

    async def resolve_user_id(self, user: str, cache_options: Optional[CacheOptions] = None) -> CanonicalId:
        """Like resolve(), plus "me" for the authenticated user."""
        if user.casefold() == "me":
            result = await self.transport.query(USERS.viewer_query)
            viewer_id = get_path(result, USERS.viewer_id_path)
            if not isinstance(viewer_id, str):
                raise ApiError.general("Could not fetch current user ID")
            return CanonicalId(viewer_id)
        return await self.resolve(USERS, user, cache_options)

    async def resolve_label_id(self, label: str, cache_options: Optional[CacheOptions] = None) -> CanonicalId:
        return await self.resolve(LABELS, label, cache_options)

    async def resolve_project_id(self, project: str, cache_options: Optional[CacheOptions] = None) -> CanonicalId:
        return await self.resolve(PROJECTS, project, cache_options)

    async def team_states(self, team_id: str, cache_options: Optional[CacheOptions] = None) -> List[JsonValue]:
        """Workflow states of one team, cached per team in the STATUSES file."""
        opts = cache_options or CacheOptions()
        if not opts.no_cache:
            cached = await self.cache.get_keyed(CacheType.STATUSES, team_id)
            if isinstance(cached, list):
                return cached

        result = await self.transport.query(TEAM_STATES_QUERY, {"teamId": team_id})
        nodes = get_path(result, TEAM_STATES_PATH)
        states = nodes if isinstance(nodes, list) else []
        if not opts.no_cache:
            try:
                await self.cache.set_keyed(CacheType.STATUSES, team_id, states)
            except CacheWriteError as e:
                logger.warning(f"Could not update Statuses cache for team {team_id}: {e}")
        return states

    async def resolve_state_id(
        self, team_id: str, state: str, cache_options: Optional[CacheOptions] = None
    ) -> CanonicalId:
        """Resolves a workflow state name within a team."""
        if is_uuid(state):
            return CanonicalId(state)
        wanted = state.casefold()
        for node in await self.team_states(team_id, cache_options):
            name = node.get("name") if isinstance(node, dict) else None
            if isinstance(name, str) and name.casefold() == wanted and isinstance(node.get("id"), str):
                return CanonicalId(node["id"])
        raise ApiError.not_found(
            f"State '{state}' not found for team"
        )
