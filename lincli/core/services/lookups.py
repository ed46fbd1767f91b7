"""Resolvable entity types.

Each lookup bundles the GraphQL documents and the matching rule for one
entity type. Matching is case-insensitive and exact; among ties the first
node in server-returned order wins.
"""

from typing import List, Optional, Sequence

from lincli.domain.interfaces.lookup import EntityLookup
from lincli.domain.models.cache import CacheType
from lincli.domain.models.common import CanonicalId, GraphQLDocument, JsonValue


def first_match(candidates: Sequence[JsonValue], field: str, human_input: str) -> Optional[CanonicalId]:
    """ID of the first candidate whose `field` equals the input, ignoring case."""
    wanted = human_input.casefold()
    for node in candidates:
        if not isinstance(node, dict):
            continue
        value = node.get(field)
        node_id = node.get("id")
        if isinstance(value, str) and value.casefold() == wanted and isinstance(node_id, str):
            return CanonicalId(node_id)
    return None


def match_by_priority(
    candidates: Sequence[JsonValue], fields: Sequence[str], human_input: str
) -> Optional[CanonicalId]:
    """Tries each field in turn over all candidates (earlier fields win)."""
    for field in fields:
        found = first_match(candidates, field, human_input)
        if found is not None:
            return found
    return None


def match_any_field(
    candidates: Sequence[JsonValue], fields: Sequence[str], human_input: str
) -> Optional[CanonicalId]:
    """First candidate matching on any of `fields` (node order wins)."""
    for node in candidates:
        found = match_by_priority([node], fields, human_input)
        if found is not None:
            return found
    return None


class TeamLookup(EntityLookup):
    """Teams resolve by key first, then by name."""

    entity_name = "team"
    cache_type = CacheType.TEAMS
    filtered_query = GraphQLDocument("""
        query($team: String!) {
            teams(first: 50, filter: { or: [{ key: { eqIgnoreCase: $team } }, { name: { eqIgnoreCase: $team } }] }) {
                nodes { id key name }
            }
        }
    """)
    filtered_variable = "team"
    filtered_nodes_path = ("data", "teams", "nodes")
    paginated_query = GraphQLDocument("""
        query($first: Int, $after: String, $last: Int, $before: String) {
            teams(first: $first, after: $after, last: $last, before: $before) {
                nodes { id key name }
                pageInfo { hasNextPage endCursor hasPreviousPage startCursor }
            }
        }
    """)
    nodes_path = ("data", "teams", "nodes")
    page_info_path = ("data", "teams", "pageInfo")

    def match(self, candidates: Sequence[JsonValue], human_input: str) -> Optional[CanonicalId]:
        return match_by_priority(candidates, ("key", "name"), human_input)

    def not_found_message(self, human_input: str) -> str:
        return f"Team not found: {human_input}. Use `lincli list teams` to see available teams."

    def columns(self) -> List[str]:
        return ["id", "key", "name"]


class UserLookup(EntityLookup):
    """Users resolve by display name or email, whichever a node matches first."""

    entity_name = "user"
    cache_type = CacheType.USERS
    filtered_query = GraphQLDocument("""
        query($user: String!) {
            users(first: 50, filter: { or: [{ name: { eqIgnoreCase: $user } }, { email: { eqIgnoreCase: $user } }] }) {
                nodes { id name email }
            }
        }
    """)
    filtered_variable = "user"
    filtered_nodes_path = ("data", "users", "nodes")
    paginated_query = GraphQLDocument("""
        query($first: Int, $after: String, $last: Int, $before: String) {
            users(first: $first, after: $after, last: $last, before: $before) {
                nodes { id name email }
                pageInfo { hasNextPage endCursor hasPreviousPage startCursor }
            }
        }
    """)
    nodes_path = ("data", "users", "nodes")
    page_info_path = ("data", "users", "pageInfo")

    viewer_query = GraphQLDocument("query { viewer { id } }")
    viewer_id_path = ("data", "viewer", "id")

    def match(self, candidates: Sequence[JsonValue], human_input: str) -> Optional[CanonicalId]:
        return match_any_field(candidates, ("name", "email"), human_input)

    def not_found_message(self, human_input: str) -> str:
        return f"User not found: {human_input}. Use `lincli list users` to see workspace users."

    def columns(self) -> List[str]:
        return ["id", "name", "email"]


class LabelLookup(EntityLookup):
    entity_name = "label"
    cache_type = CacheType.LABELS
    filtered_query = GraphQLDocument("""
        query($label: String!) {
            issueLabels(first: 50, filter: { name: { eqIgnoreCase: $label } }) {
                nodes { id name }
            }
        }
    """)
    filtered_variable = "label"
    filtered_nodes_path = ("data", "issueLabels", "nodes")
    paginated_query = GraphQLDocument("""
        query($first: Int, $after: String, $last: Int, $before: String) {
            issueLabels(first: $first, after: $after, last: $last, before: $before) {
                nodes { id name }
                pageInfo { hasNextPage endCursor hasPreviousPage startCursor }
            }
        }
    """)
    nodes_path = ("data", "issueLabels", "nodes")
    page_info_path = ("data", "issueLabels", "pageInfo")

    def match(self, candidates: Sequence[JsonValue], human_input: str) -> Optional[CanonicalId]:
        return first_match(candidates, "name", human_input)

    def not_found_message(self, human_input: str) -> str:
        return f"Label not found: {human_input}. Use `lincli list labels` to see available labels."


class ProjectLookup(EntityLookup):
    """Projects resolve by name first, then by slug."""

    entity_name = "project"
    cache_type = CacheType.PROJECTS
    filtered_query = GraphQLDocument("""
        query($project: String!) {
            projects(first: 50, filter: { name: { eqIgnoreCase: $project } }) {
                nodes { id name slugId }
            }
        }
    """)
    filtered_variable = "project"
    filtered_nodes_path = ("data", "projects", "nodes")
    paginated_query = GraphQLDocument("""
        query($first: Int, $after: String, $last: Int, $before: String) {
            projects(first: $first, after: $after, last: $last, before: $before) {
                nodes { id name slugId }
                pageInfo { hasNextPage endCursor hasPreviousPage startCursor }
            }
        }
    """)
    nodes_path = ("data", "projects", "nodes")
    page_info_path = ("data", "projects", "pageInfo")

    def match(self, candidates: Sequence[JsonValue], human_input: str) -> Optional[CanonicalId]:
        return match_by_priority(candidates, ("name", "slugId"), human_input)

    def not_found_message(self, human_input: str) -> str:
        return f"Project not found: {human_input}. Use `lincli list projects` to see available projects."

    def columns(self) -> List[str]:
        return ["id", "name", "slugId"]


TEAMS = TeamLookup()
USERS = UserLookup()
LABELS = LabelLookup()
PROJECTS = ProjectLookup()

LOOKUPS = {lookup.entity_name: lookup for lookup in (TEAMS, USERS, LABELS, PROJECTS)}

# Workflow states are team-scoped and cached per team (keyed STATUSES cache)
TEAM_STATES_QUERY = GraphQLDocument("""
    query($teamId: String!) {
        team(id: $teamId) {
            states { nodes { id name type } }
        }
    }
""")
TEAM_STATES_PATH = ("data", "team", "states", "nodes")
