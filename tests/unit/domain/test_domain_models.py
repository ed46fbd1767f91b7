import pytest

from lincli.domain.models.cache import CacheEntry, CacheStatus, CacheType, now_seconds
from lincli.domain.models.common import get_path, is_uuid
from lincli.domain.models.errors import ApiError, ErrorKind
from lincli.domain.models.pagination import Direction, PaginationOptions


# --- common ---

def test_is_uuid_accepts_canonical_shape():
    assert is_uuid("5f3c2b1a-0d9e-4c8b-a7f6-1e2d3c4b5a69")


@pytest.mark.parametrize("value", ["ENG", "", "5f3c2b1a0d9e4c8ba7f61e2d3c4b5a69abcd", "5f3c2b1a-0d9e-4c8b-a7f6"])
def test_is_uuid_rejects_other_strings(value):
    assert not is_uuid(value)


def test_get_path_walks_nested_objects():
    tree = {"data": {"teams": {"nodes": [1, 2]}}}
    assert get_path(tree, ("data", "teams", "nodes")) == [1, 2]
    assert get_path(tree, ("data", "users", "nodes")) is None
    assert get_path({"data": None}, ("data", "teams")) is None
    assert get_path([1, 2], ("data",)) is None


# --- cache models ---

def test_entry_valid_when_fresh():
    entry = CacheEntry(timestamp=now_seconds(), ttl_seconds=3600, data=[])
    assert entry.is_valid()


def test_entry_invalid_one_second_past_ttl():
    ttl = 3600
    entry = CacheEntry(timestamp=now_seconds() - ttl - 1, ttl_seconds=ttl, data=[])
    assert not entry.is_valid()


def test_entry_validity_with_override():
    entry = CacheEntry(timestamp=now_seconds() - 120, ttl_seconds=3600, data=[])
    assert entry.is_valid_with_ttl(300)
    assert not entry.is_valid_with_ttl(60)


def test_entry_from_dict_rejects_bad_shape():
    with pytest.raises(ValueError):
        CacheEntry.from_dict({"data": []})
    with pytest.raises(ValueError):
        CacheEntry.from_dict(["not", "an", "entry"])


def test_entry_dict_round_trip():
    raw = {"timestamp": 1700000000, "ttl_seconds": 60, "data": {"a": [1, 2]}}
    assert CacheEntry.from_dict(raw).to_dict() == raw


def test_cache_type_filenames():
    assert CacheType.TEAMS.filename == "teams.json"
    assert CacheType.STATUSES.display_name == "Statuses"
    assert len(CacheType.all()) == 6


@pytest.mark.parametrize("age, expected", [(None, "-"), (45, "45s"), (150, "2m"), (3660, "1h 1m")])
def test_status_age_display(age, expected):
    assert CacheStatus(CacheType.TEAMS, valid=True, age_seconds=age).age_display() == expected


@pytest.mark.parametrize("size, expected", [(None, "-"), (512, "512 B"), (2048, "2.0 KB"), (3 * 1024 * 1024, "3.0 MB")])
def test_status_size_display(size, expected):
    assert CacheStatus(CacheType.TEAMS, valid=True, size_bytes=size).size_display() == expected


# --- errors ---

def test_error_kinds_map_to_exit_codes():
    assert ApiError.general("x").exit_code == 1
    assert ApiError.not_found("x").exit_code == 2
    assert ApiError.auth("x").exit_code == 3
    assert ApiError.rate_limited("x").exit_code == 4


@pytest.mark.parametrize("error, retryable", [
    (ApiError.rate_limited("Rate limit exceeded", retry_after=5), True),
    (ApiError.general("HTTP 503 Service Unavailable"), True),
    (ApiError.general("Request timeout: read timed out"), True),
    (ApiError.general("Connection failed: refused"), True),
    (ApiError.general("GraphQL error"), False),
    (ApiError.auth("Authentication failed - timeout"), False),
    (ApiError.not_found("Team not found: 503"), False),
])
def test_is_retryable(error, retryable):
    assert error.is_retryable() is retryable


def test_rate_limited_keeps_retry_after():
    err = ApiError.rate_limited("Rate limit exceeded", retry_after=7)
    assert err.kind is ErrorKind.RATE_LIMITED
    assert err.retry_after == 7


# --- pagination options ---

def test_direction_defaults_forward():
    assert PaginationOptions().direction is Direction.FORWARD


def test_before_alone_walks_backward():
    assert PaginationOptions(before="c1").direction is Direction.BACKWARD


def test_both_cursors_walk_forward():
    options = PaginationOptions(after="a", before="b")
    assert options.has_conflicting_cursors
    assert options.direction is Direction.FORWARD


def test_single_page_unless_limit_or_all():
    assert not PaginationOptions().walks_past_first_page
    assert PaginationOptions(limit=5).walks_past_first_page
    assert PaginationOptions(all=True).walks_past_first_page


def test_effective_page_size_never_below_one():
    assert PaginationOptions(page_size=0).effective_page_size(50) == 1
    assert PaginationOptions().effective_page_size(50) == 50
