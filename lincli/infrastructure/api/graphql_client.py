"""Async GraphQL transport built on httpx.

Posts GraphQL documents to the API endpoint, classifies failures into
ApiError kinds (so the retry engine can tell transient from permanent),
and routes every call through ApiRetryService.
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from lincli.domain.interfaces.transport import GraphQLTransport
from lincli.domain.models.common import GraphQLDocument, JsonValue
from lincli.domain.models.errors import ApiError, ErrorKind
from lincli.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.linear.app/graphql"
DEFAULT_TIMEOUT_SECONDS = 30.0
CONNECT_TIMEOUT_SECONDS = 10.0
USER_AGENT = "lincli/0.1.0"

# GraphQL-level rate limiting is reported inside a 200/400 body
RATE_LIMITED_CODE = "RATELIMITED"


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Parses a Retry-After header given in whole seconds."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def http_error(response: httpx.Response, context: str) -> ApiError:
    """Builds a classified ApiError from a non-success HTTP response."""
    status = response.status_code
    retry_after = parse_retry_after(response.headers.get("retry-after"))
    details: Dict[str, Any] = {
        "status": status,
        "reason": response.reason_phrase or "Unknown error",
        "request_id": response.headers.get("x-request-id"),
    }

    if status == 401:
        err = ApiError.auth("Authentication failed - check your API key")
    elif status == 403:
        err = ApiError.auth(f"Access denied - {context}")
    elif status == 404:
        err = ApiError.not_found(f"{context} not found")
    elif status == 429:
        err = ApiError.rate_limited("Rate limit exceeded", retry_after=retry_after)
    else:
        err = ApiError.general(f"HTTP {status} {details['reason']}")
    return err.with_details(details)


def graphql_error(errors: Any, response: Optional[httpx.Response] = None) -> ApiError:
    """Builds an ApiError from a GraphQL `errors` array.

    A rate-limit error takes its Retry-After from `response`, whatever the
    HTTP status.
    """
    if isinstance(errors, list):
        for error in errors:
            code = (error.get("extensions") or {}).get("code") if isinstance(error, dict) else None
            if code == RATE_LIMITED_CODE:
                retry_after = parse_retry_after(response.headers.get("retry-after")) if response is not None else None
                return ApiError.rate_limited("Rate limit exceeded", retry_after=retry_after, details=errors)
    return ApiError.general("GraphQL error", details=errors)


def decode_body(response: httpx.Response) -> Optional[Any]:
    """Decodes an error response body as JSON, falling back to raw text."""
    if not response.content:
        return None
    try:
        return response.json()
    except json.JSONDecodeError:
        return {"body": response.text}


class GraphQLClient(GraphQLTransport):
    """GraphQLTransport implementation over an httpx.AsyncClient."""

    def __init__(
        self,
        api_key: Optional[str],
        retry_service: ApiRetryService,
        api_url: str = DEFAULT_API_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initializes the client.

        Args:
            api_key: Personal API key, sent verbatim in the Authorization header.
                A missing key fails on the first request, not here, so
                offline commands work without one.
            retry_service: Retry engine wrapping every call.
            api_url: GraphQL endpoint.
            timeout_seconds: Overall request timeout.
            http_client: Pre-built httpx client (tests inject a MockTransport).
        """
        self.api_url = api_url
        self.retry_service = retry_service
        self._auth_header = api_key
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds, connect=CONNECT_TIMEOUT_SECONDS),
            headers={"User-Agent": USER_AGENT},
        )

    async def __aenter__(self) -> "GraphQLClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # --- GraphQLTransport Interface Implementation ---

    async def query(self, document: GraphQLDocument, variables: Optional[JsonValue] = None) -> JsonValue:
        return await self.retry_service.execute_with_retry(
            self._query_once, document, variables, endpoint_name="query"
        )

    async def mutate(self, document: GraphQLDocument, variables: Optional[JsonValue] = None) -> JsonValue:
        # Mutations are retried; creates/updates are assumed idempotent server-side
        return await self.retry_service.execute_with_retry(
            self._query_once, document, variables, endpoint_name="mutate"
        )

    async def fetch_bytes(self, url: str) -> bytes:
        return await self.retry_service.execute_with_retry(
            self._fetch_once, url, endpoint_name="fetch_bytes"
        )

    # --- Single attempts ---

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if not self._auth_header:
            raise ApiError.auth("No API key configured. Set LINEAR_API_KEY or add api_key to your config profile.")
        try:
            return await self._client.request(
                method, url, headers={"Authorization": self._auth_header}, **kwargs
            )
        except httpx.TimeoutException as e:
            raise ApiError.general(f"Request timeout: {e}") from e
        except httpx.TransportError as e:
            raise ApiError.general(f"Connection failed: {e}") from e

    async def _query_once(self, document: GraphQLDocument, variables: Optional[JsonValue]) -> JsonValue:
        body: Dict[str, Any] = {"query": document}
        if variables is not None:
            body["variables"] = variables

        response = await self._send("POST", self.api_url, json=body)
        logger.debug(f"GraphQL response: {response.status_code} {response.reason_phrase}")

        if not response.is_success:
            err = http_error(response, "resource")
            payload = decode_body(response)
            if isinstance(payload, dict) and payload.get("errors"):
                graphql_err = graphql_error(payload["errors"], response)
                if graphql_err.kind is ErrorKind.RATE_LIMITED:
                    raise graphql_err
            if payload is not None:
                err.details = {**err.details, "body": payload}
            raise err

        try:
            result = response.json()
        except json.JSONDecodeError as e:
            raise ApiError.general(f"Invalid JSON in API response: {e}") from e

        if isinstance(result, dict) and result.get("errors"):
            raise graphql_error(result["errors"], response)
        return result

    async def _fetch_once(self, url: str) -> bytes:
        response = await self._send("GET", url)
        if not response.is_success:
            raise http_error(response, "upload")
        return response.content
