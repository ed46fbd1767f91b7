import copy
import logging
import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from lincli.domain.interfaces.transport import GraphQLTransport
from lincli.infrastructure.cache.file_cache import FileCache


class FakeTransport(GraphQLTransport):
    """Scripted GraphQLTransport: returns queued responses and records every call.

    A queued Exception is raised instead of returned. With a `responder`,
    each call is answered by `responder(document, variables)`.
    """

    def __init__(self, responses=None, responder=None):
        self.responses = list(responses or [])
        self.responder = responder
        self.calls = []
        self.closed = False

    async def query(self, document, variables=None):
        self.calls.append((document, copy.deepcopy(variables)))
        if self.responder is not None:
            return self.responder(document, variables)
        if not self.responses:
            raise AssertionError(f"Unexpected query with variables {variables}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def mutate(self, document, variables=None):
        return await self.query(document, variables)

    async def fetch_bytes(self, url):
        raise NotImplementedError

    async def aclose(self):
        self.closed = True

    @property
    def variables(self):
        return [variables for _, variables in self.calls]


def connection_page(root, nodes, has_next=False, end_cursor=None, has_previous=False, start_cursor=None):
    """Builds a GraphQL response holding one page of `root` connection nodes."""
    return {
        "data": {
            root: {
                "nodes": nodes,
                "pageInfo": {
                    "hasNextPage": has_next,
                    "endCursor": end_cursor,
                    "hasPreviousPage": has_previous,
                    "startCursor": start_cursor,
                },
            }
        }
    }


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def file_cache(tmp_path: Path):
    """FileCache over a fresh temporary directory."""
    return FileCache(tmp_path / "cache")


@pytest.fixture
def team_nodes():
    return [
        {"id": "team-eng-id", "key": "ENG", "name": "Engineering"},
        {"id": "team-des-id", "key": "DES", "name": "Design"},
    ]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path: Path):
    """Keeps tests away from the developer's real config, .env and API key."""
    for name in list(os.environ):
        if name.startswith("LINCLI_") or name == "LINEAR_API_KEY":
            monkeypatch.delenv(name, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("LINCLI_CONFIG", str(home / "config.yaml"))
    monkeypatch.chdir(home)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """The CLI reconfigures root logging; undo it so handlers never outlive a test's streams."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
