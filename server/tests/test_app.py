"""
Tests for the HTTP lint service.
"""

import threading

import pytest
from fastapi.testclient import TestClient

from fakes import FakeLoader, FakeParser, N, ScriptedBuilder, tok
from pascallint.app.main import create_app
from pascallint.engine.config import PascalLintConfig
from pascallint.engine.errors import GrammarLoadError
from pascallint.engine.linter import LinterService
from pascallint.engine.parser import ParserGateway

DANGLING = "if x > 0 then; y := 1;"
# Shape the Pascal grammar recovers to: no if statement, bare tokens under ERROR
DANGLING_SPEC = N("root", N("ERROR",
                           N("identifier", "if"), N("identifier", "x"), tok(">"), N("literalNumber", "0"),
                           N("kThen", "then"), tok(";"), N("assignment", "y := 1"), tok(";")))

SHOUTING = "BEGIN END"


def empty_block(source, begin, end):
    return N("root", N("block", source, N("kBegin", begin), N("kEnd", end)))


class TestLintService:
    """Endpoints over a linter backed by the fake parser."""

    @pytest.fixture
    def builder(self):
        return ScriptedBuilder({
            DANGLING: DANGLING_SPEC,
            SHOUTING: empty_block(SHOUTING, "BEGIN", "END"),
            "begin end": empty_block("begin end", "begin", "end"),
        })

    @pytest.fixture
    def service(self, builder):
        keywords_on = PascalLintConfig.model_validate({"rules": {"upper-case-keywords": "warn"}})
        return LinterService(
            gateway=ParserGateway(loader=FakeLoader(FakeParser(builder))),
            config_loader=lambda ws: keywords_on,
        )

    @pytest.fixture
    def client(self, service):
        with TestClient(create_app(service)) as client:
            yield client

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["engine"] == "tree-sitter"
        assert data["rules"] == 14
        assert data["cached_files"] == 0

    def test_lint(self, client):
        response = client.post("/lint", json={"text": DANGLING, "file_id": "/ws/Unit1.pas"})

        assert response.status_code == 200
        data = response.json()
        assert data["file_id"] == "/ws/Unit1.pas"
        assert data["error_count"] == 1
        assert data["warning_count"] == 0
        issue = data["issues"][0]
        assert issue["ruleId"] == "dangling-semicolon"
        assert issue["range"]["start"]["offset"] == 13
        assert issue["fix"]["text"] == ""

    def test_lint_caches_the_tree(self, client):
        client.post("/lint", json={"text": DANGLING, "file_id": "/ws/Unit1.pas"})
        assert client.get("/health").json()["cached_files"] == 1

    def test_fix(self, client):
        response = client.post("/fix", json={"text": DANGLING, "file_id": "/ws/Unit1.pas"})

        assert response.status_code == 200
        data = response.json()
        assert data["text"] == "if x > 0 then y := 1;"
        assert data["applied"] == 1
        assert data["issues"] == []

    def test_fix_skips_overlapping_fixes_until_the_next_pass(self, client):
        response = client.post("/fix", json={"text": SHOUTING, "file_id": "/ws/Unit1.pas", "workspace_id": "/ws"})

        data = response.json()
        assert data["text"] == "{ empty block removed }"
        assert data["passes"] == 2

    def test_strict_fix_conflict(self, client):
        response = client.post("/fix", json={
            "text": SHOUTING, "file_id": "/ws/Unit1.pas", "workspace_id": "/ws", "strict": True,
        })

        assert response.status_code == 409

    def test_fix_rejects_invalid_max_passes(self, client):
        response = client.post("/fix", json={"text": DANGLING, "file_id": "/ws/Unit1.pas", "max_passes": 0})
        assert response.status_code == 422

    def test_config_reload(self, client):
        response = client.post("/config/reload", json={"workspace_id": "/ws"})

        assert response.status_code == 200
        data = response.json()
        assert data["workspace_id"] == "/ws"
        assert data["config"]["rules"]["upper-case-keywords"] == "warn"
        assert data["config"]["rules"]["no-with"] == "error"

    def test_clear_one_file(self, client, service):
        client.post("/lint", json={"text": DANGLING, "file_id": "/ws/Unit1.pas"})

        response = client.post("/cache/clear", json={"file_id": "/ws/Unit1.pas"})

        assert response.json() == {"cleared": "file", "file_id": "/ws/Unit1.pas"}
        assert len(service.trees) == 0

    def test_clear_everything(self, client, service):
        client.post("/lint", json={"text": DANGLING, "file_id": "/ws/A.pas"})
        client.post("/lint", json={"text": DANGLING, "file_id": "/ws/B.pas"})

        response = client.post("/cache/clear")

        assert response.json()["cleared"] == "all"
        assert len(service.trees) == 0
        assert len(service.results) == 0

    def test_cache_clear_runs_on_the_event_loop_thread(self, client, service, monkeypatch):
        threads = {}
        clear = service.clear_cache
        reload_config = service.reload_config_for_workspace

        def recording_clear(file_id=None):
            threads["clear"] = threading.current_thread()
            clear(file_id)

        async def recording_reload(workspace_id):
            threads["reload"] = threading.current_thread()
            return await reload_config(workspace_id)

        monkeypatch.setattr(service, "clear_cache", recording_clear)
        monkeypatch.setattr(service, "reload_config_for_workspace", recording_reload)

        client.post("/config/reload", json={"workspace_id": "/ws"})
        client.post("/cache/clear")

        # Runs on the event loop with lint, never in the threadpool
        assert threads["clear"] is threads["reload"]

    def test_shutdown_releases_trees(self, service):
        with TestClient(create_app(service)) as client:
            client.post("/lint", json={"text": DANGLING, "file_id": "/ws/Unit1.pas"})

        assert len(service.trees) == 0
        assert not service.is_initialized


class TestGrammarUnavailable:

    @pytest.fixture
    def client(self):
        loader = FakeLoader(error=GrammarLoadError(None, "no pascal grammar"))
        with TestClient(create_app(LinterService(gateway=ParserGateway(loader=loader)))) as client:
            yield client

    def test_health_is_degraded(self, client):
        data = client.get("/health").json()

        assert data["status"] == "degraded"
        assert data["engine"] == "unavailable"

    def test_lint_is_unavailable(self, client):
        response = client.post("/lint", json={"text": DANGLING, "file_id": "/ws/Unit1.pas"})

        assert response.status_code == 503
        assert "not initialized" in response.json()["detail"]
