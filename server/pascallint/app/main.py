import logging
import time
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..engine.errors import FixConflictError, GrammarLoadError, NotInitializedError, RuleError
from ..engine.linter import LinterService
from ..engine.settings import settings
from ..engine.types import Issue
from .models import (
    CacheClearRequest, CacheClearResponse, ConfigReloadRequest, ConfigReloadResponse,
    FixRequest, FixResponse, HealthResponse, LintRequest, LintResponse,
)

logger = logging.getLogger(__name__)


def _issue_dicts(issues: List[Issue]):
    return [issue.to_dict() for issue in issues]


def create_app(linter: Optional[LinterService] = None) -> FastAPI:
    """Build the lint service around ``linter`` (a fresh ``LinterService`` by default)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Load the grammar on startup; release every tree on shutdown."""
        service = linter if linter is not None else LinterService()
        app.state.linter = service
        try:
            await service.initialize()
            logger.info("PascalLint engine ready (%d rules)", len(service.rules))
        except GrammarLoadError as e:
            # Keep serving /health so the failure is visible
            logger.error("PascalLint: %s", e)

        yield

        await service.shutdown()

    app = FastAPI(
        title="PascalLint - Delphi / Object Pascal lint service",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:*", "http://127.0.0.1:*", "vscode-webview://*"],
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    def get_linter(request: Request) -> LinterService:
        return request.app.state.linter

    @app.get("/health", response_model=HealthResponse)
    async def health(service: LinterService = Depends(get_linter)):
        """Health check endpoint, used by editors and orchestrators."""
        ready = service.is_initialized
        return HealthResponse(
            status="ok" if ready else "degraded",
            version=__version__,
            engine="tree-sitter" if ready else "unavailable",
            rules=len(service.rules),
            cached_files=len(service.trees),
            timestamp=int(time.time()),
        )

    @app.post("/lint", response_model=LintResponse)
    async def lint(req: LintRequest = Body(...), service: LinterService = Depends(get_linter)):
        """Lint one document and return its issues."""
        started = time.perf_counter()
        try:
            issues = await service.lint(req.text, req.file_id, req.workspace_id, version=req.version)
        except NotInitializedError as e:
            raise HTTPException(status_code=503, detail=str(e))
        except RuleError as e:
            logger.exception("Lint failed for %s", req.file_id)
            raise HTTPException(status_code=500, detail=str(e))

        return LintResponse(
            file_id=req.file_id,
            issues=_issue_dicts(issues),
            error_count=sum(1 for i in issues if i.severity == "error"),
            warning_count=sum(1 for i in issues if i.severity == "warn"),
            took_ms=int((time.perf_counter() - started) * 1000),
        )

    @app.post("/fix", response_model=FixResponse)
    async def fix(req: FixRequest = Body(...), service: LinterService = Depends(get_linter)):
        """Apply fixes until none are left (or ``max_passes`` is reached)."""
        try:
            outcome = await service.fix(
                req.text, req.file_id, req.workspace_id, max_passes=req.max_passes, strict=req.strict,
            )
        except NotInitializedError as e:
            raise HTTPException(status_code=503, detail=str(e))
        except FixConflictError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except RuleError as e:
            logger.exception("Fix failed for %s", req.file_id)
            raise HTTPException(status_code=500, detail=str(e))

        return FixResponse(
            file_id=req.file_id,
            text=outcome.text,
            applied=outcome.applied,
            passes=outcome.passes,
            issues=_issue_dicts(outcome.issues),
        )

    @app.post("/config/reload", response_model=ConfigReloadResponse)
    async def reload_config(req: ConfigReloadRequest = Body(...), service: LinterService = Depends(get_linter)):
        """Re-read a workspace's config file after it changed on disk."""
        config = await service.reload_config_for_workspace(req.workspace_id)
        return ConfigReloadResponse(workspace_id=req.workspace_id, config=config.to_dict(), source=config.source)

    @app.post("/cache/clear", response_model=CacheClearResponse)
    async def clear_cache(req: Optional[CacheClearRequest] = None, service: LinterService = Depends(get_linter)):
        """Forget one document (closed in the editor) or all of them."""
        file_id = req.file_id if req is not None else None
        service.clear_cache(file_id)
        if file_id:
            return CacheClearResponse(cleared="file", file_id=file_id)
        return CacheClearResponse(cleared="all")

    return app


app = create_app()
logging.getLogger("pascallint").setLevel(settings.log_level)
