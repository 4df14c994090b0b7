"""FastAPI application entrypoint for stylesplit service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional, TypeVar

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..errors import StyleSplitError
from ..orchestrator import Orchestrator
from ..splitter import MODE_MARKERS

T = TypeVar("T")


class BuildRequest(BaseModel):
    path: str
    prune: Optional[bool] = None
    write: bool = True


class BuildResponse(BaseModel):
    bundle_path: str
    sources: List[str]
    diagnostics: List[str]
    pruned: bool
    content: Optional[str] = None


class UnbundleRequest(BaseModel):
    path: str
    mode: str = MODE_MARKERS
    input: Optional[str] = None
    dry_run: bool = False


class UnbundleResponse(BaseModel):
    written: List[str]
    anchor_files: int
    quarantine_path: Optional[str] = None
    manifest_path: Optional[str] = None
    warnings: List[str]
    dry_run: bool


class SyncRequest(BaseModel):
    path: str
    fix: bool = False


class SyncResponse(BaseModel):
    in_sync: bool
    valid: List[str]
    missing: List[str]
    orphaned: List[str]


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


async def _run_blocking(func: Callable[[], T]) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing stylesplit operations."""

    app = FastAPI(title="stylesplit service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/build", response_model=BuildResponse)
    async def build(
        payload: BuildRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> BuildResponse:
        result = await _run_blocking(
            lambda: orchestrator.run_build(payload.path, prune=payload.prune, write=payload.write)
        )
        return BuildResponse(
            bundle_path=str(result.path),
            sources=list(result.sources),
            diagnostics=list(result.diagnostics),
            pruned=result.pruned,
            content=None if payload.write else result.content,
        )

    @app.post("/unbundle", response_model=UnbundleResponse)
    async def unbundle(
        payload: UnbundleRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> UnbundleResponse:
        outcome = await _run_blocking(
            lambda: orchestrator.run_unbundle(
                payload.path,
                mode=payload.mode,
                bundle_path=payload.input,
                dry_run=payload.dry_run,
            )
        )
        return UnbundleResponse(
            written=[str(path) for path in outcome.written],
            anchor_files=outcome.anchor_files,
            quarantine_path=str(outcome.quarantine_path) if outcome.quarantine_path else None,
            manifest_path=str(outcome.manifest_path) if outcome.manifest_path else None,
            warnings=list(outcome.warnings),
            dry_run=outcome.dry_run,
        )

    @app.post("/sync", response_model=SyncResponse)
    async def sync(
        payload: SyncRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> SyncResponse:
        result = await _run_blocking(lambda: orchestrator.run_sync(payload.path, fix=payload.fix))
        return SyncResponse(
            in_sync=result.in_sync,
            valid=list(result.valid),
            missing=list(result.missing),
            orphaned=list(result.orphaned),
        )

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(StyleSplitError)
    async def stylesplit_error_handler(_: Any, exc: StyleSplitError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error_handler(_: Any, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]
