"""FastAPI application exposing shim checks as a service."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import ConfigError, load_config
from ..locations import resolve_location
from ..orchestrator import CheckReport, PreconditionError, ShimChecker


class CheckRequest(BaseModel):
    path: str
    shim_dir: Optional[str] = None
    generated_dirs: Optional[List[str]] = None
    base_dir: Optional[str] = None
    base_path_prefix: Optional[str] = None
    base_url: Optional[str] = None
    jobs: Optional[int] = None


class DuplicateEntry(BaseModel):
    key: str
    locations: List[str]


class WarningEntry(BaseModel):
    message: str
    location: str


class CheckResponse(BaseModel):
    status: str
    exit_code: int
    duplicates: List[DuplicateEntry] = []
    warnings: List[WarningEntry] = []


class HealthResponse(BaseModel):
    status: str


def _default_checker() -> ShimChecker:
    return ShimChecker()


def _status(report: CheckReport) -> str:
    if not report.shims_checked:
        return "no_shims"
    return "duplicates" if report.has_duplicates else "ok"


def create_app(
    checker_factory: Callable[[], ShimChecker] = _default_checker,
) -> FastAPI:
    """Create the FastAPI application exposing shimcheck operations."""

    app = FastAPI(title="shimcheck service", version="1.0.0")

    async def get_checker() -> ShimChecker:
        # Fresh checker per request; an index never outlives its run.
        return checker_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/check", response_model=CheckResponse)
    async def check(
        payload: CheckRequest,
        checker: ShimChecker = Depends(get_checker),
    ) -> CheckResponse:
        config = load_config(Path(payload.path)).with_overrides(
            shim_dir=payload.shim_dir,
            generated_dirs=payload.generated_dirs,
            base_dir=payload.base_dir,
            base_path_prefix=payload.base_path_prefix,
            base_url=payload.base_url,
            jobs=payload.jobs,
        )

        loop = asyncio.get_running_loop()
        report = await loop.run_in_executor(None, checker.run, config)

        prefix = config.base_prefix
        return CheckResponse(
            status=_status(report),
            exit_code=report.exit_code,
            duplicates=[
                DuplicateEntry(
                    key=key,
                    locations=[
                        resolve_location(node.location, prefix, config.base.url)
                        for node in nodes
                    ],
                )
                for key, nodes in report.duplicates.items()
            ],
            warnings=[
                WarningEntry(message=warning.message, location=str(warning.location))
                for warning in report.warnings
            ],
        )

    @app.exception_handler(PreconditionError)
    async def precondition_handler(_: Any, exc: PreconditionError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["CheckRequest", "CheckResponse", "create_app", "run_service"]
