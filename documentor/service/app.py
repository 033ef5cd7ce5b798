"""FastAPI application exposing stored documentation and regeneration."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import ConfigError
from ..models import GeneratedDocumentation
from ..orchestrator import Orchestrator, RegenerationInProgressError
from ..stores import DocumentationStoreError

SECTIONS = (
    "overview",
    "frontend",
    "backend",
    "database",
    "user_flows",
    "architecture_diagram",
    "api_documentation",
    "deployment_guide",
    "troubleshooting",
    "generated_at",
)


class HealthResponse(BaseModel):
    status: str
    regenerating: bool = False


class SectionResponse(BaseModel):
    section: str
    content: Any
    generated_at: str


class RegenerateResponse(BaseModel):
    status: str
    generated_at: str
    endpoints: int
    components: int
    user_flows: int


def create_app(orchestrator: Orchestrator) -> FastAPI:
    """Create the FastAPI application serving ``orchestrator``'s documentation."""

    app = FastAPI(title="Documentor Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator

    async def get_documentation(
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> GeneratedDocumentation:
        documentation = orchestrator.current()
        if documentation is None:
            loop = asyncio.get_running_loop()
            documentation = await loop.run_in_executor(None, orchestrator.load)
        if documentation is None:
            raise HTTPException(status_code=404, detail="Documentation has not been generated yet")
        return documentation

    @app.get("/health", response_model=HealthResponse)
    async def health(orchestrator: Orchestrator = Depends(get_orchestrator)) -> HealthResponse:
        return HealthResponse(status="ok", regenerating=orchestrator.is_running)

    @app.get("/api/documentation")
    async def documentation(
        documentation: GeneratedDocumentation = Depends(get_documentation),
    ) -> Dict[str, Any]:
        return documentation.to_dict()

    @app.post("/api/regenerate", response_model=RegenerateResponse)
    async def regenerate(orchestrator: Orchestrator = Depends(get_orchestrator)) -> RegenerateResponse:
        try:
            result = await orchestrator.regenerate_async(wait=False)
        except RegenerationInProgressError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return RegenerateResponse(
            status="ok",
            generated_at=result.generated_at,
            endpoints=len(result.api_documentation),
            components=len(result.frontend.components),
            user_flows=len(result.user_flows),
        )

    @app.get("/api/{section}", response_model=SectionResponse)
    async def section(
        section: str,
        documentation: GeneratedDocumentation = Depends(get_documentation),
    ) -> SectionResponse:
        if section not in SECTIONS:
            raise HTTPException(status_code=404, detail=f"Unknown documentation section: {section}")
        payload = documentation.to_dict()
        return SectionResponse(
            section=section,
            content=payload[section],
            generated_at=documentation.generated_at,
        )

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(DocumentationStoreError)
    async def store_error_handler(_: Any, exc: DocumentationStoreError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    return app


def run_service(
    root: str | Path = ".",
    *,
    host: str = "127.0.0.1",
    port: int = 8000,
    output_dir: Optional[Path] = None,
) -> None:  # pragma: no cover - integration path
    import uvicorn

    orchestrator = Orchestrator(root, output_dir=output_dir)
    orchestrator.load()
    uvicorn.run(create_app(orchestrator), host=host, port=port)


__all__ = ["SECTIONS", "create_app", "run_service"]
