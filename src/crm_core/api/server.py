import dataclasses
from typing import List
from fastapi import FastAPI
from contextlib import asynccontextmanager
from ..application.diagnostics import snapshot
from ..application.loading_machine import LoadingMachine
from ..application.section_loader import SectionDataLoader
from ..domain.models import SectionName
from .schemas import DiagnosticsResponse, SectionStatusOut
import structlog

logger = structlog.get_logger()

def create_app(machine: LoadingMachine, section_loader: SectionDataLoader, rows: int = 10) -> FastAPI:
    """
    Factory for the development diagnostics API. Read-only: GET routes only.
    Callers construct it only in development.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("diagnostics_api_startup")
        yield
        logger.info("diagnostics_api_shutdown")

    app = FastAPI(title="CRM diagnostics", lifespan=lifespan)

    @app.get("/diagnostics", response_model=DiagnosticsResponse)
    async def get_diagnostics():
        return DiagnosticsResponse(**dataclasses.asdict(snapshot(machine, rows)))

    @app.get("/diagnostics/sections", response_model=List[SectionStatusOut])
    async def get_sections():
        return [
            SectionStatusOut(
                section=section.value,
                status=section_loader.status(section).value,
                error=section_loader.get_error_message(section),
            )
            for section in SectionName
        ]

    return app
