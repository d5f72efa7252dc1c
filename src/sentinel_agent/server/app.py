"""
HTTP control surface of the agent.

A thin FastAPI layer over the agent's components: telemetry and incident
reads, the performance ingest endpoint the probe posts to, log and route
readers, and audit control. Endpoints are plain ``def`` functions and run on
the framework's thread pool; the components do their own locking.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from ..injection import PROBE_FILENAME
from ..logs import get_deadlocks, get_performance_logs, get_recent_logs, get_routes
from ..models.telemetry import PerformanceEntry
from ..orchestration import AgentServices
from ..storage import analyze_performance
from ..validation import (
    AuditConflict,
    EntryFileUnreadable,
    InjectorError,
    RouteListError,
    WriteFailed,
)
from .models import IngestPayload, PathRequest

logger = logging.getLogger(__name__)

INGEST_ROUTE = "/projects/ingest"


def _require_path(path: Optional[str]) -> str:
    if not path:
        raise HTTPException(status_code=400, detail="Query parameter 'path' is required")
    return path


def create_app(services: AgentServices, start_scheduler: bool = True) -> FastAPI:
    """
    Build the FastAPI application around an already wired set of services.

    Args:
        services: The agent components the endpoints operate on.
        start_scheduler: Start the polling scheduler for the app's lifetime.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scheduler = services.scheduler
        if start_scheduler and not scheduler.is_running:
            scheduler.start()
        try:
            yield
        finally:
            if scheduler.is_running:
                scheduler.stop()

    app = FastAPI(title="Sentinel Agent", version="0.1.0", lifespan=lifespan)
    app.state.services = services

    origins = services.config.server.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        if request.url.path == INGEST_ROUTE:
            logger.debug(f"Rejected malformed metric: {exc.errors()}")
            return JSONResponse(status_code=400, content={"detail": "Invalid metric"})
        return JSONResponse(status_code=400, content={"detail": "Invalid request"})

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # --- Telemetry ---

    @app.get("/telemetry")
    def telemetry():
        return services.monitor.get_status().to_dict()

    @app.get("/telemetry/processes")
    def telemetry_processes():
        return [
            {
                "pid": s.pid,
                "name": s.name,
                "command_line": s.command_line,
                "resident_memory_bytes": s.resident_memory_bytes,
                "cpu_percent": s.cpu_percent,
                "tier": s.tier,
            }
            for s in services.monitor.sample_processes()
        ]

    @app.get("/alerts")
    def alerts():
        incident = services.watchdog.get_latest()
        if incident is None:
            return Response(status_code=204)
        return incident.to_dict()

    # --- Performance ---

    @app.post(INGEST_ROUTE)
    def ingest(payload: IngestPayload):
        try:
            entry = PerformanceEntry.from_dict(payload.model_dump())
        except (TypeError, ValueError) as e:
            logger.debug(f"Rejected malformed metric: {e}")
            raise HTTPException(status_code=400, detail="Invalid metric")
        services.store.add(entry)
        return Response(status_code=200)

    def _collect_entries(path: str):
        return get_performance_logs(path) + services.store.get_all()

    @app.get("/projects/performance")
    def performance(path: Optional[str] = None):
        path = _require_path(path)
        return [entry.to_dict() for entry in _collect_entries(path)]

    @app.get("/projects/performance/summary")
    def performance_summary(path: Optional[str] = None):
        path = _require_path(path)
        return analyze_performance(_collect_entries(path))

    @app.post("/projects/performance/clear")
    def performance_clear():
        services.store.clear()
        return {"status": "cleared"}

    # --- Logs and routes ---

    @app.get("/projects/logs")
    def logs(path: Optional[str] = None):
        path = _require_path(path)
        return {"lines": get_recent_logs(path, 50)}

    @app.get("/projects/deadlocks")
    def deadlocks(path: Optional[str] = None):
        path = _require_path(path)
        return [entry.to_dict() for entry in get_deadlocks(path)]

    @app.get("/projects/routes")
    def routes(path: Optional[str] = None):
        path = _require_path(path)
        try:
            return [route.to_dict() for route in get_routes(path)]
        except RouteListError as e:
            logger.error(f"Failed to list routes for {path}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    # --- Audit control ---

    @app.post("/runner/start")
    def runner_start(request: PathRequest):
        try:
            result = services.audit_manager.enable(request.path)
        except AuditConflict as e:
            raise HTTPException(status_code=409, detail=str(e))
        except EntryFileUnreadable as e:
            raise HTTPException(status_code=404, detail=str(e))
        except (WriteFailed, InjectorError) as e:
            logger.error(f"Failed to enable audit for {request.path}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        return {
            "status": "started",
            "path": request.path,
            "probe": PROBE_FILENAME,
            "already_injected": result.already_injected,
            "smart_hook_applied": result.smart_hook_applied,
        }

    @app.post("/runner/stop")
    def runner_stop(request: PathRequest):
        try:
            services.audit_manager.disable(request.path)
        except InjectorError as e:
            logger.error(f"Failed to disable audit for {request.path}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        return {"status": "stopped", "path": request.path}

    @app.get("/runner/status")
    def runner_status():
        return services.audit_manager.status()

    @app.get("/config")
    def config():
        return services.config.to_dict()

    return app
