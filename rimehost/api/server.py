"""
FastAPI control surface for the rime host.

The application lifespan doubles as the host application lifecycle: startup
launches and deploys the engine, shutdown asks for termination and tears the
host down.  Endpoints are ``async`` so every trigger runs on the event loop
thread, which serialises them.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi import Path as PathParam

from ..lifecycle import LifecycleController, controller_for
from ..models import MaintenanceRequested, WillFinishLaunching, WillTerminate
from ..notifications import KNOWN_NOTIFICATIONS, RELOAD_NOTIFICATION, WILL_POWER_OFF, NotificationCenter
from ..runtime.logind import PowerOffMonitor
from . import schemas

LOG = logging.getLogger(__name__)


def host_lifespan(
    *,
    initial_full_check: bool = False,
    watch_logind: bool = False,
) -> Callable[[FastAPI], AsyncIterator[None]]:
    """
    Build the lifespan mapping startup/shutdown onto lifecycle triggers.
    """

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        controller = controller_for(app)
        controller.handle(WillFinishLaunching())
        controller.handle(MaintenanceRequested(full_check=initial_full_check))

        monitor: Optional[PowerOffMonitor] = None
        if watch_logind:
            loop = asyncio.get_running_loop()
            center = controller.workspace_center
            monitor = PowerOffMonitor(lambda: loop.call_soon_threadsafe(center.post, WILL_POWER_OFF))
            monitor.start()

        LOG.info("Host started in state %s", controller.state.value)
        try:
            yield
        finally:
            if monitor is not None:
                monitor.stop()
            reply = controller.should_terminate()
            LOG.debug("Termination reply: %s", reply.value)
            controller.handle(WillTerminate())
            LOG.info("Host stopped.")

    return _lifespan


def _center_for(controller: LifecycleController, name: str) -> NotificationCenter:
    if name == WILL_POWER_OFF:
        return controller.workspace_center
    if name == RELOAD_NOTIFICATION:
        return controller.distributed_center
    raise HTTPException(status_code=404, detail=f"Unknown notification '{name}'")


def create_app(
    *,
    controller: LifecycleController,
    lifespan: Optional[Callable[[FastAPI], AsyncIterator[None]]] = None,
) -> FastAPI:
    app = FastAPI(title="Rime Host Control API", lifespan=lifespan or host_lifespan())
    app.state.controller = controller

    @app.get("/healthz")
    async def healthz() -> dict:
        return {"status": "ok"}

    @app.get("/status", response_model=schemas.StatusModel)
    async def status(request: Request) -> schemas.StatusModel:
        return schemas.StatusModel(**controller_for(request.app).describe())

    @app.get("/notifications", response_model=schemas.NotificationNames)
    async def list_notifications() -> schemas.NotificationNames:
        return schemas.NotificationNames(notifications=list(KNOWN_NOTIFICATIONS))

    @app.post("/notifications/{name}", status_code=202, response_model=schemas.NotificationAccepted)
    async def post_notification(
        request: Request,
        name: str = PathParam(..., description="notification name"),
    ) -> schemas.NotificationAccepted:
        center = _center_for(controller_for(request.app), name)
        delivered = center.post(name)
        return schemas.NotificationAccepted(name=name, center=center.label, delivered=delivered)

    @app.post("/maintenance", response_model=schemas.StatusModel)
    async def maintenance(request: Request, payload: schemas.MaintenanceRequest) -> schemas.StatusModel:
        host = controller_for(request.app)
        host.handle(MaintenanceRequested(full_check=payload.full_check))
        return schemas.StatusModel(**host.describe())

    return app
