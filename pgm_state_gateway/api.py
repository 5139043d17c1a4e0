from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from pydantic import BaseModel, ConfigDict, Field

from pgm_state_gateway.adapters.machine_store import MachineContextStore
from pgm_state_gateway.core.session import Job, OperatingMode
from pgm_state_gateway.service import PgmStateService


# --- Request Models ---
class _HostModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ProgramEvent(_HostModel):
    pgm_name: str = Field(alias="pgmName")
    bend_no: int = Field(0, alias="bendNo")
    quantity: int = -1


class ProgramCompletedEvent(_HostModel):
    pgm_name: str = Field(alias="pgmName")
    quantity: int = -1


class BendEvent(_HostModel):
    pgm_name: str = Field(alias="pgmName")
    bend_no: int = Field(alias="bendNo")


class MachineStatusUpdate(_HostModel):
    mode: Optional[OperatingMode] = None
    is_in_error: Optional[bool] = Field(None, alias="isInError")


class JobUpdate(_HostModel):
    qty_needed: int = Field(alias="qtyNeeded")


OK = {"status": "ok"}


def create_app(service: PgmStateService, store: MachineContextStore) -> FastAPI:
    """
    Host API: lifecycle callbacks and machine context over HTTP.
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service.initialize()
        yield
        service.uninitialize()

    app = FastAPI(title="Program State OPC-UA Gateway", lifespan=lifespan)

    @app.get("/")
    def read_root():
        return {"status": "ok", "service": "pgm-state-gateway", **service.get_status()}

    # --- Lifecycle Callbacks ---
    @app.post("/api/program/started")
    def program_started(event: ProgramEvent):
        service.program_started(event.pgm_name, event.bend_no, event.quantity)
        return OK

    @app.post("/api/program/stopped")
    def program_stopped(event: ProgramEvent):
        service.program_stopped(event.pgm_name, event.bend_no, event.quantity)
        return OK

    @app.post("/api/program/completed")
    def program_completed(event: ProgramCompletedEvent):
        service.program_completed(event.pgm_name, event.quantity)
        return OK

    @app.post("/api/program/bend")
    def bend_changed(event: BendEvent):
        service.bend_changed(event.pgm_name, event.bend_no)
        return OK

    # --- Machine Context ---
    @app.get("/api/machine")
    def get_machine():
        return store.get_all()

    @app.put("/api/machine/status")
    def update_status(update: MachineStatusUpdate):
        store.update_status(update.mode, update.is_in_error)
        return OK

    @app.put("/api/machine/job")
    def set_job(update: JobUpdate):
        store.set_job(Job(update.qty_needed))
        return OK

    @app.delete("/api/machine/job")
    def clear_job():
        store.set_job(None)
        return OK

    return app
