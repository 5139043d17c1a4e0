"""
Program State Service

Host-facing surface: Initialize / Uninitialize plus the lifecycle callbacks.
Wires settings, engine, scheduler and the REST sink together. Machine status
and job provider are injected by the host.
"""

import logging
import threading
from typing import Any, Dict, Optional

from pgm_state_gateway.adapters.sink_rest import OpcUaRestSink
from pgm_state_gateway.core.engine import PgmStateEngine
from pgm_state_gateway.core.interfaces import IJobSource, IMachineStatus
from pgm_state_gateway.core.scheduler import DEFAULT_POLL_INTERVAL, NodeScheduler
from pgm_state_gateway.core.settings import SettingsStore

logger = logging.getLogger("pgm_state.service")


class PgmStateService:
    def __init__(self, machine_status: IMachineStatus, jobs: IJobSource, data_folder: str,
                 sink: Optional[OpcUaRestSink] = None, scheduler: Optional[NodeScheduler] = None,
                 poll_interval: float = DEFAULT_POLL_INTERVAL, detect_mode_abort: bool = False):
        self.machine_status = machine_status
        self.settings_store = SettingsStore(data_folder)
        self.sink = sink or OpcUaRestSink()
        self.scheduler = scheduler or NodeScheduler(self.sink)
        self.poll_interval = poll_interval
        self.engine = PgmStateEngine(machine_status, jobs, self.scheduler, detect_mode_abort=detect_mode_abort)
        self._init_lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self.engine.settings is not None

    def initialize(self) -> None:
        with self._init_lock:
            if self.initialized:
                return
            settings = self.settings_store.load()
            self.sink.settings = settings
            self.sink.connect()
            self.scheduler.start()
            self.engine.settings = settings
            self.scheduler.start_polling(lambda: self.machine_status.mode, self.engine.observe_mode,
                                         interval=self.poll_interval)
            logger.info(f"Initialized, publishing to {settings.update_url}")

    def uninitialize(self) -> None:
        with self._init_lock:
            self.engine.settings = None
            self.scheduler.shutdown()
            self.sink.disconnect()
            logger.info("Uninitialized")

    # Lifecycle callbacks

    def program_started(self, pgm_name: str, bend_no: int, quantity: int = -1) -> None:
        self.engine.program_started(pgm_name, bend_no, quantity)

    def program_stopped(self, pgm_name: str, bend_no: int, quantity: int = -1) -> None:
        self.engine.program_stopped(pgm_name, bend_no, quantity)

    def program_completed(self, pgm_name: str, quantity: int = -1) -> None:
        self.engine.program_completed(pgm_name, quantity)

    def bend_changed(self, pgm_name: str, bend_no: int) -> None:
        self.engine.bend_changed(pgm_name, bend_no)

    def get_status(self) -> Dict[str, Any]:
        return {
            "initialized": self.initialized,
            "session": self.engine.session.snapshot(),
        }
