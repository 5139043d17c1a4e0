"""
Program State Engine

Translates bending machine lifecycle events into gateway node batches.

CRITICAL RULES:
- Every batch that asserts a program state clears the rest of the family
- Assertions are issued before clears
- Session memory is mutated only here, one event at a time
- Delayed "raise running" calls are never cancelled
"""

import logging
import threading
from typing import Optional

from pgm_state_gateway.core.interfaces import IJobSource, IMachineStatus, IScheduler
from pgm_state_gateway.core.nodes import LogicalNode, NodeBatch, utcnow
from pgm_state_gateway.core.session import OperatingMode, SessionMemory
from pgm_state_gateway.core.settings import Settings

logger = logging.getLogger("pgm_state.engine")

N = LogicalNode


class PgmStateEngine:
    """
    Core Logic: Event -> Decide -> Batch -> Dispatch.

    The host is expected to call the lifecycle operations one at a time;
    the engine lock makes that safe even when it does not.
    """
    def __init__(self, machine_status: IMachineStatus, jobs: IJobSource, scheduler: IScheduler,
                 detect_mode_abort: bool = False):
        self.machine_status = machine_status
        self.jobs = jobs
        self.scheduler = scheduler
        self.detect_mode_abort = detect_mode_abort
        self.settings: Optional[Settings] = None
        self.session = SessionMemory()
        self._lock = threading.RLock()

    # ============================================================
    # LIFECYCLE EVENTS
    # ============================================================

    def program_started(self, pgm_name: str, bend_no: int, quantity: int = -1) -> None:
        with self._lock:
            if self.settings is None:
                return
            mode = self.machine_status.mode
            if not mode.is_production:
                logger.debug(f"ProgramStarted({pgm_name}) ignored in mode {mode.value}")
                return

            if bend_no == 0:
                job = self.jobs.current_job()
                was_completed = self.session.program_completed
                self.session.program_completed = False
                self.session.over_produce = job is not None and quantity >= job.qty_needed

                if not was_completed and job is not None and job.qty_needed > 0:
                    # Previous run never completed: treat as restart after abort
                    logger.info(f"Restart of {pgm_name} without completion, pulsing Aborted")
                    self.session.program_name = pgm_name
                    self.session.target_quantity = job.qty_needed
                    batch = (NodeBatch(utcnow())
                             .set(N.PROG_NAME, pgm_name)
                             .set(N.TARGET_QUANTITY, job.qty_needed)
                             .set(N.ABORTED)
                             .clear(N.RUNNING, N.STOPPED, N.STOPPED_MALFUNCTION, N.STOPPED_OPERATOR, N.ENDED))
                    self._emit(batch)
                    self.scheduler.call_later(self.settings.pgm_end_to_start_interval, self.raise_running)
                    self.session.program_completed = False
                    return

            self.raise_running()

    def raise_running(self) -> None:
        """Assert Running and clear terminal/abort states, stamped now."""
        batch = (NodeBatch(utcnow())
                 .set(N.RUNNING)
                 .clear(N.ABORTED, N.STOPPED, N.STOPPED_MALFUNCTION, N.STOPPED_OPERATOR, N.ENDED))
        self._emit(batch)

    def program_completed(self, pgm_name: str, quantity: int = -1) -> None:
        with self._lock:
            if self.settings is None:
                return
            job = self.jobs.current_job()
            batch = NodeBatch(utcnow()).set(N.ENDED)

            self.session.current_quantity = quantity
            batch.set(N.CURRENT_QUANTITY, quantity)
            if job is not None and job.qty_needed == self.session.current_quantity:
                self.session.target_quantity = job.qty_needed
                batch.set(N.TARGET_QUANTITY, job.qty_needed)

            batch.clear(N.RUNNING, N.ABORTED, N.STOPPED, N.STOPPED_MALFUNCTION, N.STOPPED_OPERATOR, N.PROG_NAME)
            self._emit(batch)

            if job is not None and (quantity < job.qty_needed or quantity < 0):
                # More parts remain
                self.scheduler.call_later(self.settings.pgm_end_to_start_interval, self.raise_running)
            else:
                self.session.program_completed = True
            self.session.over_produce = False

    def program_stopped(self, pgm_name: str, bend_no: int, quantity: int = -1) -> None:
        with self._lock:
            if self.settings is None:
                return
            job = self.jobs.current_job()
            if job is not None and quantity >= job.qty_needed and not self.session.over_produce:
                logger.debug(f"ProgramStopped({pgm_name}, qty={quantity}) suppressed, job quantity reached")
                return

            if self.machine_status.is_in_error:
                reason, other = N.STOPPED_MALFUNCTION, N.STOPPED_OPERATOR
            else:
                reason, other = N.STOPPED_OPERATOR, N.STOPPED_MALFUNCTION
            batch = (NodeBatch(utcnow())
                     .set(N.STOPPED)
                     .set(reason)
                     .clear(N.RUNNING, N.ABORTED, N.ENDED, other, N.PROG_NAME))
            self._emit(batch)

    def bend_changed(self, pgm_name: str, bend_no: int) -> None:
        logger.debug(f"BendChanged({pgm_name}, {bend_no})")

    # ============================================================
    # MODE POLL
    # ============================================================

    def observe_mode(self, mode: OperatingMode) -> None:
        """
        Record the polled operating mode.

        With detect_mode_abort, leaving SemiAuto/Auto pulses Aborted.
        """
        with self._lock:
            previous = self.session.last_mode
            self.session.last_mode = mode
            if not self.detect_mode_abort or self.settings is None:
                return
            if previous.is_production and not mode.is_production:
                logger.info(f"Mode changed {previous.value} -> {mode.value}, program aborted")
                batch = (NodeBatch(utcnow())
                         .set(N.ABORTED)
                         .clear(N.RUNNING, N.ENDED, N.STOPPED, N.STOPPED_MALFUNCTION, N.STOPPED_OPERATOR))
                self._emit(batch)

    def _emit(self, batch: NodeBatch) -> None:
        logger.info(f"Emit {batch!r}")
        self.scheduler.dispatch(batch)
