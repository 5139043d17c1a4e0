import threading
from typing import Any, Dict, Optional

from pgm_state_gateway.core.interfaces import IJobSource, IMachineStatus
from pgm_state_gateway.core.session import Job, OperatingMode


class MachineContextStore(IMachineStatus, IJobSource):
    """
    Single Source of Truth for the machine context the engine reads.
    Thread-safe; written by the host API, read by the engine and the mode poll.
    """
    def __init__(self, mode: OperatingMode = OperatingMode.PROGRAM, is_in_error: bool = False,
                 job: Optional[Job] = None):
        self._lock = threading.Lock()
        self._mode = mode
        self._is_in_error = is_in_error
        self._job = job

    @property
    def mode(self) -> OperatingMode:
        with self._lock:
            return self._mode

    @property
    def is_in_error(self) -> bool:
        with self._lock:
            return self._is_in_error

    def current_job(self) -> Optional[Job]:
        with self._lock:
            return self._job

    def update_status(self, mode: Optional[OperatingMode] = None, is_in_error: Optional[bool] = None):
        """
        Update mode and/or error flag. None leaves a field unchanged.
        """
        with self._lock:
            if mode is not None:
                self._mode = mode
            if is_in_error is not None:
                self._is_in_error = is_in_error

    def set_job(self, job: Optional[Job]):
        with self._lock:
            self._job = job

    def get_all(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "mode": self._mode.value,
                "isInError": self._is_in_error,
                "qtyNeeded": self._job.qty_needed if self._job else None,
            }
