from abc import ABC, abstractmethod
from typing import Callable, Optional

from pgm_state_gateway.core.nodes import NodeAssertion, NodeBatch
from pgm_state_gateway.core.session import Job, OperatingMode


class IMachineStatus(ABC):
    """
    Read-only view of the bending machine (mode, error flag).
    """
    @property
    @abstractmethod
    def mode(self) -> OperatingMode:
        pass

    @property
    @abstractmethod
    def is_in_error(self) -> bool:
        pass


class IJobSource(ABC):
    """
    Interface for the active job provider.
    """
    @abstractmethod
    def current_job(self) -> Optional[Job]:
        """
        Returns the active job, or None when no job is loaded.
        """
        pass


class INodeSink(ABC):
    """
    Interface for node update sinks (e.g. OPC-UA REST gateway).
    """
    @abstractmethod
    def send(self, assertion: NodeAssertion) -> None:
        """
        Delivers one node update. Must never raise.
        """
        pass


class IScheduler(ABC):
    """
    Interface the engine uses to hand off work.
    """
    @abstractmethod
    def dispatch(self, batch: NodeBatch) -> None:
        pass

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        pass


class IAdapter(ABC):
    @abstractmethod
    def connect(self):
        pass

    @abstractmethod
    def disconnect(self):
        pass
