import pytest

from pgm_state_gateway.adapters.machine_store import MachineContextStore
from pgm_state_gateway.core.engine import PgmStateEngine
from pgm_state_gateway.core.interfaces import INodeSink, IScheduler
from pgm_state_gateway.core.session import OperatingMode
from pgm_state_gateway.core.settings import Settings


class RecordingScheduler(IScheduler):
    """
    Captures batches and delayed calls instead of running them.
    """
    def __init__(self):
        self.batches = []
        self.delayed = []

    def dispatch(self, batch):
        self.batches.append(batch)

    def call_later(self, delay, callback):
        self.delayed.append((delay, callback))

    def start(self):
        self.closed = False

    def start_polling(self, sample, on_sample, interval=0.1):
        self.poll = (sample, on_sample, interval)

    def poll_once(self):
        sample, on_sample, _ = self.poll
        on_sample(sample())

    def shutdown(self, wait=False):
        self.closed = True

    def fire_delayed(self):
        pending, self.delayed = self.delayed, []
        for _, callback in pending:
            callback()


class RecordingSink(INodeSink):
    def __init__(self):
        self.sent = []

    def send(self, assertion):
        self.sent.append(assertion)


def values(assertions):
    """{node name: value} for a list of assertions."""
    return {a.name: a.value for a in assertions}


@pytest.fixture
def machine():
    return MachineContextStore(mode=OperatingMode.AUTO)


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def engine(machine, scheduler):
    eng = PgmStateEngine(machine, machine, scheduler)
    eng.settings = Settings()
    return eng
