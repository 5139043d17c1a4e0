"""
Service wiring: Initialize loads settings, hands them to sink and engine,
and starts the mode poll.
"""

from conftest import RecordingScheduler, values
from pgm_state_gateway.adapters.machine_store import MachineContextStore
from pgm_state_gateway.adapters.sink_rest import OpcUaRestSink
from pgm_state_gateway.core.scheduler import NodeScheduler
from pgm_state_gateway.core.session import Job, OperatingMode
from pgm_state_gateway.core.settings import SETTINGS_FILE
from pgm_state_gateway.service import PgmStateService


def build(tmp_path, **kwargs):
    store = MachineContextStore(mode=OperatingMode.SEMI_AUTO)
    scheduler = RecordingScheduler()
    service = PgmStateService(store, store, str(tmp_path), sink=OpcUaRestSink(),
                              scheduler=scheduler, **kwargs)
    return service, store, scheduler


def test_calls_before_initialize_are_ignored(tmp_path):
    service, store, scheduler = build(tmp_path)
    store.set_job(Job(5))

    service.program_started("P", 0, 0)
    service.program_completed("P", 5)
    service.program_stopped("P", 1, 1)

    assert scheduler.batches == []
    assert not service.initialized


def test_initialize_wires_settings_and_poll(tmp_path):
    service, store, scheduler = build(tmp_path, poll_interval=0.25)
    service.initialize()

    assert service.initialized
    assert (tmp_path / SETTINGS_FILE).exists()
    assert service.sink.settings is service.engine.settings
    assert scheduler.poll[2] == 0.25

    store.update_status(mode=OperatingMode.MANUAL)
    scheduler.poll_once()
    assert service.engine.session.last_mode == OperatingMode.MANUAL


def test_initialize_twice_loads_once(tmp_path):
    service, _, _ = build(tmp_path)
    service.initialize()
    first = service.engine.settings
    service.initialize()
    assert service.engine.settings is first


def test_lifecycle_through_service(tmp_path):
    service, store, scheduler = build(tmp_path)
    store.set_job(Job(2))
    service.initialize()

    service.program_started("P", 0, 0)
    scheduler.fire_delayed()
    service.bend_changed("P", 1)
    service.program_completed("P", 2)

    assert values(scheduler.batches[0].asserted)["35.Aborted"] == "true"
    assert values(scheduler.batches[1].asserted) == {"35.Running": "true"}
    assert values(scheduler.batches[2].asserted)["12"] == "2"
    assert service.get_status()["session"]["program_completed"] is True


def test_uninitialize_stops_publishing(tmp_path):
    service, _, scheduler = build(tmp_path)
    service.initialize()
    service.uninitialize()

    service.program_started("P", 3)
    assert scheduler.batches == []
    assert scheduler.closed


class CapturingRestSink(OpcUaRestSink):
    def __init__(self):
        super().__init__()
        self.sent = []

    def send(self, assertion):
        self.sent.append(assertion)


def test_reinitialize_resumes_publishing(tmp_path):
    """initialize -> uninitialize -> initialize must publish again."""
    store = MachineContextStore(mode=OperatingMode.AUTO)
    sink = CapturingRestSink()
    scheduler = NodeScheduler(sink, workers=1)
    service = PgmStateService(store, store, str(tmp_path), sink=sink, scheduler=scheduler, poll_interval=0.05)

    service.initialize()
    service.uninitialize()
    service.initialize()
    assert service.initialized
    assert scheduler.polling

    service.program_started("P", 3)
    scheduler.shutdown(wait=True)

    assert values(sink.sent) == {
        "35.Running": "true",
        "35.Aborted": "false",
        "35.Stopped": "false",
        "35.StoppedMalfunction": "false",
        "35.StoppedOperator": "false",
        "35.Ended": "false",
    }
