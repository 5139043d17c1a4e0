from pgm_state_gateway.adapters.machine_store import MachineContextStore
from pgm_state_gateway.core.session import Job, OperatingMode


def test_defaults():
    store = MachineContextStore()
    assert store.mode == OperatingMode.PROGRAM
    assert store.is_in_error is False
    assert store.current_job() is None


def test_partial_status_update_keeps_other_field():
    store = MachineContextStore(mode=OperatingMode.AUTO, is_in_error=True)
    store.update_status(mode=OperatingMode.SEMI_AUTO)
    assert store.is_in_error is True
    store.update_status(is_in_error=False)
    assert store.mode == OperatingMode.SEMI_AUTO
    assert store.is_in_error is False


def test_job_round_trip():
    store = MachineContextStore()
    store.set_job(Job(12))
    assert store.current_job() == Job(12)
    assert store.get_all()["qtyNeeded"] == 12
