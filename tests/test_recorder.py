import pytest

from energy_hub_mpc.mpc.recorder import ClosedLoopRecord, ClosedLoopRecorder
from energy_hub_mpc.mpc.state import AnchorState
from energy_hub_mpc.units.commitment import UnitState
from energy_hub_mpc.units.helper import UnitHelper


def _record(iteration: int, esu_level: float = 100.0) -> ClosedLoopRecord:
    return ClosedLoopRecord(
        iteration=iteration,
        applied={"grid_purchase": 120.0, "esu_charge": 10.0},
        units={
            "chp": UnitState(on=0, on_time=0, off_time=3 + iteration),
            "heat_pump": UnitState(on=1, on_time=1 + iteration, off_time=0, output=150.0),
            "gas_boiler": UnitState(on=0, on_time=0, off_time=3 + iteration),
        },
        esu_level=esu_level,
        tsu_level=200.0,
        objective=42.0,
        solve_time=0.1,
    )


@pytest.fixture
def recorder():
    return ClosedLoopRecorder(AnchorState.initial(60.0, 80.0, 2))


def test_empty_recorder_anchors_on_initial_state(recorder):
    anchor = recorder.anchor()

    assert anchor is recorder.initial_anchor
    assert anchor.iteration == 0
    assert anchor.unit(UnitHelper.CHP) == UnitState.initial(2)
    assert anchor.storage_level(UnitHelper.TSU) == 80.0
    assert recorder.latest is None
    assert recorder.records == ()


def test_latest_record_gives_next_anchor(recorder):
    recorder.append(_record(0, esu_level=123.0))

    anchor = recorder.anchor()

    assert anchor.iteration == 1
    assert anchor.esu_level == 123.0
    assert anchor.unit(UnitHelper.HEAT_PUMP).output == 150.0
    assert recorder.latest.iteration == 0


def test_records_must_be_sequential(recorder):
    recorder.append(_record(0))

    with pytest.raises(ValueError):
        recorder.append(_record(2))
    with pytest.raises(ValueError):
        recorder.append(_record(0))

    assert len(recorder) == 1


def test_records_cannot_be_mutated(recorder):
    recorder.append(_record(0))

    records = recorder.records
    with pytest.raises(AttributeError):
        records[0].esu_level = 0.0
    assert isinstance(records, tuple)


def test_record_contents_are_read_only(recorder):
    applied = {"grid_purchase": 120.0}
    record = ClosedLoopRecord(
        iteration=0, applied=applied, units={"chp": UnitState.initial(2)}, esu_level=60.0, tsu_level=80.0, objective=1.0
    )
    recorder.append(record)
    applied["grid_purchase"] = 0.0

    stored = recorder.records[0]
    with pytest.raises(TypeError):
        stored.applied["grid_purchase"] = 0.0
    with pytest.raises(TypeError):
        stored.units["chp"] = UnitState.initial(5)
    assert stored.applied["grid_purchase"] == 120.0
    assert recorder.anchor().units["chp"] == UnitState.initial(2)


def test_storage_level_of_dispatchable_unit_is_rejected(recorder):
    with pytest.raises(KeyError):
        recorder.anchor().storage_level(UnitHelper.CHP)


def test_to_dataframe(recorder):
    recorder.append(_record(0))
    recorder.append(_record(1))

    frame = recorder.to_dataframe()

    assert list(frame.index) == [0, 1]
    assert frame.loc[1, "grid_purchase"] == 120.0
    assert frame.loc[1, "heat_pump_on_time"] == 2
    assert frame.loc[0, "chp_off_time"] == 3
    assert {"esu_level", "tsu_level", "objective", "solve_time", "gas_boiler_cold_start"} <= set(frame.columns)


def test_empty_dataframe(recorder):
    assert recorder.to_dataframe().empty
