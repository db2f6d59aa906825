import cvxpy as cvx
import numpy as np
import pytest

from energy_hub_mpc.units.commitment import (
    UnitCommitmentTracker,
    UnitState,
    advance_unit_state,
    classify_start,
)
from energy_hub_mpc.units.helper import UnitHelper

HOT_START_TIME = 2.5
WARM_START_TIME = 7.5


def _advance(previous: UnitState, on: float, **kwargs) -> UnitState:
    return advance_unit_state(previous, on, HOT_START_TIME, WARM_START_TIME, **kwargs)


@pytest.mark.parametrize(
    "off_time, expected",
    [(0, "hot"), (2, "hot"), (3, "warm"), (7, "warm"), (8, "cold"), (20, "cold")],
)
def test_classify_start(off_time, expected):
    assert classify_start(off_time, HOT_START_TIME, WARM_START_TIME) == expected


def test_classify_start_integer_thresholds_are_inclusive():
    assert classify_start(3, 3.0, 8.0) == "warm"
    assert classify_start(8, 3.0, 8.0) == "cold"


def test_initial_state():
    state = UnitState.initial(2)

    assert (state.on, state.on_time, state.off_time) == (0, 0, 2)
    assert state.start == state.stop == 0
    assert state.output == 0.0


def test_start_from_initial_state_is_hot():
    state = _advance(UnitState.initial(2), 1.0)

    assert state.on == 1
    assert state.start == 1
    assert state.stop == 0
    assert (state.on_time, state.off_time) == (1, 0)
    assert (state.hot_start, state.warm_start, state.cold_start) == (1, 0, 0)


def test_counters_run_and_reset():
    state = UnitState.initial(2)
    history = []
    for on in (1, 1, 1, 0, 0, 0, 1):
        state = _advance(state, on)
        history.append(state)

    assert [s.on_time for s in history] == [1, 2, 3, 0, 0, 0, 1]
    assert [s.off_time for s in history] == [0, 0, 0, 1, 2, 3, 0]
    assert [s.start for s in history] == [1, 0, 0, 0, 0, 0, 1]
    assert [s.stop for s in history] == [0, 0, 0, 1, 0, 0, 0]
    # The second start follows three idle steps
    assert history[-1].warm_start == 1


def test_long_idle_period_gives_cold_start():
    state = UnitState(on=0, on_time=0, off_time=8)

    state = _advance(state, 1.0)

    assert (state.hot_start, state.warm_start, state.cold_start) == (0, 0, 1)


def test_classification_sums_to_start():
    state = UnitState.initial(2)
    for on in (1, 0, 0, 0, 0, 0, 0, 0, 0, 1, 1, 0, 1):
        state = _advance(state, on)
        assert state.hot_start + state.warm_start + state.cold_start == state.start


def test_solver_values_are_rounded():
    state = _advance(UnitState.initial(2), 0.9999997, output=75.2, delay_ok=2e-7)

    assert state.on == 1
    assert state.delay_ok == 0
    assert state.output == pytest.approx(75.2)

    state = _advance(state, 3e-8)

    assert state.on == 0
    assert state.stop == 1


def test_tracker_expressions_without_delay():
    tracker = UnitCommitmentTracker(UnitHelper.HEAT_PUMP, 4, HOT_START_TIME, WARM_START_TIME)

    constraints, expressions = tracker.create_mpc_formulation(UnitState.initial(2))

    assert not tracker.has_start_up_delay
    assert "delay_ok" not in expressions
    assert expressions["gate"] is expressions["on"]
    assert expressions["on"].name() == "heat_pump_on"
    assert expressions["on"].attributes["boolean"]
    assert all(constraint.is_dcp() for constraint in constraints)


def test_tracker_expressions_with_delay():
    tracker = UnitCommitmentTracker(
        UnitHelper.CHP, 4, HOT_START_TIME, WARM_START_TIME, min_up_time=2.5, start_up_delay=1.5
    )

    _, expressions = tracker.create_mpc_formulation(UnitState.initial(2))

    assert tracker.has_start_up_delay
    assert expressions["gate"] is expressions["delay_ok"]
    assert expressions["delay_ok"].name() == "chp_delay_ok"


def test_zero_delay_means_no_delay():
    tracker = UnitCommitmentTracker(UnitHelper.GAS_BOILER, 4, HOT_START_TIME, WARM_START_TIME, start_up_delay=0.0)

    assert not tracker.has_start_up_delay


def test_tracker_constraints_match_numeric_recurrence():
    on_pattern = np.array([1, 1, 1, 0, 0, 0, 1, 0, 0, 0], dtype=float)
    anchor = UnitState.initial(2)
    tracker = UnitCommitmentTracker(
        UnitHelper.CHP, len(on_pattern), HOT_START_TIME, WARM_START_TIME, start_up_delay=1.5
    )

    constraints, expressions = tracker.create_mpc_formulation(anchor)
    constraints.append(expressions["on"] == on_pattern)
    problem = cvx.Problem(cvx.Minimize(cvx.sum(expressions["start"])), constraints)
    problem.solve(solver="HIGHS")

    assert problem.status == cvx.OPTIMAL

    state = anchor
    expected = []
    for on in on_pattern:
        state = advance_unit_state(state, on, HOT_START_TIME, WARM_START_TIME)
        expected.append(state)

    for field in ("start", "stop", "on_time", "off_time", "hot_start", "warm_start", "cold_start"):
        np.testing.assert_allclose(
            expressions[field].value, [getattr(s, field) for s in expected], atol=1e-6, err_msg=field
        )
    # Output allowed only once the unit has been on for two full steps before
    np.testing.assert_allclose(expressions["delay_ok"].value, [0, 0, 1, 0, 0, 0, 0, 0, 0, 0], atol=1e-6)


def test_minimum_down_time_blocks_early_restart():
    anchor = UnitState(on=1, on_time=5, off_time=0)
    tracker = UnitCommitmentTracker(UnitHelper.GAS_BOILER, 3, HOT_START_TIME, WARM_START_TIME, min_down_time=1.5)

    constraints, expressions = tracker.create_mpc_formulation(anchor)
    # Stop at the first step and restart right after
    constraints.append(expressions["on"] == np.array([0.0, 1.0, 1.0]))
    problem = cvx.Problem(cvx.Minimize(0), constraints)
    problem.solve(solver="HIGHS")

    assert problem.status in ("infeasible", "infeasible_or_unbounded")


def test_minimum_up_time_blocks_early_stop():
    anchor = UnitState.initial(2)
    tracker = UnitCommitmentTracker(UnitHelper.CHP, 3, HOT_START_TIME, WARM_START_TIME, min_up_time=2.5)

    constraints, expressions = tracker.create_mpc_formulation(anchor)
    constraints.append(expressions["on"] == np.array([1.0, 1.0, 0.0]))
    problem = cvx.Problem(cvx.Minimize(0), constraints)
    problem.solve(solver="HIGHS")

    assert problem.status in ("infeasible", "infeasible_or_unbounded")
