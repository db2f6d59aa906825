"""Unit commitment bookkeeping for the dispatchable units of the hub.

For every unit and step the tracker relates the on/off status of the current
and the previous step to

- the start and stop indicators,
- the consecutive on-time and off-time counters,
- the minimum up-time and down-time rules,
- the hot/warm/cold classification of a start from the off-time before it,
- the start-up delay flag that gates the unit output.

The same recurrence exists twice: symbolically, as constraints of the horizon
problem (`UnitCommitmentTracker`), and numerically, to advance the applied
closed-loop state after each solve (`advance_unit_state`).

The logical products of binaries (start = on AND NOT previous_on, the counter
recurrences, the threshold indicators) are written as exact linear
reformulations: McCormick envelopes for products of binaries and big-M bounds
for the counters, which are integral by construction. The problem is therefore
a mixed-integer linear program.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

import cvxpy as cvx
import numpy as np

from energy_hub_mpc.units.helper import UnitHelper
from energy_hub_mpc.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)


@dataclass(frozen=True)
class UnitState:
    """Applied commitment state of one dispatchable unit after one step.

    Attributes:
        on: 1 if the unit is committed, 0 otherwise.
        on_time: Consecutive steps the unit has been on, 0 while off.
        off_time: Consecutive steps the unit has been off, 0 while on.
        start: 1 if the unit was switched on in this step.
        stop: 1 if the unit was switched off in this step.
        hot_start: 1 for a start after a short idle period.
        warm_start: 1 for a start after a medium idle period.
        cold_start: 1 for a start after a long idle period.
        delay_ok: 1 if the start-up delay was satisfied and output allowed.
        output: Applied output used as reference for ramp limits.
    """

    on: int
    on_time: int
    off_time: int
    start: int = 0
    stop: int = 0
    hot_start: int = 0
    warm_start: int = 0
    cold_start: int = 0
    delay_ok: int = 0
    output: float = 0.0

    @classmethod
    def initial(cls, off_steps: int) -> "UnitState":
        """State of a unit assumed idle for `off_steps` steps before the simulation."""
        return cls(on=0, on_time=0, off_time=off_steps)


def _first_integer_at_least(threshold: float) -> int:
    """Smallest integer counter value that satisfies `counter >= threshold`."""
    return max(int(math.ceil(threshold)), 0)


def classify_start(off_time: int, hot_start_time: float, warm_start_time: float) -> str:
    """Tier of a start that follows `off_time` idle steps: 'hot', 'warm' or 'cold'."""
    if off_time < hot_start_time:
        return "hot"
    if off_time < warm_start_time:
        return "warm"
    return "cold"


def advance_unit_state(
    previous: UnitState,
    on: float,
    hot_start_time: float,
    warm_start_time: float,
    output: float = 0.0,
    delay_ok: float = 0.0,
) -> UnitState:
    """Advances the applied state of a unit by one step.

    Binary inputs coming from the solver are rounded to {0, 1} before being
    used, since the result anchors the next horizon problem. The start tier is
    derived from the applied off-time of the previous step.

    Args:
        previous: The applied state of the previous step.
        on: The applied on/off decision for this step.
        hot_start_time: Off-time below which a start is hot.
        warm_start_time: Off-time from which a start is cold.
        output: The applied output of the unit.
        delay_ok: Solver value of the start-up delay flag.

    Returns:
        The new `UnitState`.
    """
    current_on = int(round(on))
    previous_on = previous.on

    start = current_on * (1 - previous_on)
    stop = previous_on * (1 - current_on)
    on_time = (previous.on_time + 1) * previous_on * current_on + current_on * (1 - previous_on)
    off_time = (previous.off_time + 1) * (1 - previous_on) * (1 - current_on) + previous_on * (1 - current_on)

    tier = classify_start(previous.off_time, hot_start_time, warm_start_time) if start else None

    return UnitState(
        on=current_on,
        on_time=on_time,
        off_time=off_time,
        start=start,
        stop=stop,
        hot_start=int(tier == "hot"),
        warm_start=int(tier == "warm"),
        cold_start=int(tier == "cold"),
        delay_ok=int(round(delay_ok)),
        output=float(output),
    )


class UnitCommitmentTracker:
    """Formulates the commitment constraints of one unit over a horizon.

    Thresholds are given in steps and may be non-integer: a counter satisfies
    a threshold `T` once it reaches `ceil(T)`. A start is hot while the
    preceding off-time is below `hot_start_time`, cold from `warm_start_time`
    on, and warm in between.
    """

    def __init__(
        self,
        unit: UnitHelper,
        steps_horizon_k: int,
        hot_start_time: float,
        warm_start_time: float,
        min_up_time: float = 0.0,
        min_down_time: float = 0.0,
        start_up_delay: float | None = None,
    ) -> None:
        """Initializes the tracker.

        Args:
            unit: The unit the constraints belong to; used to name variables.
            steps_horizon_k: The number of steps in the horizon.
            hot_start_time: Off-time below which a start is hot.
            warm_start_time: Off-time from which a start is cold.
            min_up_time: Steps a unit must stay on before it may stop.
            min_down_time: Steps a unit must stay off before it may start.
            start_up_delay: Steps a unit must be on before it may produce
                            output; `None` or 0 gates output by the on/off
                            status alone.
        """
        self._unit = unit
        self._steps_horizon_k = steps_horizon_k
        self._hot_start_time = hot_start_time
        self._warm_start_time = warm_start_time
        self._min_up_time = min_up_time
        self._min_down_time = min_down_time
        self._start_up_delay = start_up_delay if start_up_delay else None

    @property
    def has_start_up_delay(self) -> bool:
        return self._start_up_delay is not None

    def create_mpc_formulation(self, anchor: UnitState) -> Tuple[List[Any], Dict[str, cvx.Expression]]:
        """Creates the commitment variables and constraints for the horizon.

        Args:
            anchor: The applied state preceding the first horizon step.

        Returns:
            A tuple with the list of constraints and a dictionary of expressions:
            `on`, `start`, `stop`, `on_time`, `off_time`, `hot_start`,
            `warm_start`, `cold_start` and `gate`, the binary that bounds the
            unit output (the delay flag for delayed units, `on` otherwise).
        """
        logger.debug("Creating commitment formulation for %s anchored on %s", self._unit.value, anchor)

        steps = self._steps_horizon_k
        name = self._unit.variable_name

        on = cvx.Variable(steps, boolean=True, name=name("on"))
        start = cvx.Variable(steps, nonneg=True, name=name("start"))
        stop = cvx.Variable(steps, nonneg=True, name=name("stop"))
        on_time = cvx.Variable(steps, nonneg=True, name=name("on_time"))
        off_time = cvx.Variable(steps, nonneg=True, name=name("off_time"))
        hot_start = cvx.Variable(steps, boolean=True, name=name("hot_start"))
        warm_start = cvx.Variable(steps, boolean=True, name=name("warm_start"))
        cold_start = cvx.Variable(steps, boolean=True, name=name("cold_start"))

        # Values of the previous step, taken from the anchor at the first step
        previous_on = cvx.hstack([np.array([float(anchor.on)]), on[:-1]])
        previous_on_time = cvx.hstack([np.array([float(anchor.on_time)]), on_time[:-1]])
        previous_off_time = cvx.hstack([np.array([float(anchor.off_time)]), off_time[:-1]])

        # Counters cannot exceed the anchor counters plus the horizon length
        big_m = max(anchor.on_time, anchor.off_time) + steps + 1

        constraints: List[Any] = []

        # Start and stop indicators: on * (1 - previous_on) and previous_on * (1 - on)
        constraints.append(start >= on - previous_on)
        constraints.append(start <= on)
        constraints.append(start <= 1 - previous_on)
        constraints.append(stop >= previous_on - on)
        constraints.append(stop <= previous_on)
        constraints.append(stop <= 1 - on)

        # On-time: previous + 1 while on, reset to 0 when off
        constraints.append(on_time <= big_m * on)
        constraints.append(on_time <= previous_on_time + 1)
        constraints.append(on_time >= previous_on_time + 1 - big_m * (1 - on))

        # Off-time: previous + 1 while off, reset to 0 when on
        constraints.append(off_time <= big_m * (1 - on))
        constraints.append(off_time <= previous_off_time + 1)
        constraints.append(off_time >= previous_off_time + 1 - big_m * on)

        # Minimum up and down time
        if self._min_up_time > 0:
            constraints.append(previous_on_time >= self._min_up_time * stop)
        if self._min_down_time > 0:
            constraints.append(previous_off_time >= self._min_down_time * start)

        # Hot, warm and cold start classification from the off-time before the start
        warm_from = _first_integer_at_least(self._hot_start_time)
        cold_from = _first_integer_at_least(self._warm_start_time)
        constraints.append(hot_start + warm_start + cold_start == start)
        constraints.append(previous_off_time <= warm_from - 1 + big_m * (1 - hot_start))
        constraints.append(previous_off_time >= warm_from * warm_start)
        constraints.append(previous_off_time <= cold_from - 1 + big_m * (1 - warm_start))
        constraints.append(previous_off_time >= cold_from * cold_start)

        expressions: Dict[str, cvx.Expression] = {
            "on": on,
            "start": start,
            "stop": stop,
            "on_time": on_time,
            "off_time": off_time,
            "hot_start": hot_start,
            "warm_start": warm_start,
            "cold_start": cold_start,
            "gate": on,
        }

        if self._start_up_delay is not None:
            delay_constraints, delay_ok = self._create_delay_formulation(on, previous_on_time, big_m)
            constraints.extend(delay_constraints)
            expressions["delay_ok"] = delay_ok
            expressions["gate"] = delay_ok

        return constraints, expressions

    def _create_delay_formulation(
        self,
        on: cvx.Variable,
        previous_on_time: cvx.Expression,
        big_m: int,
    ) -> Tuple[List[Any], cvx.Variable]:
        """Start-up delay: the unit may produce once it has been on for the delay.

        `delay_elapsed[i]` is 1 exactly when the on-time before step i reaches
        the delay, and `delay_ok[i] = on[i] AND delay_elapsed[i]`.
        """
        steps = self._steps_horizon_k
        name = self._unit.variable_name
        delay_from = _first_integer_at_least(self._start_up_delay)

        delay_elapsed = cvx.Variable(steps, boolean=True, name=name("delay_elapsed"))
        delay_ok = cvx.Variable(steps, boolean=True, name=name("delay_ok"))

        constraints: List[Any] = []
        constraints.append(previous_on_time >= delay_from * delay_elapsed)
        constraints.append(previous_on_time <= delay_from - 1 + big_m * delay_elapsed)
        constraints.append(delay_ok <= on)
        constraints.append(delay_ok <= delay_elapsed)
        constraints.append(delay_ok >= on + delay_elapsed - 1)

        return constraints, delay_ok
