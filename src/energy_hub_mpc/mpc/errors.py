"""Exceptions raised by the receding horizon controller.

Infeasible horizons and solver failures are fatal for the control loop: the
driver stops and the exception carries the iteration index together with the
anchor state the failed problem was built on, so the situation can be
reproduced offline.
"""

from typing import Any


class EnergyHubMPCError(Exception):
    """Base class for all controller errors."""


class MalformedForecastError(EnergyHubMPCError, ValueError):
    """The forecast table cannot serve the requested simulation."""


class HorizonSolveError(EnergyHubMPCError):
    """A horizon problem did not produce a usable solution."""

    def __init__(self, message: str, iteration: int, anchor: Any, status: str | None = None) -> None:
        super().__init__(f"{message} (iteration {iteration}, solver status: {status})")
        self.iteration = iteration
        self.anchor = anchor
        self.status = status


class InfeasibleHorizonError(HorizonSolveError):
    """The solver proved the horizon problem infeasible."""


class SolverFailureError(HorizonSolveError):
    """The solver raised, timed out or returned a status without a usable point."""
