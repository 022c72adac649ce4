class SchedulerError(Exception):
    """Base class for every error raised by the simulation engine."""


class ValidationError(SchedulerError, ValueError):
    """Malformed process specs or algorithm parameters.

    Raised before any run state is built, so callers never see a
    half-initialized driver.
    """


class SimulationError(SchedulerError):
    """An illegal transition inside a run (engine or policy defect)."""


class RunawaySimulationError(SimulationError):
    """The safety tick ceiling was reached before every process finished."""

    def __init__(self, max_ticks: int, algorithm: str):
        super().__init__(f"{algorithm} run exceeded the safety ceiling of {max_ticks} ticks")
        self.max_ticks = max_ticks
        self.algorithm = algorithm
