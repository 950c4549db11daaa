"""Errors raised by the forecast engine when called with ``strict=True``."""


class ForecastError(ValueError):
    """Base class for forecast input errors."""


class InsufficientHistoryError(ForecastError):
    """Fewer historical points than the trend fit needs."""

    def __init__(self, n_points: int, min_points: int = 2):
        self.n_points = n_points
        self.min_points = min_points
        super().__init__(
            f"Insufficient data: need at least {min_points} points, got {n_points}."
        )


class InvalidHorizonError(ForecastError):
    """Horizon is not a positive number of periods."""

    def __init__(self, horizon: int):
        self.horizon = horizon
        super().__init__(f"Horizon must be a positive integer, got {horizon}.")


class NonFiniteHistoryError(ForecastError):
    """A historical value is NaN or infinite."""

    def __init__(self, day):
        self.day = day
        super().__init__(f"History value on {day} is not a finite number.")
