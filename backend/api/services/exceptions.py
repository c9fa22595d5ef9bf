"""Errors raised by the stats services and the stats API client."""


class StatsError(Exception):
    """Base class for stats collection errors."""


class StatsAlreadyCollectedError(StatsError):
    """The stats for the current day were already sent."""

    def __init__(self, message: str = "The stats is already collected for today.") -> None:
        super().__init__(message)


class StatsSharingDisabledError(StatsError):
    def __init__(self, message: str = "The stats sharing is disabled.") -> None:
        super().__init__(message)


class StatsValidationError(StatsError):
    """Invalid stats query filters."""


class StatsApiError(StatsError):
    """The remote stats API failed or answered unexpectedly."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StatsFetchingError(StatsApiError):
    pass


class StatsSendingError(StatsApiError):
    pass
