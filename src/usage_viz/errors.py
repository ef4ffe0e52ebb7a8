from __future__ import annotations


class UsageVizError(Exception):
    """Base class for failures at the fetch boundary."""


class NetworkError(UsageVizError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ShapeError(UsageVizError):
    """Response JSON is missing fields or carries values of the wrong type."""


class DataEmptyError(UsageVizError):
    """Response parsed cleanly but produced zero records."""


FETCH_ERRORS = (NetworkError, ShapeError, DataEmptyError)
