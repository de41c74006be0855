"""Custom exception hierarchy for the Filiup client."""

from errors.exceptions import ActivityStateError, AppError, RequestCancelledError

__all__ = ["ActivityStateError", "AppError", "RequestCancelledError"]
