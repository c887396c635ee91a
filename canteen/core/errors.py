"""Error types raised by the cart engine, order tracker and API client."""

from __future__ import annotations


class CanteenError(Exception):
    """Base class for client-side canteen failures."""


class CartValidationError(CanteenError, ValueError):
    """Raised when a cart mutation or checkout is rejected before any network call."""


class TransitionNotAllowedError(CanteenError):
    """Raised when a staff status change is not in the transition table."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move order from {current} to {target}")


class ApiError(CanteenError):
    """Raised when the backend call fails or answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        method: str,
        path: str,
        status_code: int | None = None,
    ) -> None:
        self.message = message
        self.method = method
        self.path = path
        self.status_code = status_code
        super().__init__(f"{method} {path} failed ({status_code if status_code is not None else 'no response'}): {message}")
