# gridauto/exceptions.py
"""
@file exceptions.py
@brief Custom exception classes for the grid automation engine.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


class GridAutoError(Exception):
    """Base exception for the engine."""
    pass


class ConfigError(GridAutoError):
    """Raised when a settings file or configuration mapping is invalid."""
    pass


@dataclass
class LocatorAttempt:
    """Records a single resolution strategy attempt for debugging."""
    strategy: str
    locator: Dict[str, Any]
    error: Optional[str] = None


class ElementNotFoundError(GridAutoError):
    """
    Raised when no control could be resolved from an element hint.

    Contains every strategy attempt made by the resolver cascade.
    """

    def __init__(
        self,
        hint: Dict[str, Any],
        attempts: List[LocatorAttempt],
        last_error: Optional[str] = None,
    ):
        self.hint = hint
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(self.__str__())

    def __str__(self) -> str:
        lines = [f"ElementNotFoundError: hint={self.hint}"]
        if self.last_error:
            lines.append(f"Last error: {self.last_error}")
        lines.append("Attempts:")
        for i, a in enumerate(self.attempts, start=1):
            lines.append(f"  {i}. {a.strategy}: {a.locator} err={a.error}")
        return "\n".join(lines)


class ActionError(GridAutoError):
    """
    Raised when a manipulation of a page control fails.

    Contains information about the action, target control,
    and the underlying cause.
    """

    def __init__(
        self,
        action: str,
        element_name: Optional[str] = None,
        details: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.action = action
        self.element_name = element_name
        self.details = details
        self.cause = cause
        super().__init__(self.__str__())

    def __str__(self) -> str:
        base = f"ActionError: action='{self.action}'"
        if self.element_name:
            base += f" element='{self.element_name}'"
        if self.details:
            base += f" details='{self.details}'"
        if self.cause:
            base += f" cause='{type(self.cause).__name__}: {self.cause}'"
        return base


class StaleElementError(GridAutoError):
    """Raised when a control reference is no longer attached to the document."""

    def __init__(self, element_name: str, message: Optional[str] = None):
        self.element_name = element_name
        msg = f"Element '{element_name}' is stale (no longer attached to DOM)"
        if message:
            msg += f": {message}"
        super().__init__(msg)


class TimeoutError(GridAutoError):
    """
    Raised when a wait times out.

    Attributes:
        original_exception: The last exception that was raised before timeout
        description: Human-readable description of what was being waited for
        timeout: The timeout value in seconds
        attempt_count: Number of attempts made
        elapsed_time: Actual elapsed time in seconds
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.original_exception: Optional[BaseException] = None
        self.description: Optional[str] = None
        self.timeout: Optional[float] = None
        self.attempt_count: Optional[int] = None
        self.elapsed_time: Optional[float] = None

    def __str__(self) -> str:
        base_msg = super().__str__()

        details = []
        if self.original_exception is not None:
            details.append(f"Original exception: {type(self.original_exception).__name__}")
        if self.attempt_count is not None:
            details.append(f"Attempts: {self.attempt_count}")
        if self.elapsed_time is not None:
            details.append(f"Elapsed: {self.elapsed_time:.2f}s")

        if details:
            return f"{base_msg} [{', '.join(details)}]"
        return base_msg

    def get_root_cause(self) -> Optional[BaseException]:
        """
        Get the root cause exception by traversing the chain.

        @return The deepest original_exception in the chain, or None
        """
        current = self.original_exception
        while current is not None:
            if getattr(current, "original_exception", None) is not None:
                current = current.original_exception
            else:
                return current
        return None
