"""Reclaimer error types.

Every error except a policy skip is fatal to the running maintenance cycle.
Error codes are stable strings used in log events.
"""

from __future__ import annotations

from typing import Any


class ReclaimerError(Exception):
    """Base error for all reclaimer exceptions."""

    code: str = "internal_error"
    message: str = "An internal error occurred"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.__class__.message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured log output."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(ReclaimerError):
    """Settings could not be loaded or validated."""

    code = "configuration_error"
    message = "Invalid configuration"


class EngineUnreachableError(ReclaimerError):
    """Connection or transport failure talking to the container engine."""

    code = "engine_unreachable"
    message = "Container engine is unreachable"


class PruneFailedError(ReclaimerError):
    """A bulk prune call was rejected by the engine."""

    code = "prune_failed"
    message = "Prune failed"

    def __init__(self, resource: str, message: str | None = None) -> None:
        self.resource = resource
        super().__init__(
            message or f"Failed to prune {resource}",
            details={"resource": resource},
        )


class InventoryFailedError(ReclaimerError):
    """Listing containers or volumes was rejected by the engine."""

    code = "inventory_failed"
    message = "Inventory listing failed"

    def __init__(self, resource: str, message: str | None = None) -> None:
        self.resource = resource
        super().__init__(
            message or f"Failed to list {resource}",
            details={"resource": resource},
        )


class RemovalFailedError(ReclaimerError):
    """Removing a single container or volume failed."""

    code = "removal_failed"
    message = "Removal failed"

    def __init__(self, kind: str, target: str, message: str | None = None) -> None:
        self.kind = kind
        self.target = target
        super().__init__(
            message or f"Failed to remove {kind} {target}",
            details={"kind": kind, "target": target},
        )


class PhaseFailedError(ReclaimerError):
    """A maintenance phase aborted; the original error is chained as __cause__."""

    code = "phase_failed"
    message = "Maintenance phase failed"

    def __init__(self, phase: str, cause: BaseException) -> None:
        self.phase = phase
        details: dict[str, Any] = {"phase": phase, "cause": type(cause).__name__}
        if isinstance(cause, ReclaimerError):
            details["cause_code"] = cause.code
            details.update(cause.details)
        super().__init__(f"Phase '{phase}' failed: {cause}", details=details)
