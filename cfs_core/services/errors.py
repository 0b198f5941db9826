"""Error taxonomy shared by the workflow engine and lifecycle services."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, List, Optional


class WorkflowError(Exception):
    """Base class for package transaction errors."""


class ValidationError(WorkflowError):
    """Malformed or missing input."""


class StepNotImplementedError(ValidationError):
    """The flow declares a step code this engine cannot execute."""

    def __init__(self, step_code: str) -> None:
        super().__init__(f"Step '{step_code}' is not implemented")
        self.step_code = step_code


class NotFoundError(WorkflowError):
    """A referenced transaction, packing list, package, container or flow does not exist."""


class ConflictError(WorkflowError):
    """The request would violate a uniqueness or deletion invariant."""


class PreconditionError(WorkflowError):
    """Flow-specific readiness is not met."""


class FlowRegistryError(WorkflowError):
    """The upstream flow registry could not be reached or returned garbage."""


@dataclass(frozen=True)
class PackageFailure:
    package_id: str
    reason: str
    current_status: Optional[str] = None
    expected_status: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


class StateError(WorkflowError):
    """A transition does not match the current state of a package or transaction."""

    def __init__(self, message: str, failures: Optional[Iterable[PackageFailure]] = None) -> None:
        super().__init__(message)
        self.failures: List[PackageFailure] = list(failures or [])
