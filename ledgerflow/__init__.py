"""ledgerflow: drive multi-step bank workflows against an asynchronous ledger."""

from .clients import BaseResourceClient, InMemoryResourceClient, get_client
from .contracts import (
    PollResult,
    ResourceKind,
    ResourceSnapshot,
    RunContext,
    Workflow,
    WorkflowStep,
)
from .errors import (
    ErrorKind,
    LedgerflowError,
    StepTimeoutError,
    TransportError,
    UnexpectedStateError,
    ValidationError,
    classify,
)
from .orchestrator import WorkflowOrchestrator
from .persistence import get_repository
from .validate import validate
from .waiter import ConvergenceWaiter

__version__ = "0.1.0"
__all__ = [
    "BaseResourceClient",
    "InMemoryResourceClient",
    "get_client",
    "PollResult",
    "ResourceKind",
    "ResourceSnapshot",
    "RunContext",
    "Workflow",
    "WorkflowStep",
    "ErrorKind",
    "LedgerflowError",
    "StepTimeoutError",
    "TransportError",
    "UnexpectedStateError",
    "ValidationError",
    "classify",
    "WorkflowOrchestrator",
    "get_repository",
    "validate",
    "ConvergenceWaiter",
]
