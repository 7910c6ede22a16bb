"""Core data contracts for ledgerflow workflows."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    FrozenSet,
    List,
    Mapping,
    Optional,
    Tuple,
)

from pydantic import BaseModel, ConfigDict, Field

from .constants import DEFAULT_POLL_INTERVAL, DEFAULT_TIMEOUT
from .utils.lazy import LazyMessage

if TYPE_CHECKING:
    from .clients import BaseResourceClient
    from .config import LedgerflowConfig

logger = logging.getLogger("ledgerflow")


class ResourceKind(str, enum.Enum):
    """Kinds of remote resources a workflow creates or inspects."""

    CUSTOMER = "customer"
    ACCOUNT = "account"
    IDENTITY_VERIFICATION = "identity-verification"
    QUOTE = "quote"
    TRADE = "trade"
    TRANSFER = "transfer"
    EXTERNAL_WALLET = "external-wallet"
    VERIFICATION_KEY = "verification-key"

    @property
    def label(self) -> str:
        return self.value.replace("-", " ")

    def __str__(self) -> str:
        return self.value


class ResourceSnapshot(BaseModel):
    """Point-in-time view of a remote resource.

    Snapshots are never updated; a fresh fetch produces a new snapshot that
    replaces the old one.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    kind: ResourceKind
    state: str
    attributes: Dict[str, Any] = Field(default_factory=dict)

    def attribute(self, name: str, default: Any = None) -> Any:
        """Return attribute ``name`` or ``default`` when it is missing."""
        return self.attributes.get(name, default)

    def describe(self) -> str:
        return f"{self.kind.label} {self.id} (state: {self.state})"


class PollResult(BaseModel):
    """Outcome of waiting for a resource to converge."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    final_snapshot: ResourceSnapshot
    elapsed: float
    timed_out: bool = False
    diagnostic: Optional[LazyMessage] = None

    def describe(self) -> str:
        """Render the diagnostic message for this result."""
        if self.diagnostic is not None:
            return str(self.diagnostic)
        return self.final_snapshot.describe()


StepResults = Mapping[str, ResourceSnapshot]
CreateFn = Callable[["RunContext", StepResults], Awaitable[ResourceSnapshot]]
RefreshFn = Callable[[str], Awaitable[ResourceSnapshot]]
CheckFn = Callable[["RunContext", ResourceSnapshot, StepResults], Awaitable[None]]


@dataclass(frozen=True)
class RunContext:
    """Values shared by every step of one workflow run."""

    config: "LedgerflowConfig"
    client: "BaseResourceClient"
    logger: logging.Logger = field(default_factory=lambda: logger)
    run_id: Optional[str] = None


@dataclass(frozen=True)
class WorkflowStep:
    """One step of a workflow: create a resource, then wait for it to settle.

    ``create`` receives the run context and the snapshots resolved by every
    earlier step. When ``refresh`` is omitted the resource is re-fetched with
    the run's client by kind. ``check`` runs after the resource converged to
    ``success_state`` and raises to reject it.
    """

    name: str
    create: CreateFn
    terminal_states: FrozenSet[str]
    success_state: str
    refresh: Optional[RefreshFn] = None
    timeout: float = DEFAULT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    check: Optional[CheckFn] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "terminal_states", frozenset(self.terminal_states))
        if self.success_state not in self.terminal_states:
            raise ValueError(
                f"Step {self.name!r}: success state {self.success_state!r} "
                f"is not one of its terminal states {sorted(self.terminal_states)}"
            )
        if self.timeout <= 0:
            raise ValueError(f"Step {self.name!r}: timeout must be positive")
        if self.poll_interval <= 0:
            raise ValueError(f"Step {self.name!r}: poll interval must be positive")

    def with_timing(self, timeout: float, poll_interval: float) -> "WorkflowStep":
        """Return a copy of this step using different wait timing."""
        return replace(self, timeout=timeout, poll_interval=poll_interval)


@dataclass(frozen=True)
class Workflow:
    """A named workflow: shared steps, then independent groups of steps.

    Groups (typically one per crypto asset) each run in their own order after
    ``steps`` have completed.
    """

    name: str
    steps: Tuple[WorkflowStep, ...]
    groups: Mapping[str, Tuple[WorkflowStep, ...]] = field(default_factory=dict)

    def step_names(self) -> List[str]:
        names = [step.name for step in self.steps]
        for steps in self.groups.values():
            names.extend(step.name for step in steps)
        return names
