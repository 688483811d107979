"""
Operation outcome models.

Every store mutation reports whether the backend confirmed it or whether
it was only applied locally. Transport failures end up here instead of
being raised; domain violations are raised as exceptions.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class SyncOutcome(str, Enum):
    """How a mutation reached local state."""
    REMOTE = "remote"          # backend accepted it, local state holds the echo
    LOCAL_ONLY = "local_only"  # backend call failed, optimistic value kept


class MutationResult(BaseModel):
    """Result of a single store mutation."""

    entity: Any = Field(
        default=None,
        description="The value now held in local state (None for deletes)"
    )
    outcome: SyncOutcome
    error: Optional[str] = Field(
        default=None,
        description="Transport error message when outcome is LOCAL_ONLY"
    )

    @property
    def confirmed(self) -> bool:
        return self.outcome == SyncOutcome.REMOTE

    @classmethod
    def remote(cls, entity: Any = None) -> "MutationResult":
        return cls(entity=entity, outcome=SyncOutcome.REMOTE)

    @classmethod
    def local_only(cls, entity: Any, error: Exception) -> "MutationResult":
        return cls(entity=entity, outcome=SyncOutcome.LOCAL_ONLY, error=str(error))


class LoadReport(BaseModel):
    """What happened during a full store load."""

    loaded: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    expenses_from_snapshot: bool = False

    @property
    def fully_synced(self) -> bool:
        return not self.failed
