from typing import List, Optional

from pydantic import BaseModel, Field

from rocket_ops.schemas.common import UtcDatetime


class FullSyncReport(BaseModel):
    """What one full-sync run did; a failed step is listed in `errors` and the others still run."""
    pruned_vendor_refs: int = 0
    drafts_generated: int = 0
    drafts_appended: int = 0
    errors: List[str] = Field(default_factory=list)


class AllocationOutcome(BaseModel):
    allocated: List[str] = Field(default_factory=list)
    insufficient: List[str] = Field(default_factory=list)


class JobState(BaseModel):
    """Persisted scheduling state of one named job."""
    job: str
    next_due: UtcDatetime
    last_run: Optional[UtcDatetime] = None
    last_error: Optional[str] = None
