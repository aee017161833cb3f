from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from rocket_ops.schemas.common import EisenhowerQuadrant, new_id, utcnow


class PurchaseRequestStatus(str, Enum):
    PENDING = "pending"      # Initial state, also the target of an "undo"
    APPROVED = "approved"
    REJECTED = "rejected"
    ORDERED = "ordered"
    COMPLETED = "completed"  # Goods received; stock has been incremented


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class PurchaseRequest(BaseModel):
    id: str = Field(default_factory=new_id)
    item_name: str
    vendor: str = ""
    quantity: int = Field(..., ge=0)
    unit_price: float = Field(0.0, ge=0)
    team: str = "General"
    status: PurchaseRequestStatus = PurchaseRequestStatus.PENDING
    urgency: Urgency = Urgency.MEDIUM
    is_low_stock_item: bool = False
    eisenhower_quadrant: Optional[EisenhowerQuadrant] = None
    description: Optional[str] = None
    requested_by: str = "System"
    requested_date: datetime = Field(default_factory=utcnow)
    approved_by: Optional[str] = None
    approved_date: Optional[datetime] = None
    notes: Optional[str] = None
    moved_to_pending: bool = False

    def dedupe_key(self):
        """Identity used by full sync to avoid re-appending the same low-stock draft."""
        return (self.item_name, self.vendor, self.status, self.is_low_stock_item)


class PurchaseRequestCreate(BaseModel):
    """Schema for creating a purchase request from the dashboard."""
    item_name: str = Field(..., min_length=1)
    vendor: str = ""
    quantity: int = Field(..., gt=0)
    unit_price: float = Field(0.0, ge=0)
    team: str = "General"
    urgency: Urgency = Urgency.MEDIUM
    eisenhower_quadrant: Optional[EisenhowerQuadrant] = None
    description: Optional[str] = None
    requested_by: str = "System"
    notes: Optional[str] = None


class PurchaseRequestStatusUpdate(BaseModel):
    """Schema for moving a purchase request through its workflow."""
    status: PurchaseRequestStatus
    actor: Optional[str] = None
    notes: Optional[str] = None
