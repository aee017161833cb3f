from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from rocket_ops.core.config import DEFAULT_CATEGORY, DEFAULT_LOCATION
from rocket_ops.schemas.common import EisenhowerQuadrant, new_id, utcnow


class Priority(str, Enum):
    URGENT = "urgent"
    IMPORTANT = "important"
    NORMAL = "normal"
    LOW = "low"


class InventoryItem(BaseModel):
    """
    A stock line. Reconciliation matches items on (name.lower(), vendor);
    `id` is only used by the dashboard screens.
    """
    id: str = Field(default_factory=new_id)
    name: str
    vendor: str = ""
    category: str = DEFAULT_CATEGORY
    unit_price: float = Field(0.0, ge=0)
    current_stock: int = Field(0, ge=0)
    quantity: int = Field(0, ge=0, description="Total quantity ever received for this item.")
    reorder_point: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    location: str = DEFAULT_LOCATION
    description: Optional[str] = None
    priority: Optional[Priority] = None
    last_updated: datetime = Field(default_factory=utcnow)
    updated_by: str = "System"

    def matches(self, name: str, vendor: str) -> bool:
        return self.name.lower() == name.lower() and self.vendor == vendor


class PendingInventoryItem(BaseModel):
    """A completed purchase waiting to be counted into stock."""
    id: str = Field(default_factory=lambda: f"pending-{new_id()}")
    purchase_request_id: str
    name: str
    vendor: str
    category: str
    description: Optional[str] = None
    unit_price: float = 0.0
    quantity: int
    reorder_point: int
    min_stock: int
    priority: Priority = Priority.NORMAL
    eisenhower_quadrant: Optional[EisenhowerQuadrant] = None
    last_updated: datetime = Field(default_factory=utcnow)
    updated_by: str = "System - From Purchase Request"
