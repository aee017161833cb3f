from typing import List, Optional

from pydantic import BaseModel, Field

from rocket_ops.schemas.common import new_id


class Vendor(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    category: Optional[str] = None
    email: Optional[str] = None


class PurchaseListItem(BaseModel):
    item_name: str
    quantity: int = Field(..., ge=0)
    unit_price: float = Field(0.0, ge=0)
    vendor: str = ""  # vendor id


class PurchaseList(BaseModel):
    """
    Denormalized shopping list. `vendors` must stay a subset of the vendor
    directory; items referencing a removed vendor are left as they are.
    """
    id: str = Field(default_factory=new_id)
    name: str = ""
    status: str = "draft"
    vendors: List[str] = Field(default_factory=list)
    items: List[PurchaseListItem] = Field(default_factory=list)
    total_amount: float = 0.0
