from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from rocket_ops.schemas.common import new_id


class BOMItem(BaseModel):
    """One requirement line of a bill of materials."""
    item_name: str
    required_quantity: int = Field(..., ge=0)
    unit_price: float = Field(0.0, ge=0)
    vendor: str = ""
    team: Optional[str] = None  # falls back to the owning BOM's team


class SingleLineBOM(BaseModel):
    id: str = Field(default_factory=new_id)
    item_name: str
    required_quantity: int = Field(..., ge=0)
    unit_price: float = Field(0.0, ge=0)
    vendor: str = ""
    team: str = "General"


class MultiLineBOM(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    team: str = "General"
    items: List[BOMItem] = Field(default_factory=list)


# A BOM is told apart by the presence of `items`, not by a type tag
BillOfMaterials = Union[MultiLineBOM, SingleLineBOM]


def parse_bom(data: Dict[str, Any]) -> BillOfMaterials:
    if "items" in data:
        return MultiLineBOM.model_validate(data)
    return SingleLineBOM.model_validate(data)


def bom_lines(bom: BillOfMaterials) -> List[BOMItem]:
    """Flattens either BOM shape into requirement lines, each with its team resolved."""
    if isinstance(bom, MultiLineBOM):
        return [
            item if item.team else item.model_copy(update={"team": bom.team})
            for item in bom.items
        ]
    return [
        BOMItem(
            item_name=bom.item_name,
            required_quantity=bom.required_quantity,
            unit_price=bom.unit_price,
            vendor=bom.vendor,
            team=bom.team,
        )
    ]


def bom_label(bom: BillOfMaterials) -> str:
    if isinstance(bom, MultiLineBOM) and bom.name:
        return bom.name
    return bom.id
