import pytest

from rocket_ops.schemas.inventory import InventoryItem
from rocket_ops.schemas.purchase_request import PurchaseRequest, PurchaseRequestStatus
from rocket_ops.store.memory import InMemoryEntityStore


@pytest.fixture
def store():
    return InMemoryEntityStore()


def make_item(name="Widget", vendor="V1", **overrides) -> dict:
    """Inventory record as it sits in the store."""
    return InventoryItem(name=name, vendor=vendor, **overrides).model_dump(mode="json")


def completed_request(**overrides) -> PurchaseRequest:
    fields = dict(item_name="Widget", vendor="V1", quantity=10, team="Avionics",
                  status=PurchaseRequestStatus.COMPLETED)
    fields.update(overrides)
    return PurchaseRequest(**fields)
