from tortoise import fields, models
import uuid


class StoredCollection(models.Model):
    """
    One row per collection key (inventory, purchase-requests, ...). The whole
    collection lives in `items`; `version` is bumped on every write so writers
    can compare-and-swap instead of blindly overwriting each other.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    key = fields.CharField(max_length=128, unique=True)
    items = fields.JSONField(default=list)
    version = fields.IntField(default=0)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "stored_collections"
