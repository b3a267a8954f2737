"""
Tortoise ORM models for the local description cache.
"""
from tortoise import fields
from tortoise.models import Model


class CachedDescription(Model):
    """One cached location description, keyed by the derived cache key."""

    key = fields.CharField(max_length=255, primary_key=True)
    info = fields.JSONField()
    timestamp = fields.BigIntField(description="Write time in epoch milliseconds")
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "description_cache"

    def __str__(self):
        return f"CachedDescription(key={self.key}, timestamp={self.timestamp})"
