import uuid
from tortoise import fields, models


class NGO(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255, unique=True)
    email = fields.CharField(max_length=255, unique=True)
    is_verified = fields.BooleanField(default=False)
    total_funds_received = fields.BigIntField(default=0)

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "ngos"

    def __str__(self):
        return f"NGO {self.name}"
