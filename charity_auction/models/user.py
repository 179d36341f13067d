import uuid
import secrets
from tortoise import fields, models

from charity_auction.enums.user_role import UserRole


class User(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=255)
    email = fields.CharField(max_length=255, unique=True)
    role = fields.CharEnumField(UserRole, default=UserRole.user)
    is_active = fields.BooleanField(default=True)
    salt = fields.CharField(max_length=32, default=lambda: secrets.token_hex(16))
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "users"

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in roles

    def __str__(self):
        return f"User {self.id} ({self.email})"
