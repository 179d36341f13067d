import uuid
from tortoise import fields, models

from charity_auction.enums.transaction_type import TransactionType


class Transaction(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    ngo = fields.ForeignKeyField("models.NGO", related_name="transactions")
    ngo_email = fields.CharField(max_length=255)

    transaction_type = fields.CharEnumField(TransactionType)
    amount = fields.BigIntField()

    # Reference information
    auction = fields.ForeignKeyField("models.Auction", related_name="transactions", null=True)
    reference = fields.CharField(max_length=255, null=True)
    description = fields.TextField(null=True)

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "transactions"
        ordering = ["-created_at"]

    def __str__(self):
        return f"Transaction {self.id} - {self.transaction_type} {self.amount}"
