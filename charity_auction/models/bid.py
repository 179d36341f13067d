from tortoise import fields
from tortoise.models import Model
from charity_auction.enums.bid_origin import BidOrigin


class Bid(Model):
    # Sequential id doubles as insertion order for tie-breaks
    id = fields.IntField(pk=True)

    auction = fields.ForeignKeyField("models.Auction", related_name="bids", on_delete=fields.CASCADE)
    bidder = fields.ForeignKeyField("models.User", related_name="bids", on_delete=fields.CASCADE)
    auto_bid = fields.ForeignKeyField("models.AutoBid", related_name="bids", null=True, on_delete=fields.SET_NULL)

    amount = fields.BigIntField()
    origin = fields.CharEnumField(BidOrigin, default=BidOrigin.manual)

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "bids"

    @property
    def is_auto_bid(self) -> bool:
        return self.origin != BidOrigin.manual

    async def save(self, *args, **kwargs):
        if self.amount <= 0:
            raise ValueError("Amount must be greater than 0")
        await super().save(*args, **kwargs)

    def __str__(self):
        return f"Bid {self.id} - {self.amount} on {self.auction_id} ({self.origin})"
