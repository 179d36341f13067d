from tortoise import fields, models

from charity_auction.enums.auto_bid_stop_reason import AutoBidStopReason


class AutoBid(models.Model):
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField("models.User", related_name="auto_bids")
    auction = fields.ForeignKeyField("models.Auction", related_name="auto_bids")
    max_amount = fields.BigIntField()
    is_active = fields.BooleanField(default=True, index=True)
    stop_reason = fields.CharEnumField(AutoBidStopReason, default=AutoBidStopReason.none)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "auto_bids"
        unique_together = (("user", "auction"),)

    def can_reach(self, amount: int) -> bool:
        return self.max_amount >= amount

    def __str__(self):
        state = "active" if self.is_active else f"inactive ({self.stop_reason})"
        return f"AutoBid {self.user_id}@{self.auction_id} max={self.max_amount} {state}"
