import uuid
from datetime import datetime
from typing import Optional
from tortoise import fields, models, timezone

from charity_auction.enums.auction_status import AuctionStatus
from charity_auction.enums.item_type import ItemType, AuctionCategory


class Auction(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    title = fields.CharField(max_length=255)
    description = fields.TextField()
    item_type = fields.CharEnumField(ItemType, default=ItemType.physical)
    category = fields.CharEnumField(AuctionCategory, default=AuctionCategory.art)

    # Pricing, whole currency units
    starting_price = fields.BigIntField()
    current_price = fields.BigIntField(default=0)
    bid_increment = fields.BigIntField(default=100)
    total_bids = fields.IntField(default=0)

    status = fields.CharEnumField(AuctionStatus, default=AuctionStatus.draft, index=True)
    start_date = fields.DatetimeField()
    end_date = fields.DatetimeField()

    enable_auto_bidding = fields.BooleanField(default=True)
    allow_direct_donation = fields.BooleanField(default=True)
    is_urgent = fields.BooleanField(default=False)
    views = fields.IntField(default=0)

    ngo = fields.ForeignKeyField("models.NGO", related_name="auctions")
    organizer = fields.ForeignKeyField("models.User", related_name="organized_auctions")
    approved_by = fields.ForeignKeyField("models.User", related_name="approved_auctions", null=True)
    approval_date = fields.DatetimeField(null=True)
    winner = fields.ForeignKeyField("models.User", related_name="won_auctions", null=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "auctions"

    @property
    def next_minimum_bid(self) -> int:
        return self.current_price + self.bid_increment

    def has_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or timezone.now()
        end_date = self.end_date
        if timezone.is_naive(end_date):
            end_date = timezone.make_aware(end_date)
        return now >= end_date

    def is_open(self, now: Optional[datetime] = None) -> bool:
        """Bids are accepted only while active and before the end date"""
        return self.status == AuctionStatus.active and not self.has_expired(now)

    def __str__(self):
        return f"Auction {self.id} - {self.title} ({self.status})"
