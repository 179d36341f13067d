from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from charity_auction.enums.bid_origin import BidOrigin


class BidCreate(BaseModel):
    """Schema for placing a manual bid"""
    amount: int = Field(..., gt=0, description="Bid amount in whole currency units")


class BidResponse(BaseModel):
    """Schema for bid response"""
    id: int
    auction_id: UUID
    bidder_id: UUID
    auto_bid_id: int | None = None
    amount: int
    origin: BidOrigin
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("auction_id", "bidder_id")
    def serialize_uuid(self, v: UUID, _info):
        return str(v)


class BidListResponse(BaseModel):
    """Schema for the bid list of one auction"""
    count: int
    bids: list[BidResponse]
