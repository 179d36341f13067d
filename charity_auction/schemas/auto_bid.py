from uuid import UUID
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from charity_auction.enums.auto_bid_stop_reason import AutoBidStopReason


class AutoBidEnable(BaseModel):
    """Schema for enabling or updating an auto-bid"""
    auction_id: UUID
    max_amount: int = Field(..., gt=0, description="Ceiling the proxy may reach, inclusive")


class AutoBidDisable(BaseModel):
    auction_id: UUID


class AutoBidResponse(BaseModel):
    id: int
    user_id: UUID
    auction_id: UUID
    max_amount: int
    is_active: bool
    stop_reason: AutoBidStopReason
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("user_id", "auction_id")
    def serialize_uuid(self, v: UUID, _info):
        return str(v)


class AutoBidStatusResponse(BaseModel):
    auto_bid: Optional[AutoBidResponse] = None
