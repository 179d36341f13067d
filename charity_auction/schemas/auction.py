from uuid import UUID
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from charity_auction.enums.auction_status import AuctionStatus
from charity_auction.enums.item_type import ItemType, AuctionCategory


class AuctionCreate(BaseModel):
    """Schema for creating an auction"""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    item_type: ItemType = ItemType.physical
    category: AuctionCategory = AuctionCategory.art
    starting_price: int = Field(..., ge=0)
    bid_increment: Optional[int] = Field(None, ge=1)
    start_date: datetime
    end_date: datetime
    status: Optional[AuctionStatus] = None
    ngo_id: UUID
    is_urgent: bool = False
    allow_direct_donation: bool = True
    enable_auto_bidding: bool = True

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class AuctionResponse(BaseModel):
    """Schema for auction response"""
    id: UUID
    title: str
    description: str
    item_type: ItemType
    category: AuctionCategory
    starting_price: int
    current_price: int
    bid_increment: int
    total_bids: int
    status: AuctionStatus
    start_date: datetime
    end_date: datetime
    enable_auto_bidding: bool
    allow_direct_donation: bool
    is_urgent: bool
    views: int
    ngo_id: UUID
    organizer_id: UUID
    winner_id: Optional[UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("id", "ngo_id", "organizer_id")
    def serialize_uuid(self, v: UUID, _info):
        return str(v)

    @field_serializer("winner_id")
    def serialize_winner(self, v: Optional[UUID], _info):
        return str(v) if v else None
