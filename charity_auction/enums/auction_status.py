from enum import Enum


class AuctionStatus(str, Enum):
    draft = "draft"
    pending = "pending"
    active = "active"
    ended = "ended"
