from enum import Enum


class BidOrigin(str, Enum):
    manual = "manual"
    auto_bid = "auto-bid"
    sweep = "sweep"
