from enum import Enum


class AutoBidStopReason(str, Enum):
    none = "none"
    max_amount = "max-amount"
    manual = "manual"
    auction_ended = "auction-ended"
