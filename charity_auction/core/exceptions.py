class BiddingError(Exception):
    """Base class for bidding domain errors"""


class BidValidationError(BiddingError, ValueError):
    """The request can not be accepted, nothing was written"""


class AuctionNotFoundError(BidValidationError):
    def __init__(self, auction_id):
        self.auction_id = auction_id
        super().__init__(f"Auction {auction_id} not found")


class BidConflictError(BiddingError):
    """Another writer advanced the auction between our read and our write"""

    def __init__(self, auction_id, observed_price: int):
        self.auction_id = auction_id
        self.observed_price = observed_price
        super().__init__(
            f"Auction {auction_id} price moved away from {observed_price} before the bid was stored"
        )


class BidPersistenceError(BiddingError):
    """Storage failed while writing bidding state"""


class CascadeInterruptedError(BidPersistenceError):
    """The manual bid was stored but the automatic escalation after it failed"""

    def __init__(self, bid, cause: Exception):
        self.bid = bid
        self.cause = cause
        super().__init__(f"Bid {bid.id} accepted, automatic bidding interrupted: {cause}")
