from .locks import AuctionLocks
from .ledger import BidLedger
from .auction_state import AuctionStateStore
from .auto_bid_store import AutoBidStore
from .engine import BidResolutionEngine
from .auto_bid_registry import AutoBidRegistry
from .sweep import AutoBidSweeper, SweepReport
