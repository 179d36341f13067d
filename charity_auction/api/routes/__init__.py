from .bids import router as bids_router
from .auto_bids import router as auto_bids_router
from .auctions import router as auctions_router
from .websocket import router as websocket_router, ConnectionManager
