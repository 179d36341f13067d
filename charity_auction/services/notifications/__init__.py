from .base import BidNotifier, build_bid_update, build_status_update
from .websocket import WebSocketNotifier
from .pubsub import RedisNotifier, NotificationRelay
