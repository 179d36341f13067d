from .user import User
from .ngo import NGO
from .auction import Auction
from .bid import Bid
from .auto_bid import AutoBid
from .transaction import Transaction
