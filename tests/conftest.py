import pytest
from datetime import timedelta
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from tortoise import Tortoise, timezone

from charity_auction.core.database import TORTOISE_MODELS
from charity_auction.core.security.auth import create_access_token
from charity_auction.enums.auction_status import AuctionStatus
from charity_auction.enums.user_role import UserRole
from charity_auction.main import app, init_bidding
from charity_auction.models import Auction, AutoBid, NGO, User
from charity_auction.services.auction_service import AuctionService
from charity_auction.services.bidding import (
    AuctionLocks,
    AutoBidRegistry,
    AutoBidSweeper,
    BidResolutionEngine,
)
from charity_auction.services.notifications import BidNotifier


class RecordingNotifier(BidNotifier):
    """Keeps every emitted event for assertions"""

    def __init__(self):
        self.updates = []
        self.status_updates = []

    async def notify_auction_update(self, auction_id, bids):
        self.updates.append((str(auction_id), [(bid.bidder_id, bid.amount) for bid in bids]))

    async def notify_auction_status(self, auction_id, status):
        self.status_updates.append((str(auction_id), status))


@pytest.fixture(scope="function", autouse=True)
async def initialize_tests():
    """Fresh in-memory database for every test"""
    await Tortoise.init(
        db_url="sqlite://:memory:",
        modules={"models": TORTOISE_MODELS}
    )
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def locks() -> AuctionLocks:
    return AuctionLocks()


@pytest.fixture
def engine(notifier, locks) -> BidResolutionEngine:
    return BidResolutionEngine(notifier, locks)


@pytest.fixture
def registry(engine) -> AutoBidRegistry:
    return AutoBidRegistry(engine)


@pytest.fixture
def sweeper(notifier, locks) -> AutoBidSweeper:
    return AutoBidSweeper(notifier, locks)


@pytest.fixture
def auction_service(notifier, locks) -> AuctionService:
    return AuctionService(notifier, locks)


@pytest.fixture
async def client(notifier) -> AsyncGenerator:
    """Async HTTP client bound to the app, events go to the recording notifier"""
    init_bidding(app, notifier)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def make_user(name: str, role: UserRole = UserRole.user) -> User:
    return await User.create(name=name, email=f"{name.lower()}@example.com", role=role)


@pytest.fixture
async def bidder_x() -> User:
    return await make_user("X")


@pytest.fixture
async def bidder_y() -> User:
    return await make_user("Y")


@pytest.fixture
async def bidder_w() -> User:
    return await make_user("W")


@pytest.fixture
async def bidder_z() -> User:
    return await make_user("Z")


@pytest.fixture
async def admin_user() -> User:
    return await make_user("Admin", UserRole.admin)


@pytest.fixture
async def ngo_user() -> User:
    return await make_user("Helpers", UserRole.ngo)


@pytest.fixture
async def ngo() -> NGO:
    return await NGO.create(name="Helping Hands", email="funds@helpinghands.org", is_verified=True)


@pytest.fixture
def make_auction(ngo, admin_user):
    """Factory for auctions, active with price 100 / increment 100 by default"""

    async def factory(**overrides) -> Auction:
        now = timezone.now()
        data = {
            "title": "Signed cricket bat",
            "description": "Signed by the whole team",
            "starting_price": 100,
            "current_price": 100,
            "bid_increment": 100,
            "status": AuctionStatus.active,
            "start_date": now - timedelta(hours=1),
            "end_date": now + timedelta(days=1),
            "ngo": ngo,
            "organizer": admin_user,
        }
        data.update(overrides)
        return await Auction.create(**data)

    return factory


@pytest.fixture
async def auction(make_auction) -> Auction:
    return await make_auction()


@pytest.fixture
def arm_auto_bid():
    """Store an active auto-bid without triggering any bidding"""

    async def factory(user: User, auction: Auction, max_amount: int) -> AutoBid:
        return await AutoBid.create(user=user, auction=auction, max_amount=max_amount)

    return factory


async def bearer(user: User) -> dict:
    token = await create_access_token(user.id)
    return {"Authorization": f"Bearer {token['access_token']}"}


@pytest.fixture
async def x_headers(bidder_x) -> dict:
    return await bearer(bidder_x)


@pytest.fixture
async def y_headers(bidder_y) -> dict:
    return await bearer(bidder_y)


@pytest.fixture
async def admin_headers(admin_user) -> dict:
    return await bearer(admin_user)


@pytest.fixture
async def ngo_headers(ngo_user) -> dict:
    return await bearer(ngo_user)
