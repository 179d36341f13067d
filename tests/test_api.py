import uuid
import pytest
from datetime import timedelta
from httpx import AsyncClient
from tortoise import timezone
from tortoise.exceptions import OperationalError

from charity_auction.enums.auction_status import AuctionStatus
from charity_auction.enums.auto_bid_stop_reason import AutoBidStopReason
from charity_auction.models import Auction, AutoBid, Bid
from charity_auction.services.bidding import AutoBidStore


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_place_bid(client: AsyncClient, auction, bidder_x, x_headers):
    response = await client.post(f"/bids/{auction.id}", headers=x_headers, json={"amount": 200})

    assert response.status_code == 201
    data = response.json()
    assert data["amount"] == 200
    assert data["origin"] == "manual"
    assert data["bidder_id"] == str(bidder_x.id)
    assert data["auction_id"] == str(auction.id)

    auction = await Auction.get(id=auction.id)
    assert auction.current_price == 200


@pytest.mark.asyncio
async def test_place_bid_requires_token(client: AsyncClient, auction):
    response = await client.post(f"/bids/{auction.id}", json={"amount": 200})

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_place_bid_rejects_bad_token(client: AsyncClient, auction):
    response = await client.post(
        f"/bids/{auction.id}",
        headers={"Authorization": "Bearer not-a-token"},
        json={"amount": 200}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_place_bid_below_minimum(client: AsyncClient, auction, x_headers):
    response = await client.post(f"/bids/{auction.id}", headers=x_headers, json={"amount": 150})

    assert response.status_code == 400
    assert "at least 200" in response.json()["detail"]


@pytest.mark.asyncio
async def test_place_bid_non_positive_amount(client: AsyncClient, auction, x_headers):
    response = await client.post(f"/bids/{auction.id}", headers=x_headers, json={"amount": 0})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_place_bid_unknown_auction(client: AsyncClient, x_headers):
    response = await client.post(f"/bids/{uuid.uuid4()}", headers=x_headers, json={"amount": 200})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_bids_newest_first(client: AsyncClient, auction, bidder_x, bidder_y, x_headers, arm_auto_bid):
    await arm_auto_bid(bidder_y, auction, 500)
    await client.post(f"/bids/{auction.id}", headers=x_headers, json={"amount": 200})

    response = await client.get(f"/bids/auction/{auction.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert [b["amount"] for b in data["bids"]] == [300, 200]
    assert data["bids"][0]["origin"] == "auto-bid"
    assert data["bids"][0]["bidder_id"] == str(bidder_y.id)


@pytest.mark.asyncio
async def test_enable_and_disable_auto_bid(client: AsyncClient, auction, bidder_y, y_headers):
    response = await client.post(
        "/autobid/enable",
        headers=y_headers,
        json={"auction_id": str(auction.id), "max_amount": 700}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["max_amount"] == 700
    assert data["is_active"] is True
    assert data["stop_reason"] == "none"

    response = await client.post(
        "/autobid/disable",
        headers=y_headers,
        json={"auction_id": str(auction.id)}
    )
    assert response.status_code == 204

    auto_bid = await AutoBid.get(user_id=bidder_y.id, auction_id=auction.id)
    assert not auto_bid.is_active
    assert auto_bid.stop_reason == AutoBidStopReason.manual


@pytest.mark.asyncio
async def test_enable_auto_bid_on_ended_auction(client: AsyncClient, make_auction, y_headers):
    auction = await make_auction(status=AuctionStatus.ended)

    response = await client.post(
        "/autobid/enable",
        headers=y_headers,
        json={"auction_id": str(auction.id), "max_amount": 700}
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_auto_bid_status(client: AsyncClient, auction, bidder_y, y_headers, arm_auto_bid):
    response = await client.get(f"/autobid/status/{auction.id}", headers=y_headers)
    assert response.status_code == 200
    assert response.json() == {"auto_bid": None}

    await arm_auto_bid(bidder_y, auction, 900)

    response = await client.get(f"/autobid/status/{auction.id}", headers=y_headers)
    assert response.status_code == 200
    assert response.json()["auto_bid"]["max_amount"] == 900


@pytest.mark.asyncio
async def test_ngo_creates_pending_auction(client: AsyncClient, ngo, ngo_headers):
    now = timezone.now()
    response = await client.post(
        "/auctions/",
        headers=ngo_headers,
        json={
            "title": "Concert tickets",
            "description": "Two seats, front row",
            "starting_price": 1000,
            "bid_increment": 50,
            "start_date": now.isoformat(),
            "end_date": (now + timedelta(days=7)).isoformat(),
            "status": "active",
            "ngo_id": str(ngo.id)
        }
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["current_price"] == 1000
    assert data["bid_increment"] == 50


@pytest.mark.asyncio
async def test_regular_user_can_not_create_auction(client: AsyncClient, ngo, x_headers):
    now = timezone.now()
    response = await client.post(
        "/auctions/",
        headers=x_headers,
        json={
            "title": "Bike",
            "description": "Barely used",
            "starting_price": 100,
            "start_date": now.isoformat(),
            "end_date": (now + timedelta(days=1)).isoformat(),
            "ngo_id": str(ngo.id)
        }
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_auction_end_before_start(client: AsyncClient, ngo, admin_headers):
    now = timezone.now()
    response = await client.post(
        "/auctions/",
        headers=admin_headers,
        json={
            "title": "Bike",
            "description": "Barely used",
            "starting_price": 100,
            "start_date": now.isoformat(),
            "end_date": (now - timedelta(days=1)).isoformat(),
            "ngo_id": str(ngo.id)
        }
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_admin_approves_and_ends_auction(
    client: AsyncClient, make_auction, bidder_x, x_headers, admin_headers
):
    auction = await make_auction(status=AuctionStatus.pending)

    response = await client.put(f"/auctions/{auction.id}/approve", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "active"

    await client.post(f"/bids/{auction.id}", headers=x_headers, json={"amount": 200})

    response = await client.put(f"/auctions/{auction.id}/end", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ended"
    assert data["winner_id"] == str(bidder_x.id)

    response = await client.put(f"/auctions/{auction.id}/end", headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_only_admin_ends_auction(client: AsyncClient, auction, x_headers):
    response = await client.put(f"/auctions/{auction.id}/end", headers=x_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_auction(client: AsyncClient, auction):
    response = await client.get(f"/auctions/{auction.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == str(auction.id)
    assert data["views"] == 1

    response = await client.get(f"/auctions/{uuid.uuid4()}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_bid_on_ended_auction_via_api(client: AsyncClient, make_auction, x_headers):
    auction = await make_auction(status=AuctionStatus.ended)

    response = await client.post(f"/bids/{auction.id}", headers=x_headers, json={"amount": 200})

    assert response.status_code == 400
    assert await Bid.filter(auction_id=auction.id).count() == 0


@pytest.fixture
def broken_deactivate(monkeypatch):
    async def deactivate(auto_bid, reason):
        raise OperationalError("disk I/O error")

    monkeypatch.setattr(AutoBidStore, "deactivate", deactivate)


@pytest.mark.asyncio
async def test_place_bid_reports_kept_bid_when_cascade_fails(
    client: AsyncClient, auction, bidder_y, x_headers, arm_auto_bid, broken_deactivate
):
    await arm_auto_bid(bidder_y, auction, 150)

    response = await client.post(f"/bids/{auction.id}", headers=x_headers, json={"amount": 200})

    assert response.status_code == 503
    bid = await Bid.get(auction_id=auction.id)
    assert bid.amount == 200
    assert f"Bid {bid.id} was accepted" in response.json()["detail"]


@pytest.mark.asyncio
async def test_enable_auto_bid_storage_failure(client: AsyncClient, auction, y_headers, broken_deactivate):
    response = await client.post(
        "/autobid/enable",
        headers=y_headers,
        json={"auction_id": str(auction.id), "max_amount": 150}
    )

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_get_expired_auction_closes_it(client: AsyncClient, make_auction):
    now = timezone.now()
    auction = await make_auction(start_date=now - timedelta(days=2), end_date=now - timedelta(minutes=1))

    first = await client.get(f"/auctions/{auction.id}")
    second = await client.get(f"/auctions/{auction.id}")

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["status"] == "ended"
    assert second.json()["views"] == 2
