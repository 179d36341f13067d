from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from loguru import logger

from charity_auction.core.security.auth import verify_token
from charity_auction.enums.user_role import UserRole
from charity_auction.models.user import User
from charity_auction.services.auction_service import AuctionService
from charity_auction.services.bidding import AutoBidRegistry, BidResolutionEngine

jwt_bearer = HTTPBearer()

async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(jwt_bearer)
) -> User:
    """Resolve the user behind the bearer token"""
    return await verify_token(credentials.credentials)

async def admin_required(user: User = Depends(get_current_user)) -> User:
    """Admin role check"""
    if not user.has_role(UserRole.admin):
        logger.warning(f"Admin access denied for user: {user.email}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required"
        )
    return user

async def organizer_required(user: User = Depends(get_current_user)) -> User:
    """Only admins and NGOs list items"""
    if not user.has_role(UserRole.admin, UserRole.ngo):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to create auctions"
        )
    return user

def get_bid_engine(request: Request) -> BidResolutionEngine:
    return request.app.state.bid_engine

def get_auto_bid_registry(request: Request) -> AutoBidRegistry:
    return request.app.state.auto_bid_registry

def get_auction_service(request: Request) -> AuctionService:
    return request.app.state.auction_service
