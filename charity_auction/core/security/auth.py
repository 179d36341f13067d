from datetime import datetime, timedelta, timezone
from fastapi import HTTPException, status
from jose import jwt, JWTError
from tortoise.exceptions import DoesNotExist
from charity_auction.core.config import settings
from charity_auction.models.user import User


def _signing_key(user: User) -> str:
    return settings.get_user_secret_key(user.id, user.salt)


async def create_access_token(user_id, scopes: list[str] = ["user"]) -> dict:
    """
    Issues a JWT for a user, signed with that user's own key.
    Rotating the user's salt revokes every token issued before.
    """
    user = await User.get(id=user_id)
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)

    token = jwt.encode(
        {
            "user_id": str(user.id),
            "sub": user.email,
            "role": user.role.value,
            "scopes": scopes,
            "exp": expires_at
        },
        _signing_key(user),
        algorithm=settings.algorithm
    )
    return {"access_token": token, "token_type": "bearer", "user_id": str(user.id)}


async def verify_token(token: str) -> User:
    """Resolve a bearer token to an active user or fail with 401"""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        # The key depends on the user, so the claim is read before the signature is checked
        claimed_id = jwt.get_unverified_claims(token).get("user_id")
        if not claimed_id:
            raise unauthorized

        user = await User.get(id=claimed_id)
        jwt.decode(token, _signing_key(user), algorithms=[settings.algorithm])
    except (JWTError, DoesNotExist, ValueError):
        raise unauthorized

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Inactive user")
    return user
