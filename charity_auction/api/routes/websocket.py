from fastapi import APIRouter, WebSocket, WebSocketDisconnect, HTTPException, status, Query
from typing import Dict, Iterable, Optional, Set
import json
from uuid import UUID
from loguru import logger

from charity_auction.models.user import User
from charity_auction.core.security.auth import verify_token

router = APIRouter()


class ConnectionManager:
    """
    Socket registry of one API process.

    Sockets join auction rooms to receive bid lists and are reachable by user
    for direct messages. Status changes go to every socket.
    """

    def __init__(self):
        self.auction_watchers: Dict[str, Set[WebSocket]] = {}
        self.socket_users: Dict[WebSocket, User] = {}
        self.user_connections: Dict[UUID, Set[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, user: User, auction_id: Optional[str] = None):
        await websocket.accept()

        self.socket_users[websocket] = user
        self.user_connections.setdefault(user.id, set()).add(websocket)
        if auction_id:
            self._join(websocket, auction_id)

        logger.info(f"Socket opened for user {user.id}, watching auction {auction_id}")

    def disconnect(self, websocket: WebSocket):
        for auction_id in list(self.auction_watchers):
            self._leave(websocket, auction_id)

        user = self.socket_users.pop(websocket, None)
        if user is None:
            return

        sockets = self.user_connections.get(user.id)
        if sockets is not None:
            sockets.discard(websocket)
            if not sockets:
                self.user_connections.pop(user.id)
        logger.info(f"Socket closed for user {user.id}")

    def _join(self, websocket: WebSocket, auction_id: str):
        self.auction_watchers.setdefault(auction_id, set()).add(websocket)

    def _leave(self, websocket: WebSocket, auction_id: str):
        room = self.auction_watchers.get(auction_id)
        if room is None:
            return
        room.discard(websocket)
        if not room:
            self.auction_watchers.pop(auction_id)

    async def subscribe_to_auction(self, websocket: WebSocket, auction_id: str):
        self._join(websocket, auction_id)
        await websocket.send_json({"type": "subscribed", "auction_id": auction_id})

    async def unsubscribe_from_auction(self, websocket: WebSocket, auction_id: str):
        self._leave(websocket, auction_id)
        await websocket.send_json({"type": "unsubscribed", "auction_id": auction_id})

    async def _deliver(self, sockets: Iterable[WebSocket], message: dict):
        # Sockets that fail once are considered gone
        dead = []
        for websocket in list(sockets):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning(f"Dropping socket of user {self._owner(websocket)}: {e}")
                dead.append(websocket)

        for websocket in dead:
            self.disconnect(websocket)

    def _owner(self, websocket: WebSocket):
        user = self.socket_users.get(websocket)
        return user.id if user else None

    async def broadcast_to_auction(self, auction_id, message: dict):
        await self._deliver(self.auction_watchers.get(str(auction_id), ()), message)

    async def send_to_user(self, user_id: UUID, message: dict):
        await self._deliver(self.user_connections.get(user_id, ()), message)

    async def broadcast_to_all(self, message: dict):
        await self._deliver(self.socket_users, message)

    async def handle_client_message(self, websocket: WebSocket, raw: str):
        """Apply one frame sent by a client"""
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            await websocket.send_json({"type": "error", "message": "Frames must be JSON objects"})
            return

        kind = message.get("type") if isinstance(message, dict) else None
        room = message.get("auction_id") if isinstance(message, dict) else None

        if kind == "ping":
            await websocket.send_json({"type": "pong"})
        elif kind == "subscribe" and room:
            await self.subscribe_to_auction(websocket, str(room))
        elif kind == "unsubscribe" and room:
            await self.unsubscribe_from_auction(websocket, str(room))
        else:
            await websocket.send_json({"type": "error", "message": f"Unsupported frame: {kind}"})


async def authenticate_socket(token: str) -> User:
    try:
        return await verify_token(token)
    except HTTPException:
        raise
    except Exception as e:
        logger.warning(f"Socket authentication failed: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


@router.websocket("/ws")
async def auction_updates(
    websocket: WebSocket,
    token: str = Query(...),
    auction_id: Optional[str] = Query(None)
):
    """
    Live auction feed.

    Connect with `?token=<jwt>` and optionally `&auction_id=<id>` to join a
    room straight away. Clients send `subscribe` / `unsubscribe` frames with an
    `auction_id`, or `ping`. The server pushes `auction_bid_update` frames
    carrying the full bid list of a room and `auction_updated` frames when an
    auction changes status.
    """
    manager: ConnectionManager = websocket.app.state.connection_manager

    try:
        user = await authenticate_socket(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(websocket, user, auction_id)
    try:
        await websocket.send_json({"type": "connected", "user_id": str(user.id)})
        while True:
            await manager.handle_client_message(websocket, await websocket.receive_text())
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"Socket of user {user.id} failed: {e}")
    finally:
        manager.disconnect(websocket)
