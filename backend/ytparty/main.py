import logging
from typing import Optional

import socketio
import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from ytparty.config import get_settings
from ytparty.services.media import fetch_video_metadata
from ytparty.services.relay import ROOM_DOES_NOT_EXIST, BroadcastRelay, MetadataFetcher
from ytparty.services.room import RoomRegistry

logger = logging.getLogger(__name__)


def create_app(registry: Optional[RoomRegistry] = None, fetch_metadata: MetadataFetcher = fetch_video_metadata):
    """
    Build the ASGI application: FastAPI routes plus the Socket.IO relay,
    both sharing one room registry.
    """
    settings = get_settings()
    registry = registry if registry is not None else RoomRegistry()

    app = FastAPI(title="YouTube Party")
    app.state.registry = registry

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def clean_rooms(request: Request, call_next):
        response = await call_next(request)
        # Sweeps piggyback on successful responses; there is no timer
        if 200 <= response.status_code < 300 and registry.clean_if_necessary():
            logger.info("Cleaned room registry")
        return response

    def require_room(room_id: str):
        room = registry.get_room(room_id)
        if room is None:
            raise HTTPException(status_code=404, detail=ROOM_DOES_NOT_EXIST)
        return room

    @app.get("/")
    async def create_room():
        room_id = registry.create_room()
        return RedirectResponse(url=f"/{room_id}/master")

    @app.get("/api/room/{room_id}")
    async def check_room(room_id: str):
        room = require_room(room_id)
        return {
            "roomId": room.id,
            "createdAt": room.created_at,
            "hasState": room.state is not None,
            "queueLength": len(room.queue),
        }

    @app.get("/{room_id}/master")
    async def master_page(room_id: str):
        room = require_room(room_id)
        return {"roomId": room.id, "role": "master"}

    @app.get("/{room_id}")
    async def member_page(room_id: str):
        room = require_room(room_id)
        return {"roomId": room.id, "role": "member"}

    sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=settings.cors_origins)
    relay = BroadcastRelay(sio, registry, fetch_metadata)
    app.state.relay = relay

    return socketio.ASGIApp(sio, app)


def main():
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info(f"Starting server on {settings.host}:{settings.port}")
    uvicorn.run(create_app(), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
