"""FastAPI main application for the Tysiąc game backend"""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .constants import (
    ERROR_INTERNAL, ERROR_NOT_FOUND, ERROR_NOT_HOST, ERROR_STALE_VERSION
)
from .dispatch import dispatch
from .engine import TysiacEngine
from .websocket_server import GameWebSocketManager

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ERROR_NOT_FOUND: 404,
    ERROR_NOT_HOST: 403,
    ERROR_STALE_VERSION: 409,
    ERROR_INTERNAL: 500,
}


def create_app(engine: Optional[TysiacEngine] = None) -> FastAPI:
    engine = engine or TysiacEngine()
    game_manager = GameWebSocketManager(engine)

    app = FastAPI(title="Tysiąc Card Game API", version="1.0.0")
    app.state.engine = engine
    app.state.game_manager = game_manager

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {"message": "Tysiąc Card Game API", "version": "1.0.0"}

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "rooms": len(engine.rooms),
            "connections": game_manager.connection_manager.connection_count(),
        }

    @app.post("/api/game")
    async def game_action(payload: Dict[str, Any] = Body(...)):
        game_manager.loop = asyncio.get_running_loop()
        result = dispatch(engine, payload.get("action"), payload.get("data"))
        if result["success"]:
            return result
        return JSONResponse(result, status_code=STATUS_BY_CODE.get(result["code"], 400))

    @app.websocket("/ws/{room_id}/{player_id}")
    async def websocket_endpoint(websocket: WebSocket, room_id: str, player_id: str):
        await game_manager.handle_websocket(websocket, room_id, player_id)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
