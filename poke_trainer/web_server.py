"""FastAPI webhook receiving chat messages from the messaging gateway."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .config import load_config
from .services import CommandDispatcher

logger = logging.getLogger(__name__)


class MessageRequest(BaseModel):
    """An inbound chat message."""

    sender: str = Field(..., min_length=1, description="Gateway identifier of the sender")
    text: str = Field(..., description="Raw message text, e.g. '!catch pikachu'")


class ReplyModel(BaseModel):
    text: str
    image: Optional[str] = None


class MessageResponse(BaseModel):
    """Replies to deliver back to the sender, in order."""

    replies: List[ReplyModel]


def create_app(dispatcher: Optional[CommandDispatcher] = None) -> FastAPI:
    app = FastAPI(
        title="Poke-Trainer Web API",
        description="Webhook for the chat-driven Pokémon game",
        version="0.1.0",
    )
    app.state.dispatcher = dispatcher or CommandDispatcher(config=load_config())

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok", "message": "Pokémon bot is running"}

    @app.post("/api/messages", response_model=MessageResponse)
    def post_message(request: MessageRequest) -> MessageResponse:
        """Run one chat command and return the replies."""
        replies = app.state.dispatcher.handle(request.sender, request.text)
        return MessageResponse(replies=[ReplyModel(**reply.to_dict()) for reply in replies])

    @app.get("/api/trainers/{trainer_id}")
    def get_trainer(trainer_id: str) -> Dict[str, Any]:
        trainer = app.state.dispatcher.get_trainer(trainer_id)
        if trainer is None:
            raise HTTPException(status_code=404, detail=f"Trainer {trainer_id} not found")
        return {"id": trainer.id, **trainer.to_dict()}

    @app.get("/api/pokemon/{name}")
    def get_pokemon(name: str) -> Dict[str, Any]:
        creature = app.state.dispatcher.catalog.get_creature(name)
        if creature is None:
            raise HTTPException(status_code=404, detail=f"Pokémon {name} not found")
        return creature.to_dict()

    return app


def run(host: str = "127.0.0.1", port: int = 8000) -> None:
    """Entry point for running the web server."""
    import uvicorn

    config = load_config()
    logging.basicConfig(level=config.log_level)
    logger.info("Starting web server at http://%s:%s", host, port)
    uvicorn.run(create_app(CommandDispatcher(config=config)), host=host, port=port)


if __name__ == "__main__":
    run()
