"""Chat mode API endpoints"""

from __future__ import annotations

import logging
from contextlib import aclosing

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sse_starlette.sse import EventSourceResponse

from models.chat import ChatMessage, ChatRequest
from services.chat_relay import ChatRelay
from services.chat_service import ChatService
from services.config_manager import ConfigManager
from services.llm_service import LLMService

logger = logging.getLogger(__name__)

router = APIRouter()
chat_service = ChatService()


async def _read_json(request: Request):
    try:
        return await request.json()
    except ValueError:
        return None


@router.post("", response_model=ChatMessage)
async def chat_message(request: Request):
    """Non-streaming reply (canned)"""
    try:
        chat_request = ChatRequest.model_validate(await _read_json(request))
    except ValidationError as e:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid payload", "details": e.errors(include_url=False, include_context=False)},
        )
    return chat_service.generate_reply(chat_request)


@router.post("/stream")
async def chat_stream(request: Request):
    """Stream an assistant reply as SSE frames: delta*, then done"""
    config = ConfigManager.get_instance().get_config()
    relay_cfg = config.get("relay", {})
    relay = ChatRelay(
        LLMService(config),
        chat_service=chat_service,
        interval=relay_cfg.get("fallbackIntervalMs", 40) / 1000,
    )
    payload = await _read_json(request)

    async def event_generator():
        async with aclosing(relay.frames(payload)) as frames:
            async for frame in frames:
                if await request.is_disconnected():
                    logger.debug("Client disconnected before completion")
                    relay.close()
                    return
                yield {"data": frame.model_dump_json()}

    return EventSourceResponse(
        event_generator(),
        headers={"Cache-Control": "no-cache, no-transform"},
        ping=relay_cfg.get("pingSeconds", 15),
        sep="\n",
    )
