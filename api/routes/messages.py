from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from chat_assistant.markup import MessageRenderService, parse_assistant_response, segments_to_dicts

from api.dependencies import get_service

router = APIRouter(tags=["messages"])


class MessageBody(BaseModel):
    content: str
    interactive_elements: Optional[Dict[str, Any]] = None


@router.post("/messages/segments")
def parse_message(body: MessageBody, service: MessageRenderService = Depends(get_service)):
    return {"segments": segments_to_dicts(service.segments(body.content))}


@router.post("/messages/responses")
def parse_response(body: MessageBody, service: MessageRenderService = Depends(get_service)):
    response = parse_assistant_response(body.content, body.interactive_elements)
    return {
        "response": asdict(response),
        "segments": segments_to_dicts(service.segments(response.content)),
    }


@router.post("/conversations/{conversation_id}/messages/{message_id}/render")
def render_message(
    conversation_id: int,
    message_id: int,
    body: MessageBody,
    service: MessageRenderService = Depends(get_service),
):
    rendered = service.render_message(
        conversation_id,
        message_id,
        body.content,
        interactive_elements=body.interactive_elements,
    )
    return {
        "conversation_id": rendered.conversation_id,
        "message_id": rendered.message_id,
        "response": asdict(rendered.response),
        "segments": segments_to_dicts(rendered.segments),
    }
