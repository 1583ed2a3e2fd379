from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from chat_assistant.markup import MessageRenderService

from api.dependencies import get_service

router = APIRouter(tags=["cache"])


@router.get("/conversations/{conversation_id}/messages/{message_id}/cache")
def get_cached_message(conversation_id: int, message_id: int, service: MessageRenderService = Depends(get_service)):
    record = service.recall(conversation_id, message_id)
    if not record:
        raise HTTPException(
            status_code=404,
            detail=f"No cached elements for conversation {conversation_id} message {message_id}",
        )
    return {
        "conversation_id": record.conversation_id,
        "message_id": record.message_id,
        "cached_at": record.cached_at.isoformat(),
        **record.elements(),
    }


@router.delete("/conversations/{conversation_id}/messages/{message_id}/cache")
def delete_cached_message(conversation_id: int, message_id: int, service: MessageRenderService = Depends(get_service)):
    if not service.forget(conversation_id, message_id):
        raise HTTPException(
            status_code=404,
            detail=f"No cached elements for conversation {conversation_id} message {message_id}",
        )
    return {"status": "deleted", "conversation_id": conversation_id, "message_id": message_id}


@router.delete("/conversations/{conversation_id}/cache")
def clear_conversation(conversation_id: int, service: MessageRenderService = Depends(get_service)):
    return {"deleted": service.forget_conversation(conversation_id)}


@router.post("/cache/purge")
def purge_expired(service: MessageRenderService = Depends(get_service)):
    return {"purged": service.purge_expired()}


@router.get("/cache/stats")
def cache_stats(service: MessageRenderService = Depends(get_service)):
    return {
        "entries": service.cached_count(),
        "ttl_seconds": int(service.cache_ttl.total_seconds()),
    }
