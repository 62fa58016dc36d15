"""Chat router - persisted chat threads"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...realtime.hub import RealtimeHub, get_hub
from ...schemas import MessageResponse
from .schemas import ChatUpdateRequest, StartChatRequest
from .service import ChatService

router = APIRouter(prefix="/api", tags=["Chat"])


def get_chat_service(
    db: Session = Depends(get_db), hub: RealtimeHub = Depends(get_hub)
) -> ChatService:
    """Dependency injection for ChatService"""
    return ChatService(db, hub)


@router.get("/chats")
async def get_chats(
    partnerId: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    """Chat list, or the message history with one partner when partnerId is given"""
    if partnerId is not None:
        return {"success": True, "data": service.get_history(current_user, partnerId)}
    return {"success": True, "data": service.list_threads(current_user)}


@router.post("/startChat", status_code=201)
async def start_chat(
    data: StartChatRequest,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    record = await service.start_chat(data, current_user)
    return {
        "success": True,
        "message": "Message sent",
        "data": {"id": record.id, "chat_id": record.thread_id},
    }


@router.put("/chat", response_model=MessageResponse)
async def update_chat(
    data: ChatUpdateRequest,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    service.update_chat(data, current_user)
    return MessageResponse(message="Chat updated")


@router.delete("/chat/{chat_id}", response_model=MessageResponse)
async def delete_chat(
    chat_id: int,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    service.delete_chat(chat_id, current_user)
    return MessageResponse(message="Chat deleted")
