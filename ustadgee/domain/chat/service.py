"""Chat service - durable chat history next to the live relay"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...exceptions import StoreError
from ...models import ChatThread, User
from ...realtime.hub import RealtimeHub
from ...schemas import ChatCreate, ChatRecord
from .repository import ChatRepository
from .schemas import (
    ChatMessageResponse,
    ChatPartner,
    ChatThreadResponse,
    ChatUpdateRequest,
    StartChatRequest,
)

logger = logging.getLogger(__name__)


def _other_participant(thread: ChatThread, user_id: int) -> int:
    return thread.user2 if thread.user1 == user_id else thread.user1


def _is_participant(thread: ChatThread, user_id: int) -> bool:
    return user_id in (thread.user1, thread.user2)


class ChatService:
    def __init__(self, db: Session, hub: RealtimeHub):
        self.db = db
        self.repo = ChatRepository()
        self.hub = hub

    def list_threads(self, user: User) -> list[dict]:
        threads = self.repo.get_threads(self.db, user.id)
        partners = self.repo.get_users(self.db, {_other_participant(t, user.id) for t in threads})

        results = []
        for thread in threads:
            partner = partners.get(_other_participant(thread, user.id))
            results.append(
                ChatThreadResponse(
                    id=thread.id,
                    lastMsg=thread.last_msg,
                    type=thread.type,
                    timeStamp=thread.time_stamp,
                    otherUser=(
                        ChatPartner(
                            id=partner.id,
                            fullName=partner.full_name,
                            profileImage=partner.profile_image,
                        )
                        if partner
                        else None
                    ),
                ).model_dump(mode="json")
            )
        return results

    def get_history(self, user: User, partner_id: int) -> list[dict]:
        thread = self.repo.get_thread_between(self.db, user.id, partner_id)
        if not thread or thread.deleted_by == user.id:
            return []
        return [
            ChatMessageResponse(
                id=m.id,
                senderId=m.sender_id,
                recipientId=m.recipient_id,
                message=m.message,
                type=m.type,
                createdAt=m.created_at,
            ).model_dump(mode="json")
            for m in self.repo.get_history(self.db, thread.id)
        ]

    async def start_chat(self, data: StartChatRequest, user: User) -> ChatRecord:
        if data.recipient_id == user.id:
            raise HTTPException(status_code=400, detail="Cannot start a chat with yourself")
        if not self.repo.get_users(self.db, {data.recipient_id}):
            raise HTTPException(status_code=404, detail="Recipient user not found")

        try:
            record = await self.hub.store.insert_chat_record(
                ChatCreate(
                    sender_id=user.id,
                    recipient_id=data.recipient_id,
                    message=data.message,
                    type=data.type,
                )
            )
        except StoreError as e:
            raise HTTPException(status_code=500, detail="Failed to save chat message") from e

        logger.info(f"💬 Chat message {record.id} stored from {user.id} to {data.recipient_id}")
        return record

    def update_chat(self, data: ChatUpdateRequest, user: User) -> ChatThread:
        thread = self.repo.get_thread(self.db, data.chat_id)
        if not thread:
            raise HTTPException(status_code=404, detail="Chat not found")
        if not _is_participant(thread, user.id):
            raise HTTPException(status_code=403, detail="Not authorized to update this chat")
        return self.repo.update_last_message(self.db, thread, data.message, data.type)

    def delete_chat(self, thread_id: int, user: User) -> bool:
        """Soft delete for the caller; returns True when the thread was removed for both"""
        thread = self.repo.get_thread(self.db, thread_id)
        if not thread or not _is_participant(thread, user.id):
            raise HTTPException(status_code=404, detail="Chat not found")

        if thread.deleted_by is not None and thread.deleted_by != user.id:
            self.repo.hard_delete(self.db, thread)
            logger.info(f"🗑️ Chat {thread_id} deleted by both participants, removed")
            return True

        self.repo.soft_delete(self.db, thread, user.id)
        return False
