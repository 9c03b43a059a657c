from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session
from starlette.background import BackgroundTask

from parrita.config import MAX_MESSAGE_LENGTH
from parrita.db import get_db, get_session_factory
from parrita.models import LeadConversation
from parrita.services.ai_gateway import get_gateway
from parrita.services.chat import ChatService, load_history
from parrita.services.errors import ServiceError
from parrita.services.webhooks import WebhookNotifier


router = APIRouter(tags=["Chat"])


# ---------------- SCHEMA ----------------

class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: Optional[str] = Field(None, alias="conversationId")
    session_id: Optional[str] = Field(None, alias="sessionId")
    message: Optional[str] = None


# ---------------- DEPENDENCIES ----------------

def validated_chat_request(payload: ChatRequest) -> ChatRequest:
    # Declared first on the route so bad input is rejected before the gateway is resolved

    if not payload.message or not payload.session_id:
        raise ServiceError(400, "Message and sessionId are required")

    if len(payload.message) > MAX_MESSAGE_LENGTH:
        raise ServiceError(400, f"Message trop long (max {MAX_MESSAGE_LENGTH} caractères)")

    return payload


def get_notifier(session_factory=Depends(get_session_factory)):
    return WebhookNotifier(session_factory)


# ---------------- ROUTES ----------------

@router.post("/chat")
async def chat(
    payload: ChatRequest = Depends(validated_chat_request),
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory),
    gateway=Depends(get_gateway),
    notifier: WebhookNotifier = Depends(get_notifier),
):

    service = ChatService(db, gateway, session_factory, notifier=notifier)

    turn = await service.start_turn(
        session_id=payload.session_id,
        message=payload.message,
        conversation_id=payload.conversation_id
    )

    return StreamingResponse(
        turn.events(),
        media_type="text/event-stream",
        headers={
            "X-Conversation-Id": turn.conversation_id,
            "Cache-Control": "no-cache",
        },
        background=BackgroundTask(turn.dispatch_notifications),
    )


@router.get("/conversations/{conversation_id}/messages")
def conversation_messages(conversation_id: str, db: Session = Depends(get_db)):

    if db.get(LeadConversation, conversation_id) is None:
        raise ServiceError(404, "Conversation not found")

    return [
        {
            "role": m.role,
            "content": m.content,
            "created_at": m.created_at.isoformat(),
        }
        for m in load_history(db, conversation_id)
    ]
