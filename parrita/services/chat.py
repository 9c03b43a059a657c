import json
import uuid
import logging
from typing import AsyncIterator, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from parrita.config import RATE_LIMIT_WINDOW_MINUTES
from parrita.models import ChatMessage, LeadConversation
from parrita.services.enrichment import enrich_prompt
from parrita.services.errors import ServiceError
from parrita.services.prompts import QUALIFICATION_SYSTEM_PROMPT
from parrita.services.qualification import (
    is_qualified,
    mentions_blueprint,
    qualification_payload
)
from parrita.services.rate_limit import RateLimiter
from parrita.services.webhooks import (
    BLUEPRINT_GENERATED,
    CONVERSATION_QUALIFIED,
    WebhookNotifier
)


logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = RATE_LIMIT_WINDOW_MINUTES * 60


def sse(data) -> str:
    if not isinstance(data, str):
        data = json.dumps(data, ensure_ascii=False)
    return f"data: {data}\n\n"


def load_history(db, conversation_id: str) -> List[ChatMessage]:

    return list(
        db.scalars(
            select(ChatMessage)
            .where(ChatMessage.conversation_id == conversation_id)
            .order_by(ChatMessage.created_at, ChatMessage.id)
        )
    )


class ChatTurn:
    """
    One assistant reply being relayed to the visitor.

    events() forwards every upstream chunk as it arrives and keeps the
    text; once the upstream is exhausted the reply is stored exactly
    once. A visitor who disconnects first closes the generator, and the
    partial reply is dropped.
    """

    def __init__(
        self,
        *,
        conversation_id: str,
        session_id: str,
        upstream,
        reference_calls: List[Dict[str, str]],
        message_count: int,
        session_factory,
        notifier: Optional[WebhookNotifier] = None,
    ):
        self.conversation_id = conversation_id
        self.session_id = session_id
        self.reference_calls = reference_calls
        self.message_count = message_count

        self._upstream = upstream
        self._session_factory = session_factory
        self._notifier = notifier

        self.response_text = ""
        self.completed = False
        self.qualified = False

    async def events(self) -> AsyncIterator[str]:

        if self.reference_calls:
            yield sse({"reference_calls": self.reference_calls})

        parts = []

        try:
            async for chunk in self._upstream:
                if chunk.choices:
                    content = chunk.choices[0].delta.content
                    if content:
                        parts.append(content)

                yield sse(chunk.model_dump_json(exclude_unset=True))

        finally:
            await self._upstream.close()

        self.response_text = "".join(parts)
        self._store_reply()
        self.completed = True

        yield sse("[DONE]")

    def _store_reply(self):

        if not self.response_text:
            logger.warning("Empty AI response for conversation %s", self.conversation_id)
            return

        db = self._session_factory()
        try:
            db.add(
                ChatMessage(
                    conversation_id=self.conversation_id,
                    role="assistant",
                    content=self.response_text
                )
            )

            if is_qualified(self.response_text, self.message_count):
                conversation = db.get(LeadConversation, self.conversation_id)
                conversation.is_qualified = True
                conversation.qualification_data = qualification_payload(self.message_count)
                self.qualified = True

            db.commit()

        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Could not store reply for %s: %s", self.conversation_id, e)
            raise

        finally:
            db.close()

    async def dispatch_notifications(self):
        """Fire webhooks for the finished reply. Runs after the response is sent."""

        if not self.completed or self._notifier is None:
            return

        if self.qualified:
            await self._notifier.notify(
                CONVERSATION_QUALIFIED,
                {
                    "conversation_id": self.conversation_id,
                    "session_id": self.session_id,
                    "messages_count": self.message_count,
                    "last_message": self.response_text,
                }
            )

        if mentions_blueprint(self.response_text):
            await self._notifier.notify(
                BLUEPRINT_GENERATED,
                {
                    "conversation_id": self.conversation_id,
                    "session_id": self.session_id,
                    "response": self.response_text,
                }
            )


class ChatService:

    def __init__(
        self,
        db,
        gateway,
        session_factory,
        notifier: Optional[WebhookNotifier] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.db = db
        self.gateway = gateway
        self.session_factory = session_factory
        self.notifier = notifier
        self.rate_limiter = rate_limiter or RateLimiter(db)

    # -----------------------------
    # CONVERSATION
    # -----------------------------

    def _get_or_create_conversation(
        self,
        session_id: str,
        conversation_id: Optional[str]
    ) -> LeadConversation:

        if conversation_id:
            conversation = self.db.get(LeadConversation, conversation_id)
            if conversation is None:
                raise ServiceError(404, "Conversation not found")
            return conversation

        conversation = LeadConversation(
            id=str(uuid.uuid4()),
            session_id=session_id
        )
        self.db.add(conversation)
        self.db.commit()

        logger.info("Conversation %s created for session %s", conversation.id, session_id)

        return conversation

    # -----------------------------
    # MAIN ENTRY
    # -----------------------------

    async def start_turn(
        self,
        *,
        session_id: str,
        message: str,
        conversation_id: Optional[str] = None
    ) -> ChatTurn:

        decision = self.rate_limiter.check(session_id)

        if not decision.allowed:
            raise ServiceError(
                429,
                "Trop de requêtes. Veuillez réessayer dans quelques minutes.",
                headers={"Retry-After": str(RETRY_AFTER_SECONDS)}
            )

        conversation = self._get_or_create_conversation(session_id, conversation_id)

        self.db.add(
            ChatMessage(
                conversation_id=conversation.id,
                role="user",
                content=message
            )
        )
        self.db.commit()

        history = load_history(self.db, conversation.id)

        enrichment = enrich_prompt(self.db, history, QUALIFICATION_SYSTEM_PROMPT)

        ai_messages = [{"role": "system", "content": enrichment.prompt}]
        ai_messages += [{"role": m.role, "content": m.content} for m in history]

        upstream = await self.gateway.open_stream(ai_messages)

        return ChatTurn(
            conversation_id=conversation.id,
            session_id=session_id,
            upstream=upstream,
            reference_calls=enrichment.reference_calls,
            message_count=len(history),
            session_factory=self.session_factory,
            notifier=self.notifier,
        )
