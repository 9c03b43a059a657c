import uuid
from datetime import datetime

from sqlalchemy import (
    Column,
    String,
    Integer,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


class DiscoveryCall(Base):
    __tablename__ = "discovery_calls_knowledge"

    id = Column(String, primary_key=True)

    # Parsed from infos_client
    entreprise = Column(String, nullable=False, default="")
    secteur = Column(String, nullable=False, default="")
    besoin = Column(Text, nullable=False, default="")
    contexte = Column(Text, nullable=False, default="")

    # Stages of the recorded call, NULL when not captured
    phase_1_introduction = Column(Text)
    phase_2_exploration = Column(Text)
    phase_3_affinage = Column(Text)
    phase_4_next_steps = Column(Text)

    # Audit
    raw_data = Column(JSON, nullable=False)
    import_batch_id = Column(String, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class LeadConversation(Base):
    __tablename__ = "lead_conversations"

    id = Column(String, primary_key=True)
    session_id = Column(String, nullable=False, index=True)

    is_qualified = Column(Boolean, nullable=False, default=False)
    qualification_data = Column(JSON)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    messages = relationship(
        "ChatMessage",
        back_populates="conversation",
        order_by="(ChatMessage.created_at, ChatMessage.id)",
    )


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(
        String,
        ForeignKey("lead_conversations.id"),
        nullable=False,
        index=True
    )

    role = Column(String, nullable=False)  # "user" | "assistant"
    content = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    conversation = relationship("LeadConversation", back_populates="messages")


class RateLimit(Base):
    __tablename__ = "rate_limits"

    session_id = Column(String, primary_key=True)
    request_count = Column(Integer, nullable=False, default=1)
    window_start = Column(DateTime, nullable=False)


class N8nWebhook(Base):
    __tablename__ = "n8n_webhooks"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False, default="")
    webhook_url = Column(String)
    trigger_event = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
