import asyncio
import json
import uuid
from datetime import datetime

import pytest

from parrita.main import app
from parrita.models import ChatMessage, DiscoveryCall, LeadConversation, N8nWebhook, RateLimit
from parrita.services.ai_gateway import get_gateway
from parrita.services.chat import ChatService, load_history, sse
from parrita.services.errors import ServiceError
from parrita.services.webhooks import BLUEPRINT_GENERATED, CONVERSATION_QUALIFIED


def _events(body):
    return [
        line[len("data: "):]
        for line in body.split("\n")
        if line.startswith("data: ")
    ]


def _streamed_text(events):
    text = ""
    for data in events:
        if data == "[DONE]":
            continue
        payload = json.loads(data)
        for choice in payload.get("choices", []):
            text += choice.get("delta", {}).get("content") or ""
    return text


def _webhook(db, event, url):
    db.add(N8nWebhook(name=event, webhook_url=url, trigger_event=event, is_active=True))
    db.commit()


async def _collect(turn):
    return [event async for event in turn.events()]


# -----------------------------
# SERVICE
# -----------------------------

def test_sse_frames():
    assert sse("[DONE]") == "data: [DONE]\n\n"
    assert sse({"a": "é"}) == 'data: {"a": "é"}\n\n'


def test_turn_stores_user_message_before_streaming(db, session_factory, gateway):
    service = ChatService(db, gateway, session_factory)

    turn = asyncio.run(service.start_turn(session_id="s1", message="Bonjour"))

    history = load_history(db, turn.conversation_id)
    assert [(m.role, m.content) for m in history] == [("user", "Bonjour")]

    sent = gateway.calls[0]
    assert sent[0]["role"] == "system"
    assert sent[-1] == {"role": "user", "content": "Bonjour"}


def test_completed_turn_stores_reply_once(db, session_factory, gateway):
    service = ChatService(db, gateway, session_factory)
    turn = asyncio.run(service.start_turn(session_id="s1", message="Bonjour"))

    events = asyncio.run(_collect(turn))

    assert events[-1] == "data: [DONE]\n\n"
    assert turn.completed
    assert gateway.streams[0].closed

    db.expire_all()
    history = load_history(db, turn.conversation_id)
    assert [m.role for m in history] == ["user", "assistant"]
    assert history[1].content == "Bonjour ! Vous travaillez dans quel secteur ?"


def test_disconnected_visitor_leaves_no_partial_reply(db, session_factory, gateway):
    service = ChatService(db, gateway, session_factory)
    turn = asyncio.run(service.start_turn(session_id="s1", message="Bonjour"))

    async def read_one_then_leave():
        events = turn.events()
        first = await events.__anext__()
        await events.aclose()
        return first

    first = asyncio.run(read_one_then_leave())

    assert first.startswith("data: ")
    assert not turn.completed
    assert gateway.streams[0].closed

    db.expire_all()
    assert [m.role for m in load_history(db, turn.conversation_id)] == ["user"]


def test_empty_reply_is_not_stored(db, session_factory, gateway):
    gateway.reply = ()
    service = ChatService(db, gateway, session_factory)
    turn = asyncio.run(service.start_turn(session_id="s1", message="Bonjour"))

    asyncio.run(_collect(turn))

    db.expire_all()
    assert [m.role for m in load_history(db, turn.conversation_id)] == ["user"]


def test_unknown_conversation_is_rejected(db, session_factory, gateway):
    service = ChatService(db, gateway, session_factory)

    with pytest.raises(ServiceError) as exc:
        asyncio.run(service.start_turn(session_id="s1", message="x", conversation_id="missing"))

    assert exc.value.status_code == 404
    assert gateway.calls == []


# -----------------------------
# POST /chat
# -----------------------------

@pytest.mark.parametrize("body", [
    {"sessionId": "s1"},
    {"message": "Bonjour"},
    {"message": "", "sessionId": "s1"},
])
def test_missing_fields_are_rejected(client, body):
    res = client.post("/chat", json=body)

    assert res.status_code == 400
    assert res.json() == {"error": "Message and sessionId are required"}


def test_message_length_is_capped(client, gateway):
    res = client.post("/chat", json={"message": "a" * 5001, "sessionId": "s1"})

    assert res.status_code == 400
    assert res.json() == {"error": "Message trop long (max 5000 caractères)"}
    assert gateway.calls == []


def test_message_at_the_cap_is_accepted(client):
    res = client.post("/chat", json={"message": "a" * 5000, "sessionId": "s1"})

    assert res.status_code == 200


def test_chat_streams_reply_and_stores_history(client):
    res = client.post("/chat", json={"message": "Bonjour", "sessionId": "s1"})

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/event-stream")

    conversation_id = res.headers["x-conversation-id"]
    events = _events(res.text)

    assert events[-1] == "[DONE]"
    assert _streamed_text(events) == "Bonjour ! Vous travaillez dans quel secteur ?"

    history = client.get(f"/conversations/{conversation_id}/messages").json()
    assert [(m["role"], m["content"]) for m in history] == [
        ("user", "Bonjour"),
        ("assistant", "Bonjour ! Vous travaillez dans quel secteur ?"),
    ]


def test_follow_up_reuses_conversation(client, gateway):
    first = client.post("/chat", json={"message": "Bonjour", "sessionId": "s1"})
    conversation_id = first.headers["x-conversation-id"]

    second = client.post(
        "/chat",
        json={"message": "Je suis DAF", "sessionId": "s1", "conversationId": conversation_id},
    )

    assert second.headers["x-conversation-id"] == conversation_id

    sent = gateway.calls[1]
    assert [m["role"] for m in sent] == ["system", "user", "assistant", "user"]


def test_unknown_conversation_id_is_not_found(client):
    res = client.post(
        "/chat",
        json={"message": "Bonjour", "sessionId": "s1", "conversationId": "missing"},
    )

    assert res.status_code == 404
    assert res.json() == {"error": "Conversation not found"}


def test_reference_calls_event_comes_first(client, db):
    db.add(DiscoveryCall(
        id=str(uuid.uuid4()),
        entreprise="Shop",
        secteur="retail",
        besoin="stock",
        contexte="Entreprise: Shop",
        phase_1_introduction="Parlez-moi de vos magasins",
        phase_2_exploration="Combien de références ?",
        phase_3_affinage="Un agent de réassort",
        raw_data={"infos_client": "Entreprise: Shop", "line_number": 1},
        import_batch_id="batch-1",
    ))
    db.commit()

    res = client.post("/chat", json={"message": "je travaille dans le retail", "sessionId": "s1"})

    first = json.loads(_events(res.text)[0])
    assert first == {
        "reference_calls": [
            {"entreprise": "Shop", "secteur": "retail", "phase": "toutes phases"}
        ]
    }


def test_rate_limited_session_gets_retry_after(client, db, gateway):
    db.add(RateLimit(session_id="s1", request_count=20, window_start=datetime.utcnow()))
    db.commit()

    res = client.post("/chat", json={"message": "Bonjour", "sessionId": "s1"})

    assert res.status_code == 429
    assert res.headers["retry-after"] == "600"
    assert "error" in res.json()
    assert gateway.calls == []


def test_gateway_errors_are_passed_through(client, gateway):
    gateway.error = ServiceError(402, "Service temporairement indisponible.")

    res = client.post("/chat", json={"message": "Bonjour", "sessionId": "s1"})

    assert res.status_code == 402
    assert res.json() == {"error": "Service temporairement indisponible."}


# -----------------------------
# QUALIFICATION & WEBHOOKS
# -----------------------------

def test_reply_with_email_qualifies_and_notifies(client, db, gateway, webhook_requests):
    _webhook(db, CONVERSATION_QUALIFIED, "https://n8n.test/qualified")
    gateway.reply = ("C'est noté, je vous écris sur paul@acme.fr",)

    res = client.post("/chat", json={"message": "paul@acme.fr", "sessionId": "s1"})
    conversation_id = res.headers["x-conversation-id"]

    db.expire_all()
    conversation = db.get(LeadConversation, conversation_id)
    assert conversation.is_qualified
    assert conversation.qualification_data["messages"] == 1

    assert len(webhook_requests) == 1
    body = json.loads(webhook_requests[0].content)
    assert body["event"] == CONVERSATION_QUALIFIED
    assert body["conversation_id"] == conversation_id
    assert body["session_id"] == "s1"
    assert body["messages_count"] == 1


def test_blueprint_reply_triggers_blueprint_webhook(client, db, gateway, webhook_requests):
    _webhook(db, BLUEPRINT_GENERATED, "https://n8n.test/blueprint")
    _webhook(db, CONVERSATION_QUALIFIED, "https://n8n.test/qualified")
    gateway.reply = ("Voici votre Blueprint d'automatisation",)

    client.post("/chat", json={"message": "Bonjour", "sessionId": "s1"})

    assert [str(r.url) for r in webhook_requests] == ["https://n8n.test/blueprint"]
    body = json.loads(webhook_requests[0].content)
    assert body["response"] == "Voici votre Blueprint d'automatisation"


def test_plain_reply_sends_no_webhook(client, db, webhook_requests):
    _webhook(db, CONVERSATION_QUALIFIED, "https://n8n.test/qualified")

    res = client.post("/chat", json={"message": "Bonjour", "sessionId": "s1"})

    db.expire_all()
    conversation = db.get(LeadConversation, res.headers["x-conversation-id"])
    assert not conversation.is_qualified
    assert webhook_requests == []


# -----------------------------
# HISTORY
# -----------------------------

def test_history_of_unknown_conversation_is_not_found(client):
    res = client.get("/conversations/missing/messages")

    assert res.status_code == 404
    assert res.json() == {"error": "Conversation not found"}


def test_history_is_ordered_by_creation(client, db):
    conversation = LeadConversation(id="c1", session_id="s1")
    db.add(conversation)
    db.add_all([
        ChatMessage(conversation_id="c1", role="assistant", content="deux",
                    created_at=datetime(2025, 1, 1, 10, 0, 1)),
        ChatMessage(conversation_id="c1", role="user", content="un",
                    created_at=datetime(2025, 1, 1, 10, 0, 0)),
    ])
    db.commit()

    history = client.get("/conversations/c1/messages").json()

    assert [m["content"] for m in history] == ["un", "deux"]
    assert history[0]["created_at"] == "2025-01-01T10:00:00"


def test_bad_input_is_rejected_before_gateway_lookup(client):

    def unconfigured_gateway():
        raise ServiceError(500, "AI gateway not configured")

    app.dependency_overrides[get_gateway] = unconfigured_gateway

    res = client.post("/chat", json={"sessionId": "s1"})

    assert res.status_code == 400
    assert res.json() == {"error": "Message and sessionId are required"}

    res = client.post("/chat", json={"message": "Bonjour", "sessionId": "s1"})

    assert res.status_code == 500
    assert res.json() == {"error": "AI gateway not configured"}
