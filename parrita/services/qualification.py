from datetime import datetime


QUALIFIED_AFTER_MESSAGES = 8

BLUEPRINT_MARKERS = ("blueprint", "plan prêt")


def is_qualified(response_text: str, message_count: int) -> bool:
    # Any "@" counts as a collected email, even when the reply only talks about email.
    return "@" in response_text or message_count > QUALIFIED_AFTER_MESSAGES


def mentions_blueprint(response_text: str) -> bool:
    text = response_text.lower()
    return any(marker in text for marker in BLUEPRINT_MARKERS)


def qualification_payload(message_count: int) -> dict:
    return {
        "messages": message_count,
        "timestamp": datetime.utcnow().isoformat()
    }
