import os
from dotenv import load_dotenv

load_dotenv()

# ---------------- DATABASE ----------------

DATABASE_URL = os.getenv("DATABASE_URL")

# ---------------- AI GATEWAY ----------------

AI_GATEWAY_URL = os.getenv("AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1")
AI_GATEWAY_API_KEY = os.getenv("AI_GATEWAY_API_KEY")
AI_MODEL = os.getenv("AI_MODEL", "google/gemini-2.5-flash")

# ---------------- WEBHOOKS ----------------

WEBHOOK_TIMEOUT = float(os.getenv("WEBHOOK_TIMEOUT", "10"))

# ---------------- APP ----------------

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")]

# ---------------- POLICY ----------------

RATE_LIMIT_WINDOW_MINUTES = 10
RATE_LIMIT_MAX_REQUESTS = 20

MAX_MESSAGE_LENGTH = 5000
