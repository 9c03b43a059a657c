import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from parrita.config import CORS_ORIGINS, LOG_FILE, LOG_LEVEL
from parrita.routes import chat, imports
from parrita.services.errors import ServiceError


# ---------------- LOGGING ----------------

logging.basicConfig(
    filename=LOG_FILE,
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


# ---------------- APP ----------------

app = FastAPI(title="Parrita Lead Qualification")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Conversation-Id"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):

    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=exc.headers,
    )


app.include_router(chat.router)
app.include_router(imports.router)


@app.get("/health")
def health():
    return {"status": "ok"}
