from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from parrita.config import DATABASE_URL


if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set. Check your .env file.")


# ---------------- ENGINE ----------------

connect_args = {}

if DATABASE_URL.startswith("sqlite"):
    # Streamed replies are stored from another thread
    connect_args["check_same_thread"] = False

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    connect_args=connect_args,
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


# ---------------- DEPENDENCIES ----------------

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    # Streams outlive the request-scoped session, so they open their own.
    return SessionLocal
