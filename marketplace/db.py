# marketplace/db.py
"""Database engine and session utilities.

Centralized SQLAlchemy engine creation, the per-request session dependency
for FastAPI and the transaction scope used by multi-statement writes.
"""
import os
from contextlib import contextmanager
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

load_dotenv()


def _database_url():
    url = os.getenv("POSTGRES_URL")
    if not url:
        user = os.getenv("DB_USER")
        password = os.getenv("DB_PASSWORD", "")
        host = os.getenv("DB_HOST")
        port = os.getenv("DB_PORT", "5432")
        name = os.getenv("DB_NAME")
        if not (user and host and name):
            raise RuntimeError("POSTGRES_URL not set and DB_USER/DB_HOST/DB_NAME incomplete")
        url = f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"
    # Normalize SQLAlchemy URL scheme (SQLAlchemy 2.x doesn't accept 'postgres://')
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


def build_engine(url):
    if url.startswith("sqlite"):
        # one shared connection so an in-memory database is visible to every thread
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    # sslmode=require encrypts without verifying the server certificate
    return create_engine(
        url,
        pool_size=int(os.getenv("DB_POOL_SIZE", 5)),
        max_overflow=int(os.getenv("DB_MAX_OVERFLOW", 10)),
        pool_pre_ping=True,
        connect_args={
            "sslmode": os.getenv("DB_SSLMODE", "require"),
            "connect_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", 10)),
        },
    )


DATABASE_URL = _database_url()
engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db):
    """Commit on normal exit, roll back and re-raise on any exception."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
