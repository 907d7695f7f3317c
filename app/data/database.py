# app/data/database.py
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.utils.settings import DATABASE_URL, DATABASE_ECHO


def make_engine(url: str = DATABASE_URL, echo: bool = DATABASE_ECHO):
    if url.startswith("sqlite"):
        #sqlite (dev/tests) - one shared connection, usable from worker threads
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=echo, pool_pre_ping=True)


engine = make_engine()

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
