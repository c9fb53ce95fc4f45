from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from order_service.core.config import settings


def build_engine(url: str):
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=1800,
    )


def build_sessionmaker(bind) -> sessionmaker:
    return sessionmaker(
        bind=bind,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


engine = build_engine(settings.database_url)

SessionLocal = build_sessionmaker(engine)
