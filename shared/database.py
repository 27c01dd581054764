import os
from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./feedback.db")


class Base(DeclarativeBase):
    pass


def make_engine(url: str | None = None):
    url = url or DATABASE_URL
    connect_args = {}
    if url.startswith("sqlite"):
        # TestClient and uvicorn's threadpool share one sqlite connection pool
        connect_args["check_same_thread"] = False
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


def make_session_factory(engine=None):
    return sessionmaker(bind=engine or make_engine(), autocommit=False, autoflush=False, expire_on_commit=False)


def db_dependency(SessionLocal):
    def get_db():
        db: Session = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    return get_db
