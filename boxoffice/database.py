from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from boxoffice.config import settings


def build_engine(url: str):
    """Create an engine; SQLite connections are shared across request threads"""
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create all tables that do not exist yet"""
    import boxoffice.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
