# backend/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from dotenv import load_dotenv

from config import settings

load_dotenv()


def normalize_database_url(url: str) -> str:
    # SQLAlchemy requires postgresql:// instead of the legacy postgres:// scheme
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def make_engine(url: str):
    url = normalize_database_url(url)
    if "sqlite" in url:
        connect_args = {"check_same_thread": False}  # SQLite only
    else:
        connect_args = {}
    return create_engine(url, connect_args=connect_args)


SQLALCHEMY_DATABASE_URL = normalize_database_url(settings.DATABASE_URL)

engine = make_engine(SQLALCHEMY_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    # Register models on Base.metadata before creating tables
    import models.product  # noqa: F401
    import models.log  # noqa: F401
    Base.metadata.create_all(bind=engine)
