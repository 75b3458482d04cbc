from sqlalchemy import create_engine
from sqlalchemy.engine import URL
from sqlalchemy.orm import sessionmaker, declarative_base

from settings.config import get_settings, Settings


def build_database_url(settings: Settings):
    if settings.database_url:
        return settings.database_url

    return URL.create(
        drivername="postgresql+psycopg2",
        username=settings.db_user,
        password=settings.db_password,
        host=settings.db_host,
        database=settings.db_name,
        port=settings.db_port
    )


_settings = get_settings()

DATABASE_URL = build_database_url(_settings)

engine = create_engine(DATABASE_URL, pool_pre_ping=_settings.db_pool_pre_ping)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
