from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from splittrack.core.config import settings

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def init_db(bind=None) -> None:
    """Create the job tables if they do not exist yet."""
    from splittrack.models import Base

    Base.metadata.create_all(bind=bind or engine)
