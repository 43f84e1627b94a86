# memcore/database.py
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from memcore.config import DB_URL
from memcore.models import Base


def init_db(url: str = DB_URL):
    """Create the engine and tables and hand back a session factory."""
    connect_args = {}
    if url.startswith("sqlite"):
        path = url.split("///", 1)[-1]
        if path and path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        connect_args = {"check_same_thread": False}
    engine = create_engine(url, connect_args=connect_args)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
