import os

# Keep the app engine off disk; set before any videoplayer module reads config
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from videoplayer.models import Base

# In-memory SQLite shared across threads for TestClient
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def times():
    """Strictly increasing timestamps, one second apart."""
    start = datetime(2025, 9, 6, 12, 0, 0)
    return [start + timedelta(seconds=i) for i in range(10)]
