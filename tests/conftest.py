import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ.setdefault("TESTING", "true")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
import main
from app.core.database import Base, get_db
from app.core.config import settings
from app.core.security import create_access_token
from app.utils import deps as deps_utils
from tests.helpers.factories import create_course, enroll, quiz_questions

test_db_url = settings.TEST_DATABASE_URL or "sqlite://"

@pytest.fixture(scope="session")
def database_engine():
    if test_db_url.startswith("sqlite"):
        engine = create_engine(test_db_url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    else:
        engine = create_engine(test_db_url)
    yield engine
    engine.dispose()

@pytest.fixture(scope="function")
def db_session(database_engine):
    Base.metadata.create_all(bind=database_engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=database_engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        Base.metadata.drop_all(bind=database_engine)

@pytest.fixture(scope="function")
def client(db_session):
    main.app.dependency_overrides[get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_transactional_db] = lambda: db_session
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()

@pytest.fixture
def auth_headers():
    def _auth_headers(principal_id: int):
        return {"Authorization": f"Bearer {create_access_token(principal_id)}"}
    return _auth_headers

@pytest.fixture
def learner_id():
    return 101

@pytest.fixture
def scenario_course(db_session, learner_id):
    """Three sequential lessons: a 600s video, a 20-question quiz (pass mark 80) and an asset."""
    course = create_course(
        db_session,
        modules=[[
            {"title": "Intro video", "content_type": "video", "duration": 600},
            {"title": "Checkpoint quiz", "content_type": "quiz", "questions": quiz_questions(20)},
            {"title": "Workbook", "content_type": "asset"},
        ]],
    )
    enroll(db_session, user_id=learner_id, course=course)
    return course
