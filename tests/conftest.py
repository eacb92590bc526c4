import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="formdesk-tests-")
os.environ.setdefault("LOG_PATH", os.path.join(_TMP, "logging"))
os.environ.setdefault("UPLOAD_DIR", os.path.join(_TMP, "uploads"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_TMP, 'formdesk.db')}")
os.environ.setdefault("BACKEND_URL", "http://testserver")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from formdesk.app.core.exceptions import AssetNotFound
from formdesk.app.schemas.form import FieldIn
from formdesk.app.services import forms as forms_service
from formdesk.app.services.links import operator_token
from formdesk.app.services.storage import LocalObjectStorage
from formdesk.db import Base
from formdesk.db.models import FieldKind
from formdesk.db.session import get_db

OPERATOR_ID = "operator-1"


class MemoryStorage:
    """Object store double that keeps assets in a dict."""

    def __init__(self):
        self.objects = {}
        self.puts = []

    async def put(self, path, data):
        uri = f"mem://{path}"
        self.objects[uri] = data
        self.puts.append(path)
        return uri

    async def get(self, uri):
        if uri not in self.objects:
            raise AssetNotFound(uri)
        return self.objects[uri]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def disk_storage(tmp_path):
    return LocalObjectStorage(root=str(tmp_path / "uploads"), public_base="http://testserver/uploads")


@pytest.fixture
def color_form(db):
    """The Name/Color form used across tests."""
    return forms_service.create_form(
        db, OPERATOR_ID, "Favourite colours", "Tell us",
        [
            FieldIn(label="Name", kind=FieldKind.text, required=True, order=0),
            FieldIn(label="Color", kind=FieldKind.select, required=False, order=1, options=["Red", "Blue"]),
        ],
    )


@pytest.fixture
def photo_form(db):
    return forms_service.create_form(
        db, OPERATOR_ID, "Site photos", None,
        [
            FieldIn(label="Site", kind=FieldKind.text, required=True),
            FieldIn(label="Front view", kind=FieldKind.image, required=True),
            FieldIn(label="Back view", kind=FieldKind.image, required=False),
        ],
    )


@pytest.fixture
def token():
    return operator_token(OPERATOR_ID)


@pytest.fixture
def api_client(db, storage, mocker):
    """FastAPI TestClient wired to the test session and in-memory storage."""
    from formdesk.app.main import app

    def _get_db():
        yield db

    mocker.patch("formdesk.app.routers.public.get_storage", return_value=storage)
    mocker.patch("formdesk.app.routers.responses.get_storage", return_value=storage)
    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def field_id(form, label):
    return next(f.field_id for f in form.fields if f.label == label)
