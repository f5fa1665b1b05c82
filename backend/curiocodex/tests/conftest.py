import hashlib
import os
import re

import pytest

# Set env vars BEFORE importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["VECTOR_STORE_DIR"] = ""
os.environ["OPENAI_API_KEY"] = ""

from fastapi.testclient import TestClient

from backend.curiocodex.core.database import Base, engine, init_db
from backend.curiocodex.dependencies import get_ai_gateway, get_image_store, get_vector_index
from backend.curiocodex.main import app
from backend.curiocodex.services.ai_gateway import ImageAnalysis, keyword_tags
from backend.curiocodex.services.image_store import ImageStore
from backend.curiocodex.services.vectorstore import LocalVectorIndex

DIMENSION = 16

KEYWORD_CATEGORIES = {
    "bird": "Outdoor Activities",
    "hiking": "Outdoor Activities",
    "guitar": "Music",
    "piano": "Music",
    "camera": "Photography",
    "photo": "Photography",
    "chess": "Gaming",
    "stamp": "Collectables",
    "coin": "Collectables",
    "bread": "Cooking",
}


class FakeAIGateway:
    """Deterministic stand-in for the AI backend.

    Embeddings are hashed bags of words, so texts sharing words are close.
    Every call is recorded in ``calls``.
    """

    available = True

    def __init__(self):
        self.calls = []
        self.fail_embed = False

    def embed(self, text):
        self.calls.append(("embed", text))
        if self.fail_embed:
            raise RuntimeError("embedding backend down")
        if not text.strip():
            raise ValueError("Text cannot be empty")
        vector = [0.0] * DIMENSION
        for word in re.findall(r"\w+", text.lower()):
            vector[hashlib.md5(word.encode()).digest()[0] % DIMENSION] += 1.0
        return vector

    def categorize(self, name, description):
        self.calls.append(("categorize", name))
        text = f"{name} {description or ''}".lower()
        for keyword, category in KEYWORD_CATEGORIES.items():
            if keyword in text:
                return category
        return "Other"

    def categorize_with_custom_categories(self, name, description, hobby_category, custom_categories):
        self.calls.append(("categorize_custom", name, tuple(custom_categories)))
        text = f"{name} {description or ''}".lower()
        for option in custom_categories:
            if option.lower() in text:
                return option
        return hobby_category or self.categorize(name, description)

    def extract_tags(self, name, description):
        self.calls.append(("extract_tags", name))
        return keyword_tags(name, description)

    def describe_from_name(self, name):
        self.calls.append(("describe", name))
        return f"All about {name.lower()}."

    def analyze_image(self, data, content_type="image/jpeg", hobby_name=None, hobby_category=None):
        self.calls.append(("analyze_image", len(data)))
        return ImageAnalysis(name="Vintage Camera", description="A film camera on a shelf.", category="Photography")

    def called(self, kind):
        return [c for c in self.calls if c[0] == kind]


class FailingVectorIndex:
    """Index whose every operation blows up, like an unreachable service."""

    def upsert(self, records):
        raise RuntimeError("vector index unavailable")

    def get_by_ids(self, ids):
        raise RuntimeError("vector index unavailable")

    def delete_by_ids(self, ids):
        raise RuntimeError("vector index unavailable")

    def query(self, vector, top_k, filter=None):
        raise RuntimeError("vector index unavailable")


@pytest.fixture
def ai():
    return FakeAIGateway()


@pytest.fixture
def index():
    return LocalVectorIndex()


@pytest.fixture
def failing_index():
    return FailingVectorIndex()


@pytest.fixture
def client(ai, index, tmp_path):
    Base.metadata.drop_all(bind=engine)
    init_db()
    app.dependency_overrides[get_ai_gateway] = lambda: ai
    app.dependency_overrides[get_vector_index] = lambda: index
    app.dependency_overrides[get_image_store] = lambda: ImageStore(str(tmp_path / "images"))
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    def _make(username):
        resp = client.post("/api/auth/register", json={
            "email": f"{username}@x.com",
            "password": "correct horse battery",
            "username": username,
        })
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}
    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")


@pytest.fixture
def create_hobby(client):
    def _create(headers, name, **extra):
        resp = client.post("/api/hobbies", json={"name": name, **extra}, headers=headers)
        assert resp.status_code == 200, resp.text
        return resp.json()["hobby"]
    return _create


@pytest.fixture
def create_item(client):
    def _create(headers, hobby_id, name, **extra):
        resp = client.post(f"/api/hobbies/{hobby_id}/items", json={"name": name, **extra}, headers=headers)
        assert resp.status_code == 200, resp.text
        return resp.json()["item"]
    return _create

