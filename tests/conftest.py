# shared fixtures for backend api tests
# provides mock db, test users, auth tokens, sample mood data and httpx test clients

import re
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from unittest.mock import MagicMock
from bson import ObjectId

from httpx import AsyncClient, ASGITransport

from moodwell.main import app
from moodwell.services.db import get_db
from moodwell.services.auth_service import create_access_token
from moodwell.services.content_generator import ContentGenerator
from moodwell.dependencies import get_current_user, get_generator


# test ids
USER_OID = ObjectId()
OTHER_USER_OID = ObjectId()
THIRD_USER_OID = ObjectId()
USER_ID = str(USER_OID)
OTHER_USER_ID = str(OTHER_USER_OID)
THIRD_USER_ID = str(THIRD_USER_OID)

# fixed clock for pipeline tests: wednesday 2025-06-18 12:00 utc
NOW = datetime(2025, 6, 18, 12, 0, tzinfo=timezone.utc)


# test user documents (as they'd appear from mongodb)

USER_DOC = {
    "_id": USER_OID,
    "email": "ola@moodwell.app",
    "display_name": "Ola",
    "role": "user",
    "is_suspended": False,
    "created_at": datetime(2025, 1, 10, tzinfo=timezone.utc),
}

OTHER_USER_DOC = {
    "_id": OTHER_USER_OID,
    "email": "kuba@moodwell.app",
    "display_name": "Kuba",
    "role": "user",
    "is_suspended": False,
    "created_at": datetime(2025, 2, 3, tzinfo=timezone.utc),
}

THIRD_USER_DOC = {
    "_id": THIRD_USER_OID,
    "email": "maja@moodwell.app",
    "display_name": "Maja",
    "role": "user",
    "is_suspended": False,
    "created_at": datetime(2025, 3, 21, tzinfo=timezone.utc),
}


# sample data builders

def make_mood(user_id, emotion, created_at, intensity=None, reason=None, note=""):
    return {
        "_id": ObjectId(),
        "user_id": user_id,
        "emotion": emotion,
        "reason": reason,
        "intensity": intensity,
        "note": note,
        "date": created_at.replace(hour=0, minute=0, second=0, microsecond=0),
        "created_at": created_at,
    }


def make_rating(user_id, rating, day, note=None):
    day = day.replace(hour=0, minute=0, second=0, microsecond=0)
    return {
        "_id": ObjectId(),
        "user_id": user_id,
        "rating": rating,
        "note": note,
        "date": day,
        "created_at": day + timedelta(hours=21),
    }


def make_victory(user_id, text, created_at, type="general"):
    return {
        "_id": ObjectId(),
        "user_id": user_id,
        "text": text,
        "type": type,
        "date": created_at.date().isoformat(),
        "created_at": created_at,
    }


def sample_week(user_id, now=NOW):
    """five check-ins, three ratings and two victories inside the last week"""
    moods = [
        make_mood(user_id, "stressed", now - timedelta(days=6), intensity=3, reason="school", note="exam tomorrow"),
        make_mood(user_id, "sad", now - timedelta(days=5), intensity=4, reason="school"),
        make_mood(user_id, "calm", now - timedelta(days=3), intensity=6, reason="friends"),
        make_mood(user_id, "happy", now - timedelta(days=2), intensity=8, reason="friends", note="great walk"),
        make_mood(user_id, "happy", now - timedelta(days=1), intensity=9, reason="family"),
    ]
    ratings = [
        make_rating(user_id, 2, now - timedelta(days=5)),
        make_rating(user_id, 5, now - timedelta(days=2)),
        make_rating(user_id, 4, now - timedelta(days=1)),
    ]
    victories = [
        make_victory(user_id, "went for a run", now - timedelta(days=4), type="walk"),
        make_victory(user_id, "ten minutes of meditation", now - timedelta(days=1), type="meditation"),
    ]
    return moods, ratings, victories


# async cursor mock

class AsyncCursorMock:
    """mock for motor's async cursor — supports async for and chained methods"""

    def __init__(self, data=None, error=None):
        self._data = list(data or [])
        self._index = 0
        self._error = error

    def sort(self, key, direction=1):
        self._data = sorted(self._data, key=lambda d: d.get(key), reverse=direction == -1)
        return self

    def skip(self, n):
        self._data = self._data[n:]
        return self

    def limit(self, n):
        if n:
            self._data = self._data[:n]
        return self

    def __aiter__(self):
        if self._error is not None:
            raise self._error
        self._index = 0
        return self

    async def __anext__(self):
        if self._index >= len(self._data):
            raise StopAsyncIteration
        item = self._data[self._index]
        self._index += 1
        return item

    async def to_list(self, length=None):
        if self._error is not None:
            raise self._error
        if length is not None:
            return self._data[:length]
        return self._data


class MockCollection:
    """mock for a motor collection with async methods"""

    def __init__(self, data=None):
        self._data = data or []
        self.inserted = []
        # set to an exception to simulate a storage failure on reads
        self.error = None

    def find(self, query=None, projection=None):
        results = self._data
        if query:
            results = [d for d in results if self._matches(d, query)]
        return AsyncCursorMock([self._project(d, projection) for d in results], error=self.error)

    async def find_one(self, query=None, projection=None):
        if self.error is not None:
            raise self.error
        if not query:
            return self._data[0] if self._data else None
        for doc in self._data:
            if self._matches(doc, query):
                return doc
        return None

    async def insert_one(self, doc):
        oid = doc.get("_id", ObjectId())
        doc["_id"] = oid
        self._data.append(doc)
        self.inserted.append(doc)
        result = MagicMock()
        result.inserted_id = oid
        return result

    async def count_documents(self, query=None):
        if self.error is not None:
            raise self.error
        if not query:
            return len(self._data)
        return len([d for d in self._data if self._matches(d, query)])

    async def update_one(self, query, update, upsert=False):
        result = MagicMock()
        result.matched_count = 0
        result.modified_count = 0
        result.upserted_id = None
        for doc in self._data:
            if self._matches(doc, query):
                if "$set" in update:
                    doc.update(update["$set"])
                result.matched_count = 1
                result.modified_count = 1
                return result

        if upsert:
            doc = {k: v for k, v in query.items() if not isinstance(v, dict)}
            doc.update(update.get("$setOnInsert", {}))
            doc.update(update.get("$set", {}))
            inserted = await self.insert_one(doc)
            result.upserted_id = inserted.inserted_id
        return result

    async def delete_one(self, query):
        result = MagicMock()
        result.deleted_count = 0
        for i, doc in enumerate(self._data):
            if self._matches(doc, query):
                del self._data[i]
                result.deleted_count = 1
                break
        return result

    async def create_index(self, *args, **kwargs):
        return "mock_index"

    def _project(self, doc, projection):
        if not projection:
            return doc
        excluded = [k for k, v in projection.items() if not v]
        if excluded:
            return {k: v for k, v in doc.items() if k not in excluded}
        return {k: v for k, v in doc.items() if k == "_id" or projection.get(k)}

    def _matches(self, doc, query):
        """basic mongodb query matching for tests"""
        for key, value in query.items():
            doc_val = doc.get(key)
            if isinstance(value, dict):
                for op, operand in value.items():
                    if op == "$in" and doc_val not in operand:
                        return False
                    if op in ("$gte", "$gt", "$lte", "$lt") and doc_val is None:
                        return False
                    if op == "$gte" and doc_val < operand:
                        return False
                    if op == "$gt" and doc_val <= operand:
                        return False
                    if op == "$lte" and doc_val > operand:
                        return False
                    if op == "$lt" and doc_val >= operand:
                        return False
                    if op == "$regex" and (doc_val is None or not re.search(operand, str(doc_val))):
                        return False
            elif doc_val != value:
                return False
        return True


class MockDatabase:
    """mock database that mimics the Database class"""

    def __init__(self):
        self.users = MockCollection([
            USER_DOC.copy(),
            OTHER_USER_DOC.copy(),
            THIRD_USER_DOC.copy(),
        ])
        self.mood_entries = MockCollection([])
        self.day_ratings = MockCollection([])
        self.victories = MockCollection([])
        self.ai_reports = MockCollection([])

    async def connect(self):
        pass

    async def close(self):
        pass

    def seed(self, moods=(), ratings=(), victories=()):
        self.mood_entries._data.extend(moods)
        self.day_ratings._data.extend(ratings)
        self.victories._data.extend(victories)


@pytest.fixture
def mock_db():
    """create a fresh mock database for each test"""
    return MockDatabase()


@pytest.fixture
def template_generator():
    """content generator without a language model"""
    return ContentGenerator()


def _user_dict(doc):
    """return user dict as get_current_user would return"""
    user = doc.copy()
    user["id"] = str(user.pop("_id"))
    return user


@pytest.fixture
def user_token():
    """jwt access token for the test user"""
    return create_access_token({"sub": USER_ID, "role": "user"})


def _override(mock_db, generator, user_doc=None):
    async def override_get_db():
        return mock_db

    async def override_get_generator():
        return generator

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_generator] = override_get_generator
    if user_doc is not None:
        async def override_get_current_user():
            return _user_dict(user_doc)

        app.dependency_overrides[get_current_user] = override_get_current_user


@pytest_asyncio.fixture
async def client(mock_db, template_generator):
    """httpx async test client with mocked db, real jwt auth"""
    _override(mock_db, template_generator)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def user_client(mock_db, template_generator):
    """client authenticated as the main test user"""
    _override(mock_db, template_generator, USER_DOC)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def other_user_client(mock_db, template_generator):
    """client authenticated as a second user"""
    _override(mock_db, template_generator, OTHER_USER_DOC)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
