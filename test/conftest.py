import copy
import itertools
from datetime import datetime, timezone

import pytest
from google.api_core.exceptions import NotFound
from google.cloud import firestore
from google.cloud.firestore_v1.field_path import FieldPath

from app.services.messaging import MulticastResult, SendOutcome


# === In-memory stand-in for the async Firestore client ===
def _resolve(value):
    if value is firestore.SERVER_TIMESTAMP:
        return datetime.now(timezone.utc)
    if isinstance(value, dict):
        return {k: _resolve(v) for k, v in value.items() if v is not firestore.DELETE_FIELD}
    return value


def _merge(target: dict, data: dict):
    for key, value in data.items():
        if value is firestore.DELETE_FIELD:
            target.pop(key, None)
        elif isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = _resolve(value)


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeDocument:
    def __init__(self, db, collection, doc_id):
        self.db = db
        self.key = (collection, doc_id)
        self.id = doc_id

    async def get(self):
        self.db.reads.append(self.key)
        return FakeSnapshot(self.id, self.db.docs.get(self.key))

    async def set(self, data, merge=False):
        if merge and self.key in self.db.docs:
            _merge(self.db.docs[self.key], data)
        else:
            self.db.docs[self.key] = _resolve(data)

    async def update(self, updates):
        self.db.updates.append((self.key, dict(updates)))
        if self.db.fail_updates:
            raise RuntimeError("update rejected")
        if self.key not in self.db.docs:
            raise NotFound(f"No document to update: {self.key}")
        for path, value in updates.items():
            parts = FieldPath.from_api_repr(path).parts
            node = self.db.docs[self.key]
            for part in parts[:-1]:
                node = node.setdefault(part, {})
            if value is firestore.DELETE_FIELD:
                node.pop(parts[-1], None)
            else:
                node[parts[-1]] = _resolve(value)


class FakeCollection:
    def __init__(self, db, name):
        self.db = db
        self.name = name

    def document(self, doc_id):
        return FakeDocument(self.db, self.name, doc_id)

    async def add(self, data):
        ref = self.document(f"auto_{next(self.db.ids)}")
        await ref.set(data)
        return datetime.now(timezone.utc), ref


class FakeFirestore:
    def __init__(self):
        self.docs = {}
        self.reads = []
        self.updates = []
        self.fail_updates = False
        self.ids = itertools.count(1)

    def collection(self, name):
        return FakeCollection(self, name)

    def seed(self, collection, doc_id, data):
        self.docs[(collection, doc_id)] = copy.deepcopy(data)

    def data(self, collection, doc_id):
        return self.docs.get((collection, doc_id))

    def documents(self, collection):
        return [data for (name, _), data in self.docs.items() if name == collection]

    def register_devices(self, user_id, tokens):
        """tokens: device id -> token string"""
        self.seed("fcm_tokens", user_id, {
            "tokens": {
                device_id: {"token": token, "platform": "android", "updatedAt": datetime(2025, 1, 1, tzinfo=timezone.utc)}
                for device_id, token in tokens.items()
            }
        })


# === Stand-in for the FCM gateway ===
class FakeMessenger:
    def __init__(self, errors=None):
        # token -> error code for tokens that should fail
        self.errors = errors or {}
        self.messages = []

    async def send_multicast(self, message):
        self.messages.append(message)
        outcomes = [
            SendOutcome(success=False, error_code=self.errors[token]) if token in self.errors
            else SendOutcome(success=True)
            for token in message.tokens
        ]
        failures = sum(1 for outcome in outcomes if not outcome.success)
        return MulticastResult(
            success_count=len(outcomes) - failures,
            failure_count=failures,
            outcomes=outcomes,
        )


@pytest.fixture
def fake_db():
    return FakeFirestore()


@pytest.fixture
def fake_messenger():
    return FakeMessenger()


@pytest.fixture
def seeded_db(fake_db):
    """Users, a two-party conversation and a project owned by user_y."""
    fake_db.seed("users", "user_a", {"name": "Alice"})
    fake_db.seed("users", "user_b", {"name": "Bob"})
    fake_db.seed("users", "user_x", {"name": "Xavier"})
    fake_db.seed("users", "user_y", {"name": "Yara"})
    fake_db.seed("users", "user_z", {"name": "Zoe"})
    fake_db.seed("conversations", "conv_c", {"participants": ["user_a", "user_b"]})
    fake_db.seed("projects", "project_p", {"uid": "user_y", "title": "Garden Build"})
    fake_db.register_devices("user_b", {"phone_b": "token_b1", "tablet_b": "token_b2"})
    fake_db.register_devices("user_a", {"phone_a": "token_a1"})
    fake_db.register_devices("user_y", {"phone_y": "token_y1"})
    fake_db.register_devices("user_z", {"phone_z": "token_z1"})
    return fake_db
