import threading
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple

import jwt
import pytest
from fastapi.testclient import TestClient

from assettrack.core.config import Settings
from assettrack.main import create_app
from assettrack.models.profile import Profile
from assettrack.schemas.asset import AssetCreate, AssetRecord, AssetUpdate
from assettrack.services.asset_store import (
    AssetStore, RecordConflict, RecordNotFound, StoreUnavailable
)
from assettrack.services.qr_code_utils import RenderOptions

JWT_SECRET = "test-secret"
BASE_URL = "https://x"


class InMemoryAssetStore(AssetStore):
    """AssetStore double with switchable failures"""

    def __init__(self):
        self.rows: Dict[int, AssetRecord] = {}
        self.profiles: Dict[str, str] = {}
        self.qr_writes: List[Tuple[int, Optional[str]]] = []
        self.fail_reads = False
        self.fail_qr_writes_for = set()
        self._next_id = 1
        self._lock = threading.Lock()

    def seed(self, asset_id, name, category="it-equipment", **fields) -> AssetRecord:
        now = datetime(2026, 1, 1)
        record = AssetRecord(
            id=self._next_id,
            asset_id=asset_id,
            name=name,
            category=category,
            status=fields.pop("status", "active"),
            created_at=now,
            updated_at=now,
            **fields,
        )
        self.rows[record.id] = record
        self._next_id += 1
        return record

    def _check_reads(self):
        if self.fail_reads:
            raise StoreUnavailable("store offline")

    def get_by_asset_id(self, asset_id: str) -> AssetRecord:
        self._check_reads()
        for row in self.rows.values():
            if row.asset_id == asset_id:
                return row
        raise RecordNotFound(asset_id)

    def get_by_id(self, record_id: int) -> AssetRecord:
        self._check_reads()
        if record_id not in self.rows:
            raise RecordNotFound(str(record_id))
        return self.rows[record_id]

    def get_many_by_asset_ids(self, asset_ids: Iterable[str]) -> List[AssetRecord]:
        self._check_reads()
        wanted = set(asset_ids)
        return [row for row in reversed(list(self.rows.values())) if row.asset_id in wanted]

    def update_qr_code(self, record_id: int, qr_code: Optional[str]) -> None:
        with self._lock:
            row = self.get_by_id(record_id)
            if row.asset_id in self.fail_qr_writes_for:
                raise StoreUnavailable("write rejected")
            self.rows[record_id] = row.model_copy(update={"qr_code": qr_code})
            self.qr_writes.append((record_id, qr_code))

    def list_assets(self, q=None, category=None, status=None, skip=0, limit=50):
        self._check_reads()
        rows = list(reversed(list(self.rows.values())))
        if q:
            rows = [r for r in rows if q.lower() in r.name.lower() or q.lower() in r.asset_id.lower()]
        if category:
            rows = [r for r in rows if r.category == category]
        if status:
            rows = [r for r in rows if r.status == status]
        return len(rows), rows[skip:skip + limit]

    def add_asset(self, data: AssetCreate, created_by: Optional[str]) -> AssetRecord:
        if any(r.asset_id == data.asset_id for r in self.rows.values()):
            raise RecordConflict(data.asset_id)
        fields = data.model_dump()
        fields["status"] = data.status.value
        return self.seed(created_by=created_by, **fields)

    def update_asset(self, record_id: int, data: AssetUpdate) -> AssetRecord:
        row = self.get_by_id(record_id)
        changes = data.model_dump(exclude_unset=True)
        if "status" in changes and changes["status"] is not None:
            changes["status"] = changes["status"].value
        self.rows[record_id] = row.model_copy(update=changes)
        return self.rows[record_id]

    def profile_exists(self, user_id: str) -> bool:
        return user_id in self.profiles


class RecordingRenderer:
    """Renderer double that returns the payload text it was given"""

    def __init__(self, fail_on: Iterable[str] = ()):
        self.calls: List[Tuple[str, RenderOptions]] = []
        self.fail_on = set(fail_on)
        self._lock = threading.Lock()

    def render(self, text: str, options: RenderOptions) -> str:
        with self._lock:
            self.calls.append((text, options))
        for marker in self.fail_on:
            if marker in text:
                raise RuntimeError(f"renderer exploded on {marker}")
        return "rendered:" + text


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite://",
        app_base_url=BASE_URL,
        jwt_secret_key=JWT_SECRET,
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def store():
    return InMemoryAssetStore()


@pytest.fixture
def renderer():
    return RecordingRenderer()


def make_token(user_id="user-1", email="ada@example.com", expires_in=timedelta(hours=1)):
    payload = {"sub": user_id, "email": email, "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def app(settings):
    return create_app(settings, configure_logging=False)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def profile(app, client):
    db = app.state.session_factory()
    try:
        db.add(Profile(id="user-1", email="ada@example.com", full_name="Ada Lovelace"))
        db.commit()
    finally:
        db.close()
    return "user-1"
