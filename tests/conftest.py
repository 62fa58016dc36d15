from __future__ import annotations

import json
import os
from datetime import datetime
from types import SimpleNamespace
from typing import Optional

import pytest

# Safe configuration before any ustadgee module reads the environment
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

from fastapi import FastAPI  # noqa: E402
from fastapi.exceptions import RequestValidationError  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from ustadgee.auth import create_access_token  # noqa: E402
from ustadgee.database import Base, get_db  # noqa: E402
from ustadgee.domain.chat.router import router as chat_router  # noqa: E402
from ustadgee.domain.notifications.router import router as notifications_router  # noqa: E402
from ustadgee.domain.reviews.router import router as reviews_router  # noqa: E402
from ustadgee.domain.tasks.router import router as tasks_router  # noqa: E402
from ustadgee.exceptions import InvalidTransition, StoreError, TaskNotFound  # noqa: E402
from ustadgee.main import validation_exception_handler  # noqa: E402
from ustadgee.models import (  # noqa: E402
    USER_TYPE_PROVIDER,
    USER_TYPE_REQUESTER,
    Service,
    TaskAssign,
    User,
)
from ustadgee.realtime.connection import Connection  # noqa: E402
from ustadgee.realtime.endpoint import router as realtime_router  # noqa: E402
from ustadgee.realtime.hub import RealtimeHub  # noqa: E402
from ustadgee.schemas import (  # noqa: E402
    ChatCreate,
    ChatRecord,
    NotificationCreate,
    NotificationRecord,
    TaskRecord,
)
from ustadgee.store import SqlAlchemyStore  # noqa: E402


class FakeTransport:
    """Records every frame sent; optionally fails like a dropped socket"""

    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.closed_with: Optional[int] = None
        self.fail = fail

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise ConnectionResetError("socket gone")
        self.sent.append(json.loads(text))

    async def close(self, code: int = 1000) -> None:
        self.closed_with = code

    def of_type(self, frame_type: str) -> list[dict]:
        return [f for f in self.sent if f.get("type") == frame_type]


class FakeStore:
    """In-memory data store with call counters"""

    def __init__(self):
        self.tasks: dict[int, TaskRecord] = {}
        self.notifications: list[NotificationRecord] = []
        self.chats: list[ChatRecord] = []
        self.permissions: dict[int, str] = {}
        self.fail_notifications = False
        self.fail_updates = False
        self.fail_permissions = False

    def add_task(self, task_id: int, worker_id: int, user_id: int, status_id: int = 1) -> TaskRecord:
        task = TaskRecord(
            id=task_id,
            worker_id=worker_id,
            user_id=user_id,
            service_id=1,
            total_amount=1500,
            status_id=status_id,
        )
        self.tasks[task_id] = task
        return task

    async def find_task(self, task_id: int) -> Optional[TaskRecord]:
        return self.tasks.get(task_id)

    async def update_task_status(
        self, task_id: int, status_id: int, expected_status: Optional[int] = None
    ) -> TaskRecord:
        if self.fail_updates:
            raise StoreError("update_task_status failed: database is locked")
        if task_id not in self.tasks:
            raise TaskNotFound(task_id)
        current = self.tasks[task_id].status_id
        if expected_status is not None and current != expected_status:
            raise InvalidTransition(
                f"Task {task_id} changed to {current}", current_status=current, new_status=status_id
            )
        updated = self.tasks[task_id].model_copy(update={"status_id": status_id})
        self.tasks[task_id] = updated
        return updated

    async def insert_notification_record(self, data: NotificationCreate) -> NotificationRecord:
        if self.fail_notifications:
            raise StoreError("insert_notification_record failed: disk full")
        record = NotificationRecord(
            id=len(self.notifications) + 1,
            recipient_id=data.recipient_id,
            notifier_id=data.notifier_id,
            title=data.title,
            message=data.message,
            type=int(data.type),
            post_id=data.post_id,
            is_read=False,
            time_stamp=datetime(2026, 10, 19, 9, 30),  # naive, as SQLite returns it
        )
        self.notifications.append(record)
        return record

    async def insert_chat_record(self, data: ChatCreate) -> ChatRecord:
        record = ChatRecord(id=len(self.chats) + 1, thread_id=1, **data.model_dump())
        self.chats.append(record)
        return record

    async def update_notification_permission(self, user_id: int, permission: str) -> bool:
        if self.fail_permissions:
            raise StoreError("update_notification_permission failed")
        self.permissions[user_id] = permission
        return True


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def hub(fake_store: FakeStore) -> RealtimeHub:
    return RealtimeHub(fake_store)


@pytest.fixture
def make_connection():
    def _make(fail: bool = False) -> Connection:
        return Connection(FakeTransport(fail=fail))

    return _make


# ---------------------------------------------------------------------------
# Database-backed fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seed(db) -> SimpleNamespace:
    """A provider with one service, a requester and an unrelated user"""
    provider = User(phone_number="03001234567", full_name="Ali Electrician", user_type=USER_TYPE_PROVIDER)
    requester = User(phone_number="03007654321", full_name="Sara Khan", user_type=USER_TYPE_REQUESTER)
    outsider = User(phone_number="03110000000", full_name="Bilal Ahmed", user_type=USER_TYPE_REQUESTER)
    db.add_all([provider, requester, outsider])
    db.commit()

    service = Service(user_id=provider.id, title="Wiring repair", description="Home wiring", charges=1500)
    db.add(service)
    db.commit()

    return SimpleNamespace(
        provider_id=provider.id,
        requester_id=requester.id,
        outsider_id=outsider.id,
        service_id=service.id,
    )


@pytest.fixture
def make_task(db, seed):
    def _make(status_id: int = 1) -> int:
        task = TaskAssign(
            worker_id=seed.provider_id,
            user_id=seed.requester_id,
            service_id=seed.service_id,
            description="Fix kitchen socket",
            total_amount=1500,
            status_id=status_id,
        )
        db.add(task)
        db.commit()
        return task.id

    return _make


@pytest.fixture
def store(session_factory) -> SqlAlchemyStore:
    return SqlAlchemyStore(session_factory)


@pytest.fixture
def app(session_factory, store) -> FastAPI:
    app = FastAPI()
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(tasks_router)
    app.include_router(notifications_router)
    app.include_router(chat_router)
    app.include_router(reviews_router)
    app.include_router(realtime_router)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.hub = RealtimeHub(store)
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


def auth_headers(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
