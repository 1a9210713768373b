import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

import redis
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

SESSION_KEY = "assessment_session_id"
PROGRESS_KEY_PREFIX = "assessment_progress"


class Storage(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class RedisStorage:
    def __init__(self, url: str | None = None, ttl: int = 30 * 24 * 60 * 60):
        self.redis_client = redis.Redis.from_url(url or settings.PROGRESS_STORE_URL)
        self.ttl = ttl

    def get(self, key: str) -> str | None:
        value = self.redis_client.get(key)
        return value.decode("utf-8") if value else None

    def set(self, key: str, value: str) -> None:
        self.redis_client.setex(key, self.ttl, value)

    def delete(self, key: str) -> None:
        self.redis_client.delete(key)


class MemoryStorage:
    """Process-local storage, used when no shared store is reachable and in tests."""

    def __init__(self):
        self.data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


@dataclass(frozen=True)
class WizardSession:
    """Session-scoped identity passed explicitly to the wizard and the progress store."""

    session_id: str
    user_id: int | None = None

    @classmethod
    def start(cls, storage: Storage, user_id: int | None = None) -> "WizardSession":
        """Reuse the session id kept in storage, or mint and persist a new one."""
        session_id = None
        try:
            session_id = storage.get(SESSION_KEY)
        except Exception as e:
            logger.warning(f"Could not read stored session id: {e}")
        if not session_id:
            session_id = str(uuid.uuid4())
            try:
                storage.set(SESSION_KEY, session_id)
            except Exception as e:
                logger.warning(f"Could not persist session id {session_id}: {e}")
        return cls(session_id=session_id, user_id=user_id)


@dataclass
class ProgressSnapshot:
    answers: dict
    step: int
    timestamp: datetime

    def to_json(self) -> str:
        return json.dumps({"answers": self.answers, "step": self.step, "timestamp": self.timestamp.isoformat()})

    @classmethod
    def from_json(cls, raw: str) -> "ProgressSnapshot":
        data = json.loads(raw)
        return cls(
            answers=dict(data["answers"]),
            step=int(data["step"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


class ProgressStore:
    """Best-effort snapshot cache of an in-progress wizard.

    Every failure is logged and swallowed: losing a snapshot must never block the wizard.
    """

    def __init__(self, storage: Storage, session: WizardSession):
        self.storage = storage
        self.session = session

    @property
    def key(self) -> str:
        return f"{PROGRESS_KEY_PREFIX}:{self.session.session_id}"

    def save(self, answers: dict, step: int) -> ProgressSnapshot | None:
        snapshot = ProgressSnapshot(answers=dict(answers), step=step, timestamp=timezone.now())
        try:
            self.storage.set(self.key, snapshot.to_json())
            logger.debug(f"Saved progress for session {self.session.session_id} at step {step}")
            return snapshot
        except Exception as e:
            logger.warning(f"Progress save failed for session {self.session.session_id}: {e}")
            return None

    def load(self) -> ProgressSnapshot | None:
        try:
            raw = self.storage.get(self.key)
            if not raw:
                return None
            return ProgressSnapshot.from_json(raw)
        except Exception as e:
            logger.warning(f"Progress load failed for session {self.session.session_id}: {e}")
            return None

    def clear(self) -> None:
        try:
            self.storage.delete(self.key)
        except Exception as e:
            logger.warning(f"Progress clear failed for session {self.session.session_id}: {e}")


@dataclass
class ProgressAutosaver:
    """Debounced saving with a forced periodic flush.

    `record_change` is called on every answer change. `poll` is called from the caller's
    loop (or a timer) and writes when either the debounce window after the last change
    has passed or the forced interval has elapsed while changes are pending.
    """

    store: ProgressStore
    debounce: timedelta = timedelta(seconds=2)
    interval: timedelta = timedelta(seconds=30)
    pending: tuple[dict, int] | None = None
    last_change_at: datetime | None = None
    last_flush_at: datetime | None = field(default_factory=timezone.now)

    def record_change(self, answers: dict, step: int) -> None:
        self.pending = (dict(answers), step)
        self.last_change_at = timezone.now()

    def poll(self) -> bool:
        if self.pending is None:
            return False
        now = timezone.now()
        debounced = self.last_change_at is not None and now - self.last_change_at >= self.debounce
        overdue = self.last_flush_at is None or now - self.last_flush_at >= self.interval
        if debounced or overdue:
            return self.flush()
        return False

    def flush(self) -> bool:
        if self.pending is None:
            return False
        answers, step = self.pending
        self.store.save(answers, step)
        self.pending = None
        self.last_flush_at = timezone.now()
        return True
