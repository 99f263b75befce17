"""
In-memory session store.

Maps a random session id (kept in the signed Flask session cookie) to one
WorkflowController per feature.  Nothing is written to disk; entries idle
for longer than the TTL are dropped together with their photos.
"""
import logging
import threading
import time
import uuid

from workflow import WorkflowController

log = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60


class SessionStore:

    def __init__(self, client_factory, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock=time.monotonic):
        self._client_factory = client_factory
        self._ttl     = ttl_seconds
        self._clock   = clock
        self._lock    = threading.Lock()
        self._entries: dict[str, dict] = {}

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex

    def _purge(self, now: float) -> None:
        expired = [sid for sid, e in self._entries.items() if now - e["seen"] > self._ttl]
        for sid in expired:
            del self._entries[sid]
        if expired:
            log.info("Dropped %d idle session(s)", len(expired))

    def controller(self, session_id: str, feature_key: str) -> WorkflowController:
        """Return the session's controller for a feature, creating it on first use."""
        with self._lock:
            now = self._clock()
            self._purge(now)
            entry = self._entries.setdefault(session_id, {"seen": now, "controllers": {}})
            entry["seen"] = now
            controllers = entry["controllers"]
            if feature_key not in controllers:
                controllers[feature_key] = WorkflowController(feature_key, self._client_factory())
            return controllers[feature_key]

    def drop(self, session_id: str) -> None:
        with self._lock:
            self._entries.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
