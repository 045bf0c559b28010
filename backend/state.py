"""Multi-user session state with isolation and auto-cleanup."""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from threading import Lock
from typing import Optional

from plate_core import PlateSession
from plate_core.config import settings

logger = logging.getLogger(__name__)

# Limits to prevent memory issues
MAX_FILES_PER_SESSION = settings.max_files_per_session
MAX_FILE_SIZE_MB = settings.max_file_size_mb
SESSION_TTL_HOURS = settings.session_ttl_hours  # Sessions expire after this many hours
CLEANUP_INTERVAL_MINUTES = settings.cleanup_interval_minutes


@dataclass
class SessionState:
    """Holds all data for a single user session."""

    session_id: str
    last_accessed: datetime = field(default_factory=datetime.utcnow)

    # Uploaded files, selectors and the merged plate
    plate: PlateSession = field(default_factory=PlateSession)

    def touch(self) -> None:
        """Update last accessed time."""
        self.last_accessed = datetime.utcnow()

    @property
    def file_count(self) -> int:
        """Get current number of files."""
        return self.plate.file_count

    @property
    def can_add_files(self) -> bool:
        """Check if we can add more files."""
        return self.file_count < MAX_FILES_PER_SESSION

    def files_remaining(self) -> int:
        """Get number of files that can still be added."""
        return max(0, MAX_FILES_PER_SESSION - self.file_count)

    def is_expired(self) -> bool:
        """Check if this session has expired."""
        expiry_time = self.last_accessed + timedelta(hours=SESSION_TTL_HOURS)
        return datetime.utcnow() > expiry_time


class SessionManager:
    """Manages multiple user sessions with isolation and cleanup."""

    def __init__(self):
        self._sessions: dict[str, SessionState] = {}
        self._lock = Lock()
        self._cleanup_task: Optional[asyncio.Task] = None

    def create_session(self) -> str:
        """Create a new session and return its ID."""
        session_id = str(uuid.uuid4())
        with self._lock:
            self._sessions[session_id] = SessionState(session_id=session_id)
        return session_id

    def get_session(self, session_id: str) -> Optional[SessionState]:
        """Get a session by ID, or None if not found/expired."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if session.is_expired():
                del self._sessions[session_id]
                return None
            session.touch()
            return session

    def get_or_create_session(self, session_id: Optional[str]) -> tuple[str, SessionState]:
        """Get existing session or create a new one.

        Returns (session_id, session_state).
        """
        if session_id:
            session = self.get_session(session_id)
            if session:
                return session_id, session

        new_id = self.create_session()
        return new_id, self._sessions[new_id]

    def cleanup_expired_sessions(self) -> int:
        """Remove all expired sessions. Returns count of removed sessions."""
        removed = 0
        with self._lock:
            expired = [
                sid for sid, session in self._sessions.items()
                if session.is_expired()
            ]
            for sid in expired:
                del self._sessions[sid]
                removed += 1
        return removed

    def get_stats(self) -> dict:
        """Get global statistics about all sessions."""
        with self._lock:
            total_files = sum(s.file_count for s in self._sessions.values())
            return {
                "active_sessions": len(self._sessions),
                "total_files": total_files,
            }

    async def start_cleanup_task(self) -> None:
        """Start the background cleanup task."""
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop_cleanup_task(self) -> None:
        """Stop the background cleanup task."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass

    async def _cleanup_loop(self) -> None:
        """Background loop that periodically cleans up expired sessions."""
        while True:
            await asyncio.sleep(CLEANUP_INTERVAL_MINUTES * 60)
            removed = self.cleanup_expired_sessions()
            if removed > 0:
                logger.info(f"Removed {removed} expired session(s)")


# Global session manager
session_manager = SessionManager()

# Export constants for use in main.py
MAX_FILES = MAX_FILES_PER_SESSION
