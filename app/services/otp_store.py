# app/services/otp_store.py
"""
One-time passwords for the password reset flow.

Codes live in process memory, keyed by lowercased email, so they only
work with a single application process. The application owns one store
(`app.state.otp_store`) and the housekeeping job purges expired entries.
"""

import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, NamedTuple, Optional

from ..core.clock import utcnow

logger = logging.getLogger(__name__)


class OtpValidation(NamedTuple):
    is_valid: bool
    message: str


@dataclass
class _OtpEntry:
    otp: str
    expires_at: datetime
    attempts: int = 0


class OtpStore:
    def __init__(self, ttl_minutes: int = 10, max_attempts: int = 3):
        self.ttl = timedelta(minutes=ttl_minutes)
        self.max_attempts = max_attempts
        self._entries: Dict[str, _OtpEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(email: str) -> str:
        return email.strip().lower()

    def generate(self, email: str) -> str:
        """Issues a fresh 6-digit code, replacing any previous one for the email."""
        self.purge_expired()
        otp = f"{secrets.randbelow(900000) + 100000}"
        entry = _OtpEntry(otp=otp, expires_at=utcnow() + self.ttl)
        with self._lock:
            self._entries[self._key(email)] = entry
        logger.info("Generated OTP for %s, expires at %s", email, entry.expires_at.isoformat())
        return otp

    def validate(self, email: str, otp: str, now: Optional[datetime] = None) -> OtpValidation:
        """
        Checks a submitted code. Every check counts as an attempt; the entry is
        dropped once expired or out of attempts. A correct code stays valid
        until `invalidate` is called after the password is changed.
        """
        key = self._key(email)
        now = now or utcnow()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return OtpValidation(False, "OTP not found or has expired. Please request a new one.")
            if entry.expires_at < now:
                del self._entries[key]
                return OtpValidation(False, "OTP has expired. Please request a new one.")
            if entry.attempts >= self.max_attempts:
                del self._entries[key]
                return OtpValidation(False, "Maximum attempts exceeded. Please request a new OTP.")

            entry.attempts += 1
            if not secrets.compare_digest(entry.otp, otp):
                remaining = self.max_attempts - entry.attempts
                return OtpValidation(False, f"Invalid OTP. {remaining} attempts remaining.")
        return OtpValidation(True, "OTP verified successfully.")

    def invalidate(self, email: str) -> None:
        with self._lock:
            self._entries.pop(self._key(email), None)

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.expires_at < now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
