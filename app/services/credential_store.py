# app/services/credential_store.py
"""
Short-lived single-use credentials for the password-reset flow.

Two kinds share one lifecycle:
  - reset tokens: 128-bit random hex strings, sent as links
  - verification codes: fixed-width numeric codes, typed in by the user

Each entry lives for a fixed validity window. Expired entries are removed lazily
when validate() touches them, or in bulk by sweep_expired(). validate() never
consumes; consume() is the validate-and-use step of a password change.

The map is guarded by one reader/writer lock: validate() reads under the shared
lock, everything that mutates takes the exclusive lock.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple
from app.config import settings
from app.utils.locks import ReadWriteLock
from app.utils.logger import get_logger, mask_token

logger = get_logger(__name__)

MAX_CODE_ATTEMPTS = 20


@dataclass
class EphemeralCredential:
    token: str
    subject_id: int
    issued_at: datetime
    expires_at: datetime
    consumed: bool = False

    def is_valid_at(self, now: datetime) -> bool:
        return not self.consumed and now <= self.expires_at


class EphemeralCredentialStore:
    def __init__(
        self,
        validity: timedelta = None,
        token_bytes: int = None,
        code_length: int = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.validity = validity or timedelta(minutes=settings.RESET_TOKEN_VALIDITY_MINUTES)
        self.token_bytes = token_bytes or settings.RESET_TOKEN_BYTES
        self.code_length = code_length or settings.VERIFICATION_CODE_LENGTH
        self._clock = clock
        self._entries: dict[str, EphemeralCredential] = {}
        self._lock = ReadWriteLock()

    def __len__(self):
        with self._lock.read_locked():
            return len(self._entries)

    def _store(self, token: str, subject_id: int) -> EphemeralCredential:
        # caller holds the write lock
        now = self._clock()
        entry = EphemeralCredential(token=token, subject_id=subject_id,
                                    issued_at=now, expires_at=now + self.validity)
        self._entries[token] = entry
        return entry

    def issue(self, subject_id: int) -> str:
        """New opaque token for subject_id. Earlier tokens for the same subject stay valid."""
        token = secrets.token_hex(self.token_bytes)
        with self._lock.write_locked():
            entry = self._store(token, subject_id)
        logger.info(f"[CRED] Stored reset token {mask_token(token)} for subject {subject_id} "
                    f"(expires {entry.expires_at.isoformat()})")
        return token

    def issue_code(self, subject_id: int) -> str:
        """New numeric verification code; retries on collision with an outstanding code."""
        with self._lock.write_locked():
            for _ in range(MAX_CODE_ATTEMPTS):
                code = f"{secrets.randbelow(10 ** self.code_length):0{self.code_length}d}"
                if code not in self._entries:
                    entry = self._store(code, subject_id)
                    break
            else:
                raise RuntimeError("Could not allocate a unique verification code")
        logger.info(f"[CRED] Stored verification code for subject {subject_id} "
                    f"(expires {entry.expires_at.isoformat()})")
        return code

    def validate(self, token: str) -> Tuple[Optional[int], bool]:
        """
        (subject_id, True) while the token is live. Unknown, consumed or expired
        tokens give (subject_id or None, False); an expired one is deleted on the way.
        """
        with self._lock.read_locked():
            entry = self._entries.get(token)
            now = self._clock()
            valid = entry is not None and entry.is_valid_at(now)

        if entry is None:
            logger.info(f"[CRED] Token {mask_token(token)} invalid or not found")
            return None, False

        if not valid and now > entry.expires_at:
            with self._lock.write_locked():
                # State may have changed between releasing the read lock and getting here
                current = self._entries.get(token)
                if current is None:
                    logger.debug(f"[CRED] Token {mask_token(token)} already removed")
                elif current.is_valid_at(self._clock()):
                    logger.info(f"[CRED] Token {mask_token(token)} changed during validation; kept")
                else:
                    del self._entries[token]
                    logger.info(f"[CRED] Token {mask_token(token)} expired and removed")

        if valid:
            logger.info(f"[CRED] Validated token {mask_token(token)} for subject {entry.subject_id}")
        return entry.subject_id, valid

    def consume(self, token: str) -> Tuple[Optional[int], bool]:
        """Validate and remove in one exclusive step; only one caller can ever succeed."""
        with self._lock.write_locked():
            entry = self._entries.pop(token, None)
            if entry is None:
                return None, False
            if not entry.is_valid_at(self._clock()):
                logger.info(f"[CRED] Token {mask_token(token)} expired at consume; removed")
                return entry.subject_id, False
            entry.consumed = True
        logger.info(f"[CRED] Consumed token {mask_token(token)} for subject {entry.subject_id}")
        return entry.subject_id, True

    def invalidate(self, token: str):
        with self._lock.write_locked():
            self._entries.pop(token, None)
        logger.info(f"[CRED] Invalidated token {mask_token(token)}")

    def sweep_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        with self._lock.write_locked():
            now = self._clock()
            stale = [t for t, e in self._entries.items() if now > e.expires_at]
            for t in stale:
                del self._entries[t]
        if stale:
            logger.info(f"[CRED] Swept {len(stale)} expired credentials")
        return len(stale)
