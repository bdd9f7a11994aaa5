"""
TechNotes Backend - Password Hashing
=====================================

What:  One-way salted bcrypt hashing of user passwords.
How:   bcrypt.hashpw with a fresh salt per password; cost factor from
       settings.bcrypt_rounds (10 by default). Hashing runs in Starlette's
       threadpool so the event loop keeps serving other requests meanwhile.

bcrypt only looks at the first 72 bytes of its input and current releases
refuse longer input outright, so longer passwords are rejected up front.
"""

from typing import Optional

import bcrypt
from starlette.concurrency import run_in_threadpool

from technotes.config import settings

MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Hash and verify passwords with bcrypt."""

    def __init__(self, rounds: Optional[int] = None):
        self.rounds = rounds

    def _rounds(self) -> int:
        return self.rounds or settings.bcrypt_rounds

    @staticmethod
    def fits(password: str) -> bool:
        """True when `password` is within bcrypt's input limit."""
        return len(password.encode("utf-8")) <= MAX_PASSWORD_BYTES

    def hash_sync(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds())
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify_sync(self, password: str, hashed: str) -> bool:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))

    async def hash(self, password: str) -> str:
        return await run_in_threadpool(self.hash_sync, password)


password_hasher = PasswordHasher()
