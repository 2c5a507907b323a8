"""
Password hashing with bcrypt.

Hashing and checking run in a worker thread so a slow bcrypt round does
not stall the event loop for other requests.
"""

import asyncio

import bcrypt

DEFAULT_BCRYPT_ROUNDS = 12
# bcrypt only reads the first 72 bytes; newer releases reject longer input.
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Salted adaptive hashing with a fixed cost factor."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self.rounds = rounds

    def hash_sync(self, password: str) -> str:
        hashed = bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=self.rounds))
        return hashed.decode("utf-8")

    def verify_sync(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed or foreign hash format
            return False

    async def hash(self, password: str) -> str:
        return await asyncio.to_thread(self.hash_sync, password)

    async def verify(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self.verify_sync, password, password_hash)
