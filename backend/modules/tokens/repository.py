"""
Token store implementations.

InMemoryTokenStore backs development and tests; SupabaseTokenRepository
reads and writes the verification_tokens table.
"""

from typing import Optional, Any

from supabase import Client

from shared.repository import BaseRepository
from .interfaces import ITokenStore
from .models import VerificationToken

TABLE = "verification_tokens"


class InMemoryTokenStore(ITokenStore):
    """
    Dict-backed token store.

    Methods contain no await points, so each call is atomic with respect
    to other coroutines on the same event loop.
    """

    def __init__(self) -> None:
        self._by_token: dict[str, VerificationToken] = {}

    async def delete_all_for(self, identifier: str) -> None:
        self._delete_identifier(identifier)

    async def create(self, token: VerificationToken) -> None:
        if token.token in self._by_token:
            raise ValueError("Token already exists")
        self._by_token[token.token] = token

    async def replace(self, token: VerificationToken) -> None:
        self._delete_identifier(token.identifier)
        self._by_token[token.token] = token

    async def find_by_token(self, token: str) -> Optional[VerificationToken]:
        return self._by_token.get(token)

    async def delete_by_token(self, token: str) -> None:
        self._by_token.pop(token, None)

    def __len__(self) -> int:
        return len(self._by_token)

    def _delete_identifier(self, identifier: str) -> None:
        stale = [t for t, row in self._by_token.items() if row.identifier == identifier]
        for t in stale:
            del self._by_token[t]


class SupabaseTokenRepository(BaseRepository[VerificationToken], ITokenStore):
    """
    Token store on the verification_tokens table.

    replace() relies on a unique constraint on `identifier` and performs a
    single upsert, so the old row is swapped out in one statement.
    """

    def __init__(self, db: Client) -> None:
        super().__init__(db)

    async def delete_all_for(self, identifier: str) -> None:
        await self._execute(self._db.table(TABLE).delete().eq("identifier", identifier))

    async def create(self, token: VerificationToken) -> None:
        await self._execute(self._db.table(TABLE).insert(self._to_row(token)))

    async def replace(self, token: VerificationToken) -> None:
        await self._execute(
            self._db.table(TABLE).upsert(self._to_row(token), on_conflict="identifier")
        )

    async def find_by_token(self, token: str) -> Optional[VerificationToken]:
        result = await self._execute(self._db.table(TABLE).select("*").eq("token", token))
        if not result.data:
            return None
        return self._map_to_token(result.data[0])

    async def delete_by_token(self, token: str) -> None:
        await self._execute(self._db.table(TABLE).delete().eq("token", token))

    @staticmethod
    def _to_row(token: VerificationToken) -> dict[str, Any]:
        return {
            "identifier": token.identifier,
            "token": token.token,
            "expires": token.expires.isoformat(),
        }

    def _map_to_token(self, row: dict[str, Any]) -> VerificationToken:
        return VerificationToken(
            identifier=row["identifier"],
            token=row["token"],
            expires=self._parse_datetime(row["expires"]),
        )
