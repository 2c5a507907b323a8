"""
Credential store implementations.

InMemoryCredentialStore backs development and tests;
SupabaseCredentialRepository reads and writes the users table.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from supabase import Client

from shared.repository import BaseRepository
from .exceptions import EmailAlreadyExistsError
from .interfaces import ICredentialStore
from .models import Credential, NewCredential, normalize_email

TABLE = "users"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryCredentialStore(ICredentialStore):
    """Dict-backed credential store with a unique email index."""

    def __init__(self) -> None:
        self._by_id: dict[str, Credential] = {}
        self._id_by_email: dict[str, str] = {}

    async def find_by_email(self, email: str) -> Optional[Credential]:
        user_id = self._id_by_email.get(normalize_email(email))
        return self._by_id.get(user_id) if user_id else None

    async def find_by_id(self, user_id: str) -> Optional[Credential]:
        return self._by_id.get(user_id)

    async def create(self, fields: NewCredential) -> Credential:
        if fields.email in self._id_by_email:
            raise EmailAlreadyExistsError()

        now = _utcnow()
        credential = Credential(
            id=str(uuid.uuid4()),
            email=fields.email,
            name=fields.name,
            password_hash=fields.password_hash,
            image=fields.image,
            email_verified=None,
            created_at=now,
            updated_at=now,
        )
        self._by_id[credential.id] = credential
        self._id_by_email[credential.email] = credential.id
        return credential

    async def update_password(self, user_id: str, password_hash: str) -> None:
        credential = self._by_id.get(user_id)
        if credential is None:
            return
        self._by_id[user_id] = credential.model_copy(
            update={"password_hash": password_hash, "updated_at": _utcnow()}
        )

    async def mark_verified(self, email: str, when: datetime) -> None:
        user_id = self._id_by_email.get(normalize_email(email))
        if user_id is None:
            return
        self._by_id[user_id] = self._by_id[user_id].model_copy(
            update={"email_verified": when, "updated_at": _utcnow()}
        )

    def __len__(self) -> int:
        return len(self._by_id)


class SupabaseCredentialRepository(BaseRepository[Credential], ICredentialStore):
    """
    Credential store on the users table.

    Email uniqueness is enforced by the table's unique index; a duplicate
    insert surfaces as EmailAlreadyExistsError.
    """

    def __init__(self, db: Client) -> None:
        super().__init__(db)

    async def find_by_email(self, email: str) -> Optional[Credential]:
        query = self._db.table(TABLE).select("*").eq("email", normalize_email(email))
        result = await self._execute(query)
        if not result.data:
            return None
        return self._map_to_credential(result.data[0])

    async def find_by_id(self, user_id: str) -> Optional[Credential]:
        result = await self._execute(self._db.table(TABLE).select("*").eq("id", user_id))
        if not result.data:
            return None
        return self._map_to_credential(result.data[0])

    async def create(self, fields: NewCredential) -> Credential:
        now = _utcnow().isoformat()
        row = {
            "id": str(uuid.uuid4()),
            "email": fields.email,
            "name": fields.name,
            "password": fields.password_hash,
            "image": fields.image,
            "email_verified": None,
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = await self._execute(self._db.table(TABLE).insert(row))
        except Exception as e:
            # PostgREST reports unique violations with SQLSTATE 23505
            if "23505" in str(e):
                raise EmailAlreadyExistsError() from e
            raise
        return self._map_to_credential(result.data[0])

    async def update_password(self, user_id: str, password_hash: str) -> None:
        await self._execute(
            self._db.table(TABLE)
            .update({"password": password_hash, "updated_at": _utcnow().isoformat()})
            .eq("id", user_id)
        )

    async def mark_verified(self, email: str, when: datetime) -> None:
        await self._execute(
            self._db.table(TABLE)
            .update({"email_verified": when.isoformat(), "updated_at": _utcnow().isoformat()})
            .eq("email", normalize_email(email))
        )

    def _map_to_credential(self, row: dict[str, Any]) -> Credential:
        return Credential(
            id=row["id"],
            email=row["email"],
            name=row.get("name"),
            password_hash=row.get("password"),
            image=row.get("image"),
            email_verified=self._parse_datetime(row.get("email_verified")),
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
        )
