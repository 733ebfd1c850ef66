import asyncpg
import structlog
from typing import Any, Dict, FrozenSet, List
from ..domain.errors import ProfileNotFoundError
from ..domain.models import Profile

logger = structlog.get_logger()

PERSONNEL_ROLES = ("Installateur", "Verkoper", "Administratie")


def _rows(records: List[asyncpg.Record]) -> List[Dict[str, Any]]:
    return [dict(r) for r in records]


class PostgresProfileService:
    """
    IProfileService over the ``profiles`` table.
    """
    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def fetch_profile(self, user_id: str) -> Profile:
        async with self._pool.acquire() as conn:
            record = await conn.fetchrow(
                "SELECT full_name, role, status, chat_language FROM profiles WHERE id = $1",
                user_id,
            )
        if record is None:
            raise ProfileNotFoundError(user_id)
        # NULL columns fall back to the model defaults
        return Profile(**{k: v for k, v in dict(record).items() if v is not None})


class PostgresPermissionService:
    """
    IPermissionService over the ``role_permissions`` table (one row per role/permission).
    """
    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def capabilities_for(self, role: str) -> FrozenSet[str]:
        async with self._pool.acquire() as conn:
            records = await conn.fetch("SELECT permission FROM role_permissions WHERE role = $1", role)
        logger.debug("permissions_loaded", role=role, count=len(records))
        return frozenset(r["permission"] for r in records)


class PostgresSectionQueries:
    """
    ISectionQueries over the CRM tables. Newest rows first, capped at ``row_limit``.
    """
    def __init__(self, pool: asyncpg.Pool, row_limit: int = 1000):
        self._pool = pool
        self._row_limit = row_limit

    async def _fetch(self, query: str, *args: Any) -> List[Dict[str, Any]]:
        async with self._pool.acquire() as conn:
            return _rows(await conn.fetch(query, *args))

    async def fetch_customers(self) -> List[Dict[str, Any]]:
        return await self._fetch("SELECT * FROM customers ORDER BY created_at DESC LIMIT $1", self._row_limit)

    async def fetch_projects(self) -> List[Dict[str, Any]]:
        return await self._fetch(
            """
            SELECT p.*, c.name AS customer_name, c.email AS customer_email, c.phone AS customer_phone
            FROM projects p
            LEFT JOIN customers c ON c.id = p.customer_id
            ORDER BY p.created_at DESC
            LIMIT $1
            """,
            self._row_limit,
        )

    async def fetch_planning(self) -> List[Dict[str, Any]]:
        return await self._fetch("SELECT * FROM planning_items ORDER BY start_date ASC")

    async def fetch_time_registration(self) -> List[Dict[str, Any]]:
        return await self._fetch("SELECT * FROM work_time_logs ORDER BY started_at DESC LIMIT $1", self._row_limit)

    async def fetch_receipts(self) -> List[Dict[str, Any]]:
        return await self._fetch("SELECT * FROM receipts ORDER BY created_at DESC LIMIT $1", self._row_limit)

    async def fetch_quotes(self) -> List[Dict[str, Any]]:
        return await self._fetch("SELECT * FROM quotes ORDER BY created_at DESC LIMIT $1", self._row_limit)

    async def fetch_personnel(self) -> List[Dict[str, Any]]:
        return await self._fetch(
            "SELECT * FROM profiles WHERE role = ANY($1::text[]) ORDER BY updated_at DESC",
            list(PERSONNEL_ROLES),
        )

    async def fetch_users(self) -> List[Dict[str, Any]]:
        return await self._fetch("SELECT * FROM profiles ORDER BY updated_at DESC")

    async def fetch_settings(self) -> List[Dict[str, Any]]:
        # No settings table
        return []

    async def fetch_email(self) -> List[Dict[str, Any]]:
        try:
            return await self._fetch("SELECT * FROM email_accounts LIMIT 1")
        except asyncpg.UndefinedTableError:
            logger.warning("email_accounts_table_missing")
            return []

    async def fetch_chat(self) -> Dict[str, Any]:
        # Chat data is served by the chat components themselves
        return {"channels": [], "participants": [], "status": "loaded"}
