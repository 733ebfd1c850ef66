import asyncio
from collections import Counter
from typing import Dict, Optional

import pytest

from src.crm_core.config import CoreConfig
from src.crm_core.domain.errors import ProfileNotFoundError
from src.crm_core.domain.models import Profile


class StubQueries:
    """ISectionQueries double. Counts fetches per section; optional gates and failures."""

    def __init__(self):
        self.calls = Counter()
        self.gates: Dict[str, asyncio.Event] = {}
        self.failures: Dict[str, BaseException] = {}

    async def _serve(self, section: str, payload):
        self.calls[section] += 1
        gate = self.gates.get(section)
        if gate is not None:
            await gate.wait()
        if section in self.failures:
            raise self.failures[section]
        return payload

    async def fetch_customers(self):
        return await self._serve("customers", [{"id": 1, "name": "Jansen"}])

    async def fetch_projects(self):
        return await self._serve("projects", [{"id": 10}])

    async def fetch_planning(self):
        return await self._serve("planning", [])

    async def fetch_time_registration(self):
        return await self._serve("timeRegistration", [])

    async def fetch_receipts(self):
        return await self._serve("receipts", [])

    async def fetch_quotes(self):
        return await self._serve("quotes", [{"id": 7, "total": 1250}])

    async def fetch_personnel(self):
        return await self._serve("personnel", [{"role": "Installateur"}])

    async def fetch_users(self):
        return await self._serve("users", [{"role": "Administrator"}])

    async def fetch_settings(self):
        return await self._serve("settings", [])

    async def fetch_email(self):
        return await self._serve("email", [])

    async def fetch_chat(self):
        return await self._serve("chat", {"channels": [], "participants": [], "status": "loaded"})


class StubProfiles:
    def __init__(self, profile: Optional[Profile] = None):
        self.profile = profile
        self.error: Optional[BaseException] = None
        self.gate: Optional[asyncio.Event] = None
        self.delay = 0.0
        self.calls = 0

    async def fetch_profile(self, user_id: str) -> Profile:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.profile is None:
            raise ProfileNotFoundError(user_id)
        return self.profile


@pytest.fixture
def config():
    return CoreConfig(INIT_TIMEOUT_SEC=1.0, REQUEST_TIMEOUT_SEC=0.5, PROFILE_CACHE_TTL_SEC=60.0)


@pytest.fixture
def queries():
    return StubQueries()


@pytest.fixture
def profiles():
    return StubProfiles(Profile(full_name="Anna de Vries", role="Administrator"))
