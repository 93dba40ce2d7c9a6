import asyncio

import pytest

from quickdesk.data import build_demo_gateway
from quickdesk.errors import GatewayError
from quickdesk.gateway import InMemoryGateway
from quickdesk.lifecycle import LifecycleEngine
from quickdesk.notifications import InMemoryOutbox


class _FlakyGateway(InMemoryGateway):
    """
    In-memory gateway that fails chosen writes. `fail_writes` holds
    (method, entity) pairs such as ("create", "Invitation"). `delay_s`
    slows writes and `read_delay_s` slows get().
    """

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes: set[tuple[str, str]] = set()
        self.delay_s = 0.0
        self.read_delay_s = 0.0

    async def get(self, entity, entity_id):
        if self.read_delay_s:
            await asyncio.sleep(self.read_delay_s)
        return await super().get(entity, entity_id)

    async def _maybe_fail(self, method: str, entity: str) -> None:
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if (method, entity) in self.fail_writes:
            raise GatewayError(f"{entity}.{method} rejected", operation=f"{entity}.{method}")

    async def create(self, entity, fields):
        await self._maybe_fail("create", entity)
        return await super().create(entity, fields)

    async def update(self, entity, entity_id, fields):
        await self._maybe_fail("update", entity)
        return await super().update(entity, entity_id, fields)


class _SlowOutbox(InMemoryOutbox):
    """Outbox whose sends can be made to hang for `delay_s` seconds."""

    def __init__(self) -> None:
        super().__init__()
        self.delay_s = 0.0

    async def send(self, to, subject, body):
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        await super().send(to, subject, body)


def _seeded_flaky_gateway() -> _FlakyGateway:
    demo = build_demo_gateway()
    gateway = _FlakyGateway()
    for entity in ("User", "Category", "Ticket"):
        gateway.seed(entity, asyncio.run(demo.list(entity)))
    return gateway


@pytest.fixture
def gateway():
    return _seeded_flaky_gateway()


@pytest.fixture
def outbox():
    return _SlowOutbox()


@pytest.fixture
def engine(gateway, outbox):
    return LifecycleEngine(gateway, outbox, call_timeout_s=1.0, app_url="https://desk.example.com")


def _user(gateway, email):
    return asyncio.run(gateway.filter("User", {"email": email}))[0]


@pytest.fixture
def alice(gateway):
    return _user(gateway, "alice@company.com")


@pytest.fixture
def carol(gateway):
    return _user(gateway, "carol@company.com")


@pytest.fixture
def bob(gateway):
    return _user(gateway, "bob@company.com")


@pytest.fixture
def dave(gateway):
    return _user(gateway, "dave@company.com")
