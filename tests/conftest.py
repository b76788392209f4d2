from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from kungfu import Ok, Error

from entitle import checkout as C
from entitle import directory as D
from entitle import gateway as GW
from entitle import promo as PR
from entitle._types import BearerCredential
from entitle.ops import Runner

SECRET = "gateway_secret_for_tests"
TOKEN = "tok-alice"
USER_ID = "user-alice"
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class Clock:
    """Settable clock for CheckoutPolicy."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class CountingAuthenticator(D.StaticAuthenticator):
    def __init__(self, tokens: dict[str, D.Identity] | None = None) -> None:
        super().__init__(tokens)
        self.calls = 0

    async def authenticate(self, credential: BearerCredential):
        self.calls += 1
        return await D.StaticAuthenticator.authenticate(self, credential)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def credential() -> BearerCredential:
    return BearerCredential(TOKEN)


@pytest.fixture
def authenticator() -> CountingAuthenticator:
    return CountingAuthenticator({TOKEN: D.Identity(USER_ID, "alice@example.com")})


@pytest.fixture
def directory() -> D.MemoryDirectory:
    d = D.MemoryDirectory()
    d.add(USER_ID, "alice@example.com")
    return d


@pytest.fixture
def gateway() -> GW.MemoryGateway:
    return GW.MemoryGateway()


@pytest.fixture
def authority() -> PR.MemoryPromoAuthority:
    return PR.MemoryPromoAuthority(
        PR.PromoRule("SAVE20", 20),
        PR.PromoRule("HALF", 50, max_uses=1),
        PR.PromoRule("RETIRED", 30, is_active=False),
    )


@pytest.fixture
def promos(authority: PR.MemoryPromoAuthority) -> PR.PromoValidator:
    return PR.PromoValidator(authority)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def policy(clock: Clock) -> C.CheckoutPolicy:
    return C.CheckoutPolicy(signing_secret=SECRET, clock=clock)


@pytest.fixture
def runner(
    authenticator: CountingAuthenticator,
    directory: D.MemoryDirectory,
    gateway: GW.MemoryGateway,
    promos: PR.PromoValidator,
    policy: C.CheckoutPolicy,
) -> Runner:
    return C.build_runner(authenticator, directory, gateway, promos, policy)


def ok(result):
    """Ok value or test failure."""
    match result:
        case Ok(value):
            return value
        case Error(e):
            pytest.fail(f"expected Ok, got Error({e!r})")


def err(result):
    """Error value or test failure."""
    match result:
        case Error(e):
            return e
        case Ok(value):
            pytest.fail(f"expected Error, got Ok({value!r})")
