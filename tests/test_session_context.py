"""Tests for the session context."""

import asyncio
import threading

import pytest

from things_together.domain.errors import StoreError
from things_together.domain.session import SessionSnapshot, SessionState
from things_together.services.profiles import ProfileService
from things_together.services.session import SessionContext
from tests.conftest import (
    ALEX,
    SAM,
    FakeIdentityProvider,
    InMemoryProfileRepository,
    alex_profile,
)


def _session(
    provider: FakeIdentityProvider, profiles: InMemoryProfileRepository
) -> SessionContext:
    return SessionContext(provider, ProfileService(profiles))


def test_session_is_loading_before_first_notification() -> None:
    session = _session(FakeIdentityProvider(), InMemoryProfileRepository())

    snapshot = session.get_current()

    assert snapshot.loading is True
    assert snapshot.state is SessionState.LOADING
    assert snapshot.partner_display_name == "Partner"


def test_session_settles_unauthenticated() -> None:
    async def scenario() -> SessionSnapshot:
        session = _session(FakeIdentityProvider(), InMemoryProfileRepository())
        session.initialize()
        snapshot = await session.wait_until_settled()
        session.teardown()
        return snapshot

    snapshot = asyncio.run(scenario())

    assert snapshot.state is SessionState.UNAUTHENTICATED
    assert snapshot.user is None
    assert snapshot.profile is None


def test_session_resolves_profile_and_partner_name() -> None:
    async def scenario() -> SessionSnapshot:
        provider = FakeIdentityProvider(current=ALEX)
        profiles = InMemoryProfileRepository(profiles={ALEX.uid: alex_profile()})
        session = _session(provider, profiles)
        session.initialize()
        snapshot = await session.wait_until_settled()
        session.teardown()
        return snapshot

    snapshot = asyncio.run(scenario())

    assert snapshot.state is SessionState.AUTHENTICATED_WITH_PROFILE
    assert snapshot.user == ALEX
    assert snapshot.partner_display_name == "Sam"


def test_session_without_profile_falls_back_to_default_partner() -> None:
    async def scenario() -> SessionSnapshot:
        provider = FakeIdentityProvider(current=SAM)
        session = SessionContext(
            provider,
            ProfileService(InMemoryProfileRepository()),
            default_partner_name="Darling",
        )
        session.initialize()
        snapshot = await session.wait_until_settled()
        session.teardown()
        return snapshot

    snapshot = asyncio.run(scenario())

    assert snapshot.state is SessionState.AUTHENTICATED_NO_PROFILE
    assert snapshot.partner_display_name == "Darling"


@pytest.mark.parametrize(
    "failure",
    [
        StoreError("permission denied"),
        ValueError("Invalid isoformat string"),
        KeyError("uid"),
    ],
)
def test_profile_lookup_failure_degrades_to_no_profile(failure: Exception) -> None:
    async def scenario() -> SessionSnapshot:
        provider = FakeIdentityProvider(current=ALEX)
        profiles = InMemoryProfileRepository(
            profiles={ALEX.uid: alex_profile()}, fail_with=failure
        )
        session = _session(provider, profiles)
        session.initialize()
        snapshot = await session.wait_until_settled()
        session.teardown()
        return snapshot

    snapshot = asyncio.run(scenario())

    assert snapshot.state is SessionState.AUTHENTICATED_NO_PROFILE
    assert snapshot.partner_display_name == "Partner"


def test_stale_profile_lookup_is_discarded() -> None:
    async def scenario() -> tuple[SessionSnapshot, SessionSnapshot]:
        alex_gate = threading.Event()
        provider = FakeIdentityProvider()
        profiles = InMemoryProfileRepository(
            profiles={ALEX.uid: alex_profile()}, gates={ALEX.uid: alex_gate}
        )
        session = _session(provider, profiles)
        session.initialize()
        await session.wait_until_settled()

        provider.emit(ALEX)
        provider.emit(SAM)
        await asyncio.sleep(0)
        settled = await session.wait_until_settled()

        alex_gate.set()
        await asyncio.sleep(0.1)
        later = session.get_current()
        session.teardown()
        return settled, later

    settled, later = asyncio.run(scenario())

    assert settled.user == SAM
    assert settled.state is SessionState.AUTHENTICATED_NO_PROFILE
    assert later.user == SAM
    assert later.profile is None
    assert later.loading is False


def test_new_notification_reenters_loading() -> None:
    async def scenario() -> tuple[SessionSnapshot, SessionSnapshot]:
        provider = FakeIdentityProvider()
        profiles = InMemoryProfileRepository(profiles={ALEX.uid: alex_profile()})
        session = _session(provider, profiles)
        session.initialize()
        await session.wait_until_settled()

        provider.emit(ALEX)
        await asyncio.sleep(0)
        pending = session.get_current()
        settled = await session.wait_until_settled()
        session.teardown()
        return pending, settled

    pending, settled = asyncio.run(scenario())

    assert pending.loading is True
    assert pending.user == ALEX
    assert pending.profile is None
    assert settled.state is SessionState.AUTHENTICATED_WITH_PROFILE


def test_listeners_receive_settled_snapshots_and_failures_are_isolated() -> None:
    received: list[SessionState] = []

    async def broken_listener(_snapshot: SessionSnapshot) -> None:
        raise RuntimeError("listener exploded")

    async def recording_listener(snapshot: SessionSnapshot) -> None:
        received.append(snapshot.state)

    async def scenario() -> None:
        provider = FakeIdentityProvider()
        profiles = InMemoryProfileRepository(profiles={ALEX.uid: alex_profile()})
        session = _session(provider, profiles)
        session.subscribe(broken_listener)
        unsubscribe = session.subscribe(recording_listener)
        session.initialize()
        await session.wait_until_settled()

        provider.emit(ALEX)
        await asyncio.sleep(0)
        await session.wait_until_settled()

        unsubscribe()
        provider.emit(None)
        await asyncio.sleep(0)
        await session.wait_until_settled()
        session.teardown()

    asyncio.run(scenario())

    assert received == [
        SessionState.UNAUTHENTICATED,
        SessionState.AUTHENTICATED_WITH_PROFILE,
    ]


def test_teardown_unsubscribes_exactly_once() -> None:
    provider = FakeIdentityProvider()

    async def scenario() -> None:
        session = _session(provider, InMemoryProfileRepository())
        session.initialize()
        await session.wait_until_settled()
        session.teardown()
        session.teardown()

    asyncio.run(scenario())

    assert provider.unsubscribed == 1
    assert provider.callbacks == []


def test_initialize_twice_is_rejected() -> None:
    async def scenario() -> None:
        session = _session(FakeIdentityProvider(), InMemoryProfileRepository())
        session.initialize()
        try:
            with pytest.raises(RuntimeError):
                session.initialize()
        finally:
            session.teardown()

    asyncio.run(scenario())


def test_notification_from_foreign_thread_is_marshalled() -> None:
    async def scenario() -> SessionSnapshot:
        provider = FakeIdentityProvider()
        profiles = InMemoryProfileRepository(profiles={ALEX.uid: alex_profile()})
        session = _session(provider, profiles)
        session.initialize()
        await session.wait_until_settled()

        await asyncio.to_thread(provider.emit, ALEX)
        await asyncio.sleep(0)
        snapshot = await session.wait_until_settled()
        session.teardown()
        return snapshot

    snapshot = asyncio.run(scenario())

    assert snapshot.user == ALEX
    assert snapshot.profile == alex_profile()
