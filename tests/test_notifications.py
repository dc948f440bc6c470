import asyncio

import httpx

from medicare_web.schemas.session import Session
from medicare_web.services.notification_service import NotificationPoller

from .conftest import DOCTOR_PROFILE, PATIENT_PROFILE

NOTIFICATIONS = [
    {"_id": "n1", "message": "Appointment accepted", "read": False, "createdAt": "2026-10-01T09:00:00Z"},
    {"_id": "n2", "message": "New message", "read": True, "link": "/patient/chats/c1"},
    {"_id": "n3", "message": "Appointment rescheduled", "read": False},
]


def sign_in(backend, store, profile=DOCTOR_PROFILE, token="t-doc"):
    backend.add_user(token, profile)
    asyncio.run(store.login({"email": profile["email"], "password": "secret123"}))


def loaded_poller(backend, api, store):
    backend.on("GET", "/notifications", json=NOTIFICATIONS)
    sign_in(backend, store)
    poller = NotificationPoller(api, store, interval=3600)
    assert asyncio.run(poller.refresh()) is True
    return poller


class TestRefresh:

    def test_refresh_loads_list(self, backend, api, store):
        poller = loaded_poller(backend, api, store)

        assert [n.id for n in poller.notifications] == ["n1", "n2", "n3"]
        assert poller.unread_count == 2

    def test_refresh_failure_keeps_previous_list(self, backend, api, store):
        """A failed poll leaves the last good state in place."""
        poller = loaded_poller(backend, api, store)
        backend.on("GET", "/notifications", status=500, json={"message": "down"})

        assert asyncio.run(poller.refresh()) is False
        assert len(poller.notifications) == 3

    def test_refresh_discarded_after_account_switch(self, backend, api, store):
        """A list fetched for one account is never shown to the next one."""
        sign_in(backend, store)
        poller = NotificationPoller(api, store, interval=3600)

        def switch_account(request):
            store.session = Session.from_profile(PATIENT_PROFILE)
            return httpx.Response(200, json=NOTIFICATIONS)

        backend.on("GET", "/notifications", switch_account)

        assert asyncio.run(poller.refresh()) is False
        assert poller.notifications == []

    def test_refresh_signed_out_makes_no_request(self, backend, api, store):
        poller = NotificationPoller(api, store, interval=3600)

        assert asyncio.run(poller.refresh()) is False
        assert backend.calls("GET", "/notifications") == []


class TestMutations:

    def test_mark_as_read(self, backend, api, store):
        poller = loaded_poller(backend, api, store)
        backend.on("PATCH", "/notifications/n1/read", json={"success": True})

        assert asyncio.run(poller.mark_as_read("n1")) is True
        assert poller.unread_count == 1
        assert next(n for n in poller.notifications if n.id == "n1").read is True

    def test_mark_as_read_failure_refreshes(self, backend, api, store):
        """On failure local state is replaced by the server's, never guessed."""
        poller = loaded_poller(backend, api, store)
        backend.on("PATCH", "/notifications/n1/read", status=500)
        backend.on("GET", "/notifications", json=NOTIFICATIONS[:1])

        assert asyncio.run(poller.mark_as_read("n1")) is False
        assert [n.id for n in poller.notifications] == ["n1"]
        assert poller.notifications[0].read is False
        assert len(backend.calls("GET", "/notifications")) == 2

    def test_mark_all_as_read_is_idempotent(self, backend, api, store):
        poller = loaded_poller(backend, api, store)
        backend.on("PATCH", "/notifications/read-all", json={"success": True})

        asyncio.run(poller.mark_all_as_read())
        asyncio.run(poller.mark_all_as_read())

        assert poller.unread_count == 0
        assert len(poller.notifications) == 3

    def test_clear_all_read(self, backend, api, store):
        poller = loaded_poller(backend, api, store)
        backend.on("DELETE", "/notifications/clear", json={"success": True})

        assert asyncio.run(poller.clear_all_read()) is True
        assert [n.id for n in poller.notifications] == ["n1", "n3"]

    def test_clear_failure_keeps_read_items(self, backend, api, store):
        poller = loaded_poller(backend, api, store)

        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        backend.on("DELETE", "/notifications/clear", unreachable)

        assert asyncio.run(poller.clear_all_read()) is False
        assert len(poller.notifications) == 3


class TestLifecycle:

    def test_polling_follows_session(self, backend, api, store):
        """Polling starts on sign in and stops, clearing state, on sign out."""
        backend.add_user("t-doc", DOCTOR_PROFILE)
        backend.on("GET", "/notifications", json=NOTIFICATIONS)

        async def scenario():
            poller = NotificationPoller(api, store, interval=3600)
            poller.attach()
            assert poller.running is False

            await store.login({"email": "jane@medicare.test", "password": "secret123"})
            assert poller.running is True

            await poller.refresh()
            assert poller.unread_count == 2

            store.logout()
            assert poller.running is False
            assert poller.notifications == []
            await poller.aclose()

        asyncio.run(scenario())

    def test_new_account_restarts_polling(self, backend, api, store):
        backend.add_user("t-doc", DOCTOR_PROFILE)
        backend.add_user("t-pat", PATIENT_PROFILE)

        async def scenario():
            poller = NotificationPoller(api, store, interval=3600)
            poller.attach()

            await store.login({"email": "jane@medicare.test", "password": "secret123"})
            first = poller._task
            await store.login({"email": "sam@medicare.test", "password": "secret123"})

            assert poller.running is True
            assert poller._task is not first
            try:
                await first
            except asyncio.CancelledError:
                pass
            assert first.cancelled()
            await poller.aclose()

        asyncio.run(scenario())
