from medicare_web.core.security import UserRole, dashboard_path, token_is_expired
from medicare_web.schemas.session import Session
from medicare_web.services.route_guard import GuardState, evaluate, landing_decision

from .conftest import ADMIN_PROFILE, DOCTOR_PROFILE, PATIENT_PROFILE


def signed_in(store, profile):
    store.loading = False
    store.session = Session.from_profile(profile)
    return store


class TestRouteGuard:

    def test_loading_blocks_without_redirect(self, store):
        """Nothing renders and nobody is redirected while bootstrap runs."""
        decision = evaluate(store, [UserRole.DOCTOR])

        assert decision.state == GuardState.LOADING
        assert decision.allowed is False
        assert decision.redirect_to is None

    def test_unauthenticated_goes_to_login(self, store):
        store.loading = False

        decision = evaluate(store, [UserRole.ADMIN])

        assert decision.state == GuardState.UNAUTHENTICATED
        assert decision.redirect_to == "/login"

    def test_wrong_role_goes_to_own_dashboard(self, store):
        """A patient on a doctor page lands on the patient dashboard."""
        signed_in(store, PATIENT_PROFILE)

        decision = evaluate(store, [UserRole.DOCTOR])

        assert decision.allowed is False
        assert decision.redirect_to == "/patient"
        assert decision.force_logout is False

    def test_matching_role_renders(self, store):
        signed_in(store, ADMIN_PROFILE)

        assert evaluate(store, [UserRole.ADMIN]).allowed is True

    def test_any_role_when_unrestricted(self, store):
        signed_in(store, DOCTOR_PROFILE)

        assert evaluate(store).allowed is True

    def test_unknown_role_forces_logout(self, store):
        """An unrecognised role is never shown a page."""
        signed_in(store, {**DOCTOR_PROFILE, "role": "nurse"})

        decision = evaluate(store, [UserRole.DOCTOR])

        assert decision.allowed is False
        assert decision.redirect_to == "/login"
        assert decision.force_logout is True

    def test_landing_uses_role_dashboard(self, store):
        signed_in(store, DOCTOR_PROFILE)

        decision = landing_decision(store)

        assert decision.allowed is False
        assert decision.redirect_to == "/doctor"

    def test_landing_without_session(self, store):
        store.loading = False

        assert landing_decision(store).redirect_to == "/login"


class TestSecurityHelpers:

    def test_dashboard_paths(self):
        assert dashboard_path("admin") == "/admin"
        assert dashboard_path("doctor") == "/doctor"
        assert dashboard_path("patient") == "/patient"
        assert dashboard_path("nurse") is None
        assert dashboard_path(None) is None

    def test_opaque_token_never_expires(self):
        """Tokens that are not JWTs carry no expiry."""
        assert token_is_expired("abc") is False
