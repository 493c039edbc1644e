"""
Tests for the authorization gate: the pure decision table and the HTTP
redirects the area dependencies produce.
"""

from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest

from haven_admin.core.access_control import (
    LOGIN_PATH,
    THERAPIST_DENIED_NOTICE,
    Area,
    AuthorizationGate,
    landing_path_for,
)
from haven_admin.core.error_handling import AccessDenied
from haven_admin.models.common import utcnow
from haven_admin.models.profile import AuthSession, Profile, ProfileStatus, Role
from haven_admin.models.scheduling import Appointment


def _session(user_id="user-1"):
    return AuthSession(id="session-1", user_id=user_id, expires_at=utcnow() + timedelta(hours=1), revoked=False)


def _profile(role=Role.STANDARD_USER.value, **kwargs):
    kwargs.setdefault("status", ProfileStatus.ACTIVE.value)
    kwargs.setdefault("is_super_admin", False)
    return Profile(id="user-1", role=role, **kwargs)


def _notice(location):
    return parse_qs(urlparse(location).query).get("error", [None])[0]


class TestAreaForPath:
    """Path to area mapping"""

    @pytest.mark.parametrize("path,area", [
        ("/admin", Area.STAFF_ADMIN),
        ("/admin/modules", Area.STAFF_ADMIN),
        ("/admin/community/abc", Area.STAFF_ADMIN),
        ("/therapist-admin", Area.THERAPIST),
        ("/therapist-admin/calendar", Area.THERAPIST),
        ("/supa", Area.SUPER_ADMIN),
        ("/supa/view/123", Area.SUPER_ADMIN),
    ])
    def test_gated_paths(self, path, area):
        assert AuthorizationGate.area_for_path(path) == area

    @pytest.mark.parametrize("path", ["/admin/login", "/admin/signup", "/", "/health", "/administrator", "/auth/sign-in"])
    def test_ungated_paths(self, path):
        assert AuthorizationGate.area_for_path(path) is None


class TestGateDecisions:
    """The decision table for every area"""

    def test_ungated_path_always_allowed(self):
        decision = AuthorizationGate.evaluate(None, None, None)
        assert decision.allowed

    @pytest.mark.parametrize("area", list(Area))
    def test_no_session_redirects_to_login(self, area):
        decision = AuthorizationGate.evaluate(area, None, None)
        assert not decision.allowed
        assert decision.redirect_to == LOGIN_PATH
        assert decision.notice is None
        assert not decision.sign_out

    def test_staff_area_only_needs_a_session(self):
        decision = AuthorizationGate.evaluate(Area.STAFF_ADMIN, _session(), _profile())
        assert decision.allowed

    def test_staff_area_allows_session_without_profile(self):
        decision = AuthorizationGate.evaluate(Area.STAFF_ADMIN, _session(), None)
        assert decision.allowed

    def test_therapist_area_allows_therapist(self):
        decision = AuthorizationGate.evaluate(Area.THERAPIST, _session(), _profile(Role.THERAPIST.value))
        assert decision.allowed

    @pytest.mark.parametrize("role", [Role.STANDARD_USER.value, Role.STAFF_ADMIN.value, Role.SUPER_ADMIN.value])
    def test_therapist_area_denies_other_roles_and_signs_out(self, role):
        decision = AuthorizationGate.evaluate(Area.THERAPIST, _session(), _profile(role))
        assert not decision.allowed
        assert decision.redirect_to == LOGIN_PATH
        assert decision.notice == THERAPIST_DENIED_NOTICE
        assert decision.sign_out

    def test_therapist_area_ignores_specialty_without_role(self):
        legacy = _profile(Role.STANDARD_USER.value, specialty="Counselor")
        assert legacy.is_therapist
        decision = AuthorizationGate.evaluate(Area.THERAPIST, _session(), legacy)
        assert not decision.allowed

    def test_therapist_area_denies_missing_profile(self):
        decision = AuthorizationGate.evaluate(Area.THERAPIST, _session(), None)
        assert not decision.allowed
        assert decision.sign_out

    def test_super_area_allows_super_admin_role(self):
        decision = AuthorizationGate.evaluate(Area.SUPER_ADMIN, _session(), _profile(Role.SUPER_ADMIN.value))
        assert decision.allowed

    def test_super_area_allows_super_admin_flag(self):
        profile = _profile(Role.STANDARD_USER.value, is_super_admin=True)
        decision = AuthorizationGate.evaluate(Area.SUPER_ADMIN, _session(), profile)
        assert decision.allowed

    @pytest.mark.parametrize("role", [Role.STANDARD_USER.value, Role.THERAPIST.value, Role.STAFF_ADMIN.value])
    def test_super_area_denies_everyone_else(self, role):
        decision = AuthorizationGate.evaluate(Area.SUPER_ADMIN, _session(), _profile(role))
        assert not decision.allowed
        assert decision.redirect_to == "/"
        assert decision.notice == "Unauthorized"
        assert not decision.sign_out


class TestLandingPath:
    """Where a fresh sign-in is sent"""

    def test_platform_admin_lands_on_supa(self):
        assert landing_path_for(_profile(Role.SUPER_ADMIN.value)) == "/supa"
        assert landing_path_for(_profile(Role.STANDARD_USER.value, is_super_admin=True)) == "/supa"

    def test_therapist_lands_on_therapist_dashboard(self):
        assert landing_path_for(_profile(Role.THERAPIST.value)) == "/therapist-admin"

    def test_specialty_counts_as_therapist(self):
        assert landing_path_for(_profile(Role.STANDARD_USER.value, specialty="Counselor")) == "/therapist-admin"

    def test_staff_admin_lands_on_modules(self):
        assert landing_path_for(_profile(Role.STAFF_ADMIN.value)) == "/admin/modules"

    def test_standard_user_is_refused(self):
        with pytest.raises(AccessDenied):
            landing_path_for(_profile(Role.STANDARD_USER.value))

    def test_missing_profile_is_refused(self):
        with pytest.raises(AccessDenied) as exc_info:
            landing_path_for(None)
        assert exc_info.value.message == "Could not verify staff privileges."

    def test_banned_profile_is_refused(self):
        with pytest.raises(AccessDenied):
            landing_path_for(_profile(Role.THERAPIST.value, status=ProfileStatus.BANNED.value))


class TestGateOverHttp:
    """Redirects produced by the area dependencies"""

    def test_login_and_signup_pages_are_ungated(self, client):
        assert client.get("/admin/login", follow_redirects=False).status_code == 200
        response = client.get("/admin/signup", params={"error": "Nope"}, follow_redirects=False)
        assert response.status_code == 200
        assert response.json() == {"page": "signup", "error": "Nope"}

    @pytest.mark.parametrize("path", ["/admin/modules", "/therapist-admin", "/supa"])
    def test_anonymous_requests_go_to_login(self, client, path):
        response = client.get(path, follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == LOGIN_PATH

    def test_garbage_token_counts_as_no_session(self, client):
        response = client.get(
            "/admin/modules",
            headers={"Authorization": "Bearer not-a-token"},
            follow_redirects=False,
        )
        assert response.status_code == 302
        assert response.headers["location"] == LOGIN_PATH

    def test_any_session_reaches_staff_area(self, client, patient, auth_headers):
        response = client.get("/admin/modules", headers=auth_headers(patient), follow_redirects=False)
        assert response.status_code == 200
        assert response.json() == []

    def test_non_therapist_is_signed_out_of_therapist_area(self, client, staff_admin, auth_headers):
        headers = auth_headers(staff_admin)
        response = client.get("/therapist-admin", headers=headers, follow_redirects=False)

        assert response.status_code == 302
        location = response.headers["location"]
        assert location.startswith(LOGIN_PATH + "?")
        assert _notice(location) == THERAPIST_DENIED_NOTICE
        assert "haven_session" in response.headers.get("set-cookie", "")

        # The session was revoked, so even the staff area now refuses it
        again = client.get("/admin/modules", headers=headers, follow_redirects=False)
        assert again.status_code == 302
        assert again.headers["location"] == LOGIN_PATH

    def test_therapist_reaches_therapist_area(self, client, therapist, auth_headers):
        response = client.get("/therapist-admin", headers=auth_headers(therapist), follow_redirects=False)
        assert response.status_code == 200
        assert response.json()["pending"] == []

    def test_non_admin_is_sent_home_from_supa(self, client, therapist, auth_headers):
        headers = auth_headers(therapist)
        response = client.get("/supa", headers=headers, follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/?error=Unauthorized"

        # No sign-out for a super-admin denial
        still_in = client.get("/therapist-admin", headers=headers, follow_redirects=False)
        assert still_in.status_code == 200

    def test_super_admin_flag_reaches_supa(self, client, make_profile, auth_headers):
        owner = make_profile(role=Role.STANDARD_USER.value, is_super_admin=True)
        response = client.get("/supa", headers=auth_headers(owner), follow_redirects=False)
        assert response.status_code == 200
        assert set(response.json()) == {"users", "therapists", "pending", "appointments"}

    def test_session_cookie_is_accepted(self, client, therapist):
        sign_in = client.post("/auth/sign-in", json={"email": therapist.email, "password": "correct-horse-battery"})
        assert sign_in.status_code == 200

        response = client.get("/therapist-admin", follow_redirects=False)
        assert response.status_code == 200

    def test_pending_therapist_is_not_blocked_by_gate(self, client, make_profile, auth_headers):
        pending = make_profile(role=Role.THERAPIST.value, status=ProfileStatus.PENDING.value)
        response = client.get("/therapist-admin", headers=auth_headers(pending), follow_redirects=False)
        assert response.status_code == 200

    def test_detail_read_of_deleted_user_redirects_to_supa(self, client, super_admin, auth_headers, db_session):
        response = client.get("/supa/view/no-such-id", headers=auth_headers(super_admin), follow_redirects=False)
        assert response.status_code == 302
        assert _notice(response.headers["location"]) == "User not found or access denied"
        assert urlparse(response.headers["location"]).path == "/supa"

    def test_placeholder_names_for_dangling_references(self, client, super_admin, therapist, auth_headers, db_session):
        db_session.add(Appointment(user_id="gone-patient", therapist_id=therapist.id, scheduled_at=utcnow()))
        db_session.commit()

        response = client.get(f"/supa/view/{therapist.id}", headers=auth_headers(super_admin), follow_redirects=False)
        assert response.status_code == 200
        appointment = response.json()["appointments"][0]
        assert appointment["patient_name"] == "Deleted User"
        assert appointment["therapist_name"] == "Dr. Amara Osei"
