"""
End-to-end API flows across the three dashboards
"""

from datetime import datetime
from urllib.parse import parse_qs, urlparse

from haven_admin.models.article import Article, ArticleComment
from haven_admin.models.content import Lesson, LessonStep, Module
from haven_admin.models.journal import JournalEntry
from haven_admin.models.profile import Profile, ProfileStatus, Role
from haven_admin.models.scheduling import Appointment, Notification
from haven_admin.services.identity_service import IdentityProvider

PASSWORD = "correct-horse-battery"


def _bearer(response):
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def _notice(response):
    return parse_qs(urlparse(response.headers["location"]).query).get("error", [None])[0]


class TestTherapistOnboarding:
    """Sign-up, approval, and first entry into the therapist dashboard"""

    def test_signup_approval_and_gate(self, client, db_session, super_admin, auth_headers):
        signup = client.post("/auth/sign-up", json={
            "email": "psych@haven-clinic.org",
            "password": "welcome-aboard",
            "full_name": "Dr. Lee Park",
            "role": "THERAPIST",
            "specialty": "Psychologist",
        })
        assert signup.status_code == 200
        profile = signup.json()["profile"]
        assert profile["status"] == ProfileStatus.PENDING.value
        assert profile["specialty"] == "Psychologist"

        admin_headers = auth_headers(super_admin)
        queue = client.get("/supa/approvals", headers=admin_headers)
        assert [p["id"] for p in queue.json()] == [profile["id"]]

        approve = client.post(
            f"/supa/approvals/{profile['id']}",
            json={"role_edits": {profile["id"]: Role.THERAPIST.value}},
            headers=admin_headers,
        )
        assert approve.status_code == 200
        assert approve.json()["message"] == "User active as THERAPIST"

        stored = db_session.get(Profile, profile["id"])
        db_session.refresh(stored)
        assert stored.status == ProfileStatus.ACTIVE.value
        assert stored.specialty == "Psychologist"

        sign_in = client.post("/auth/sign-in", json={"email": "psych@haven-clinic.org", "password": "welcome-aboard"})
        assert sign_in.status_code == 200
        assert sign_in.json()["redirect_to"] == "/therapist-admin"

        dashboard = client.get("/therapist-admin", headers=_bearer(sign_in), follow_redirects=False)
        assert dashboard.status_code == 200

    def test_admin_signup_drops_specialty(self, client):
        signup = client.post("/auth/sign-up", json={
            "email": "ops@haven-clinic.org",
            "password": "welcome-aboard",
            "full_name": "Ops Person",
            "role": "ADMIN",
            "specialty": "Psychologist",
        })
        assert signup.status_code == 200
        profile = signup.json()["profile"]
        assert profile["role"] == Role.STAFF_ADMIN.value
        assert profile["specialty"] is None

    def test_duplicate_signup(self, client, therapist):
        response = client.post("/auth/sign-up", json={
            "email": therapist.email,
            "password": "whatever-pass",
            "full_name": "Copycat",
        })
        assert response.status_code == 422
        assert response.json() == {"success": False, "error": "User already registered"}


class TestSignInLanding:
    """Where each role lands after signing in"""

    def test_landing_per_role(self, client, therapist, staff_admin, super_admin):
        expected = {
            therapist.email: "/therapist-admin",
            staff_admin.email: "/admin/modules",
            super_admin.email: "/supa",
        }
        for email, landing in expected.items():
            response = client.post("/auth/sign-in", json={"email": email, "password": PASSWORD})
            assert response.status_code == 200
            assert response.json()["redirect_to"] == landing

    def test_bad_password(self, client, therapist):
        response = client.post("/auth/sign-in", json={"email": therapist.email, "password": "nope"})
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid email or password."

    def test_standard_user_is_refused_and_signed_out(self, client, patient):
        response = client.post("/auth/sign-in", json={"email": patient.email, "password": PASSWORD})
        assert response.status_code == 403
        assert response.json()["error"] == "Access Denied"
        assert "haven_session" not in client.cookies

    def test_banned_therapist_is_refused(self, client, make_profile):
        banned = make_profile(role=Role.THERAPIST.value, status=ProfileStatus.BANNED.value)
        response = client.post("/auth/sign-in", json={"email": banned.email, "password": PASSWORD})
        assert response.status_code == 403

    def test_account_without_profile(self, client, db_session):
        IdentityProvider(db_session).sign_up("orphan@haven-clinic.org", PASSWORD)

        response = client.post("/auth/sign-in", json={"email": "orphan@haven-clinic.org", "password": PASSWORD})

        assert response.status_code == 403
        assert response.json()["error"] == "Could not verify staff privileges."

    def test_sign_out(self, client, therapist):
        sign_in = client.post("/auth/sign-in", json={"email": therapist.email, "password": PASSWORD})
        headers = _bearer(sign_in)

        assert client.post("/auth/sign-out", headers=headers).status_code == 200
        response = client.get("/therapist-admin", headers=headers, follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/admin/login"


class TestTherapistContent:
    """A therapist builds and removes a module"""

    def test_module_lesson_steps_and_cascade(self, client, db_session, therapist, auth_headers):
        headers = auth_headers(therapist)

        module = client.post("/therapist-admin/modules", headers=headers, json={
            "title": "Anxiety 101",
            "image_url": "/storage/avatars/modules/t/1.png",
            "category": "Mental Health",
        }).json()
        assert module["author_id"] == therapist.id

        lesson = client.post(f"/therapist-admin/modules/{module['id']}/lessons", headers=headers,
                             json={"title": "Intro"}).json()
        assert lesson["order"] == 1

        steps_url = f"/therapist-admin/modules/{module['id']}/lessons/{lesson['id']}/steps"
        text = client.post(steps_url, headers=headers, json={"type": "text", "content": "Welcome"}).json()
        reflection = client.post(steps_url, headers=headers, json={
            "type": "reflection",
            "prompt_question": "When did you last feel calm?",
        }).json()
        assert (text["order"], text["type"]) == (1, "text")
        assert (reflection["order"], reflection["type"]) == (2, "reflection")

        detail = client.get(f"/therapist-admin/modules/{module['id']}/lessons/{lesson['id']}", headers=headers)
        assert [s["order"] for s in detail.json()["steps"]] == [1, 2]

        deleted = client.delete(f"/therapist-admin/modules/{module['id']}", headers=headers)
        assert deleted.status_code == 200

        assert db_session.query(Module).count() == 0
        assert db_session.query(Lesson).filter(Lesson.module_id == module["id"]).count() == 0
        assert db_session.query(LessonStep).count() == 0

    def test_cannot_touch_another_therapists_module(self, client, db_session, therapist, auth_headers):
        foreign = Module(title="Not mine", image_url="/x.png", author_id="someone-else")
        db_session.add(foreign)
        db_session.commit()

        response = client.delete(f"/therapist-admin/modules/{foreign.id}", headers=auth_headers(therapist))

        assert response.status_code == 404
        assert db_session.query(Module).count() == 1

    def test_cannot_reach_another_therapists_step_through_own_lesson(
        self, client, db_session, therapist, make_profile, auth_headers
    ):
        colleague = make_profile(role=Role.THERAPIST.value, full_name="Dr. Lena Park", specialty="Counselor")
        own_module = Module(title="Mine", image_url="/a.png", author_id=therapist.id)
        their_module = Module(title="Theirs", image_url="/b.png", author_id=colleague.id)
        db_session.add_all([own_module, their_module])
        db_session.flush()
        own_lesson = Lesson(module_id=own_module.id, title="Intro", order=1)
        their_lesson = Lesson(module_id=their_module.id, title="Intro", order=1)
        db_session.add_all([own_lesson, their_lesson])
        db_session.flush()
        their_step = LessonStep(lesson_id=their_lesson.id, order=1, type="text", content="Breathe")
        db_session.add(their_step)
        db_session.commit()
        headers = auth_headers(therapist)
        url = f"/therapist-admin/modules/{own_module.id}/lessons/{own_lesson.id}/steps/{their_step.id}"

        edited = client.put(url, headers=headers, json={"type": "text", "order": 1, "content": "changed"})
        deleted = client.delete(url, headers=headers)

        assert edited.status_code == 404
        assert deleted.status_code == 404
        db_session.refresh(their_step)
        assert their_step.content == "Breathe"
        assert db_session.query(LessonStep).filter(LessonStep.lesson_id == their_lesson.id).count() == 1

    def test_missing_module_detail_redirects_to_list(self, client, therapist, auth_headers):
        response = client.get(
            "/therapist-admin/modules/missing/lessons", headers=auth_headers(therapist), follow_redirects=False
        )
        assert response.status_code == 302
        assert urlparse(response.headers["location"]).path == "/therapist-admin/modules"
        assert _notice(response) == "Module not found"

    def test_article_byline_is_the_therapist(self, client, therapist, auth_headers):
        response = client.post("/therapist-admin/articles", headers=auth_headers(therapist), json={
            "title": "Sleep and mood",
            "author": "Ignored byline",
            "content": "<p>...</p>",
            "read_time": "not a number",
        })
        assert response.status_code == 200
        article = response.json()
        assert article["author"] == therapist.id
        assert article["read_time"] == 5

    def test_profile_edit_and_upload(self, client, therapist, auth_headers):
        headers = auth_headers(therapist)

        profile = client.put("/therapist-admin/profile", headers=headers, json={"about": "CBT focused."})
        assert profile.status_code == 200
        assert profile.json()["about"] == "CBT focused."
        assert profile.json()["specialty"] == "Psychologist"

        upload = client.post(
            "/therapist-admin/uploads/avatars",
            headers=headers,
            files={"file": ("me.png", b"\x89PNG...", "image/png")},
        )
        assert upload.status_code == 200
        body = upload.json()
        assert body["path"].startswith(f"avatars/{therapist.id}/")
        assert body["path"].endswith(".png")
        assert body["url"] == f"/storage/avatars/{body['path']}"


class TestTherapistBookings:
    """Appointment actions over HTTP"""

    def test_confirm_and_conflicting_reschedule(self, client, db_session, therapist, patient, auth_headers):
        headers = auth_headers(therapist)
        taken = Appointment(user_id=patient.id, therapist_id=therapist.id,
                            scheduled_at=datetime.fromisoformat("2026-12-01T10:00:00"), status="confirmed")
        request = Appointment(user_id=patient.id, therapist_id=therapist.id,
                              scheduled_at=datetime.fromisoformat("2026-12-02T10:00:00"))
        db_session.add_all([taken, request])
        db_session.commit()

        confirm = client.post(f"/therapist-admin/appointments/{request.id}/confirm", headers=headers, json={})
        assert confirm.json() == {"success": True, "message": "Confirmed!"}

        clash = client.post(
            f"/therapist-admin/appointments/{request.id}/reschedule",
            headers=headers,
            json={"scheduled_at": "2026-12-01T10:00:00"},
        )
        assert clash.status_code == 409
        assert clash.json() == {"success": False, "error": "Time slot already taken."}

        db_session.expire_all()
        assert db_session.get(Appointment, request.id).scheduled_at == datetime.fromisoformat("2026-12-02T10:00:00")
        assert db_session.query(Notification).count() == 1

    def test_availability_toggle(self, client, therapist, auth_headers):
        headers = auth_headers(therapist)

        closed = client.put("/therapist-admin/availability/Sunday", headers=headers, json={})
        assert closed.json()["available"] is False

        explicit = client.put("/therapist-admin/availability/sunday", headers=headers, json={"available": True})
        assert explicit.json()["availability"] == {"sunday": True}

    def test_calendar(self, client, therapist, auth_headers):
        response = client.get("/therapist-admin/calendar", params={"year": 2026, "month": 2},
                              headers=auth_headers(therapist))
        assert response.status_code == 200
        weeks = response.json()["weeks"]
        assert weeks[0][0]["day"] == "2026-02-01"
        assert all(len(week) == 7 for week in weeks)


class TestStaffAdmin:
    """Global content management"""

    def test_lesson_under_wrong_module_is_not_found(self, client, db_session, staff_admin, auth_headers):
        first = Module(title="Anxiety 101", image_url="/a.png")
        second = Module(title="Sleep", image_url="/b.png")
        db_session.add_all([first, second])
        db_session.flush()
        lesson = Lesson(module_id=first.id, title="Intro", order=1)
        db_session.add(lesson)
        db_session.commit()
        headers = auth_headers(staff_admin)
        url = f"/admin/modules/{second.id}/lessons/{lesson.id}"

        assert client.put(url, headers=headers, json={"title": "Moved", "order": 2}).status_code == 404
        assert client.delete(url, headers=headers).status_code == 404
        assert client.post(f"{url}/steps", headers=headers, json={"type": "text", "content": "Hi"}).status_code == 404

        db_session.refresh(lesson)
        assert lesson.title == "Intro"
        assert db_session.query(LessonStep).count() == 0

    def test_article_comment_under_wrong_article_is_not_found(self, client, db_session, staff_admin, auth_headers):
        first = Article(title="Sleep and mood")
        second = Article(title="Grounding")
        db_session.add_all([first, second])
        db_session.flush()
        comment = ArticleComment(article_id=first.id, content="Helpful, thanks")
        db_session.add(comment)
        db_session.commit()
        headers = auth_headers(staff_admin)

        response = client.delete(f"/admin/articles/{second.id}/comments/{comment.id}", headers=headers)

        assert response.status_code == 404
        assert db_session.query(ArticleComment).count() == 1
        assert client.delete(f"/admin/articles/{first.id}/comments/{comment.id}", headers=headers).status_code == 200

    def test_missing_module_redirects_to_list(self, client, staff_admin, auth_headers):
        response = client.get("/admin/modules/missing", headers=auth_headers(staff_admin), follow_redirects=False)
        assert response.status_code == 302
        assert urlparse(response.headers["location"]).path == "/admin/modules"
        assert _notice(response) == "Module not found"

    def test_forum_lifecycle(self, client, staff_admin, auth_headers):
        headers = auth_headers(staff_admin)
        forum = client.post("/admin/community", headers=headers, json={"title": "Grief", "icon": "🕊️"}).json()

        detail = client.get(f"/admin/community/{forum['id']}", headers=headers)
        assert detail.json()["threads"] == []

        assert client.delete(f"/admin/community/{forum['id']}", headers=headers).status_code == 200
        assert client.get("/admin/community", headers=headers).json() == []

    def test_journal_moderation(self, client, db_session, staff_admin, auth_headers):
        entry = JournalEntry(author_id="gone-user", title="Day 1", content="Felt okay.")
        db_session.add(entry)
        db_session.commit()
        headers = auth_headers(staff_admin)

        entries = client.get("/admin/journals", headers=headers).json()
        assert entries[0]["author_name"] == "Anonymous"

        assert client.delete(f"/admin/journals/{entry.id}", headers=headers).status_code == 200
        assert client.get("/admin/journals", headers=headers).json() == []


class TestSuperAdmin:
    """User management over HTTP"""

    def test_suspend_restore_and_role_change(self, client, db_session, super_admin, therapist, auth_headers):
        headers = auth_headers(super_admin)

        assert client.post(f"/supa/view/{therapist.id}/suspend", headers=headers).json()["message"] == "User Suspended"
        db_session.refresh(therapist)
        assert therapist.status == ProfileStatus.BANNED.value

        assert client.post(f"/supa/view/{therapist.id}/restore", headers=headers).json()["message"] == "Access Restored"

        changed = client.put(f"/supa/view/{therapist.id}/role", headers=headers, json={"role": Role.STAFF_ADMIN.value})
        assert changed.json()["role"] == Role.STAFF_ADMIN.value
        assert changed.json()["specialty"] is None

    def test_delete_user(self, client, db_session, super_admin, patient, auth_headers):
        patient_id = patient.id
        response = client.delete(f"/supa/view/{patient_id}", headers=auth_headers(super_admin))
        assert response.status_code == 200
        assert db_session.get(Profile, patient_id) is None

