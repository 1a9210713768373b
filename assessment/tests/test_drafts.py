from datetime import datetime, timedelta, timezone

from django.urls import reverse
from freezegun import freeze_time

from assessment.models import AssessmentDraft
from assessment.services.drafts import delete_draft, sync_draft

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


@freeze_time(NOW)
def test_sync_draft_creates_then_updates(user):
    result = sync_draft(user, "session-1", {"industry": "retail"}, 1, NOW - timedelta(minutes=1))
    assert result.conflict is False
    assert result.draft.answers == {"industry": "retail"}

    result = sync_draft(user, "session-1", {"industry": "healthcare"}, 2, NOW + timedelta(minutes=1))
    assert result.conflict is False
    assert AssessmentDraft.objects.get().current_step == 2


@freeze_time(NOW)
def test_sync_draft_conflict_returns_server_copy(user, assessment_draft_factory):
    server = assessment_draft_factory(user=user, session_id="session-1", current_step=4, updated_at=NOW)

    result = sync_draft(user, "session-1", {"industry": "retail"}, 1, NOW - timedelta(minutes=5))

    assert result.conflict is True
    assert result.draft == server
    server.refresh_from_db()
    assert server.current_step == 4


def test_drafts_are_scoped_to_user(user_factory, assessment_draft_factory):
    owner = user_factory(username="owner")
    other = user_factory(username="other")
    assessment_draft_factory(user=owner, session_id="session-1")

    assert delete_draft(other, "session-1") == 0
    assert delete_draft(owner, "session-1") == 1
    assert not AssessmentDraft.objects.exists()


def test_draft_endpoints_require_login(client):
    assert client.get(reverse("assessment:drafts-sync"), {"session_id": "s"}).status_code == 401
    assert client.post(reverse("assessment:drafts-sync"), {}, content_type="application/json").status_code == 401
    assert client.delete(reverse("assessment:drafts-delete") + "?session_id=s").status_code == 401


def test_draft_get(client, user, assessment_draft_factory):
    client.force_login(user)
    assessment_draft_factory(user=user, session_id="session-1", answers={"industry": "retail"})

    response = client.get(reverse("assessment:drafts-sync"), {"session_id": "session-1"})
    assert response.json()["draft"]["answers"] == {"industry": "retail"}

    response = client.get(reverse("assessment:drafts-sync"), {"session_id": "missing"})
    assert response.json()["draft"] is None

    assert client.get(reverse("assessment:drafts-sync")).status_code == 400


def test_draft_sync_view(client, user):
    client.force_login(user)

    response = client.post(
        reverse("assessment:drafts-sync"),
        {"session_id": "session-1", "answers": {"industry": "retail"}, "current_step": 2},
        content_type="application/json",
    )

    assert response.status_code == 200
    body = response.json()
    assert body["conflict"] is False
    assert body["draft"]["current_step"] == 2


@freeze_time(NOW)
def test_draft_sync_view_conflict(client, user, assessment_draft_factory):
    client.force_login(user)
    assessment_draft_factory(user=user, session_id="session-1", answers={"industry": "healthcare"}, updated_at=NOW)

    response = client.post(
        reverse("assessment:drafts-sync"),
        {
            "session_id": "session-1",
            "answers": {"industry": "retail"},
            "current_step": 1,
            "timestamp": (NOW - timedelta(hours=1)).isoformat(),
        },
        content_type="application/json",
    )

    body = response.json()
    assert body["conflict"] is True
    assert body["server_draft"]["answers"] == {"industry": "healthcare"}


def test_draft_sync_view_missing_fields(client, user):
    client.force_login(user)
    response = client.post(reverse("assessment:drafts-sync"), {"session_id": "s"}, content_type="application/json")
    assert response.status_code == 400


def test_draft_delete_view(client, user, assessment_draft_factory):
    client.force_login(user)
    assessment_draft_factory(user=user, session_id="session-1")

    response = client.delete(reverse("assessment:drafts-delete") + "?session_id=session-1")

    assert response.json() == {"success": True, "deleted": 1}
