"""
Tests: committee voting sub-protocol.

One vote per member (re-vote replaces), votes never move the status,
the tally rule (strict majority, tie fails), close-voting transitions and
the 409 after close.
"""

import pytest

from conftest import grant, make_user

from nomination_portal.core.exceptions import (
    Forbidden,
    IllegalTransition,
    ValidationError,
    VotingAlreadyClosed,
)
from nomination_portal.models import db as _db
from nomination_portal.models.application import Application, Status
from nomination_portal.models.audit import ApprovalLog
from nomination_portal.models.auth import Role
from nomination_portal.models.voting import CommitteeVote, VotingSummary
from nomination_portal.services import voting_service
from nomination_portal.services.role_resolver import resolve_principal
from nomination_portal.services.voting_service import compute_tally


def _vote(client, auth_headers, app_id, user_id, is_agree, comment=None):
    payload = {"is_agree": is_agree}
    if comment is not None:
        payload["comment"] = comment
    return client.post(
        f"/api/v1/applications/{app_id}/vote", json=payload, headers=auth_headers(user_id),
    )


def _close(client, auth_headers, app_id, user_id):
    return client.post(f"/api/v1/applications/{app_id}/close-voting", headers=auth_headers(user_id))


# ── Tally rule ───────────────────────────────────────────────────────────────


@pytest.mark.parametrize("agree,total,expected", [
    (0, 0, (0, False)),
    (1, 1, (100, True)),
    (1, 2, (50, False)),      # tie fails
    (2, 4, (50, False)),
    (2, 3, (67, True)),
    (1, 3, (33, False)),
    (3, 5, (60, True)),
    (0, 3, (0, False)),
])
def test_compute_tally(agree, total, expected):
    assert compute_tally(agree, total) == expected


def test_percentage_rounds_half_up():
    # 1/8 = 12.5% -> 13
    assert compute_tally(1, 8)[0] == 13


# ── Votes ────────────────────────────────────────────────────────────────────


def test_vote_is_recorded_and_status_unchanged(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)

    res = _vote(client, auth_headers, app_id, cast.members[0], True, "Strong record")
    assert res.status_code == 200
    vote = res.get_json()["vote"]
    assert vote["is_agree"] is True
    assert vote["committee_id"] == cast.members[0]

    assert _db.session.get(Application, app_id).current_status == "committee_review"
    logs = ApprovalLog.query.filter_by(application_id=app_id).all()
    assert len(logs) == 1
    assert logs[0].action_type == "vote"
    assert logs[0].from_status == logs[0].to_status == "committee_review"
    assert logs[0].comment == "Vote: agree: Strong record"


def test_revote_replaces_previous_vote(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)
    member = cast.members[0]

    assert _vote(client, auth_headers, app_id, member, True).status_code == 200
    assert _vote(client, auth_headers, app_id, member, False).status_code == 200

    votes = CommitteeVote.query.filter_by(application_id=app_id).all()
    assert len(votes) == 1
    assert votes[0].is_agree is False

    summary = client.get(
        f"/api/v1/applications/{app_id}/voting-summary", headers=auth_headers(member),
    ).get_json()
    assert summary["total_voters"] == 1
    assert summary["agree_count"] == 0
    assert summary["disagree_count"] == 1
    # Each vote is audited, including the replaced one.
    assert ApprovalLog.query.filter_by(application_id=app_id, action_type="vote").count() == 2


def test_non_member_cannot_vote(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)
    res = _vote(client, auth_headers, app_id, cast.chair, True)
    assert res.status_code == 403


def test_member_of_other_campus_cannot_vote(client, auth_headers, org, cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)
    outsider = make_user("farmember@test.com")
    grant(outsider, Role.COMMITTEE_MEMBER, campus_id=org.campus2_id)
    assert _vote(client, auth_headers, app_id, outsider, True).status_code == 403


def test_vote_outside_committee_stage_is_illegal(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.STUDENT_AFFAIRS_REVIEW)
    res = _vote(client, auth_headers, app_id, cast.members[0], True)
    assert res.status_code == 400
    assert res.get_json()["code"] == "ERR_ILLEGAL_TRANSITION"


def test_vote_requires_boolean(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)
    res = _vote(client, auth_headers, app_id, cast.members[0], "yes")
    assert res.status_code == 400


def test_vote_on_missing_application_is_404(client, auth_headers, cast):
    res = _vote(client, auth_headers, "does-not-exist", cast.members[0], True)
    assert res.status_code == 404


# ── Close voting ─────────────────────────────────────────────────────────────


def test_majority_agree_moves_to_chairman_review(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)
    _vote(client, auth_headers, app_id, cast.members[0], True)
    _vote(client, auth_headers, app_id, cast.members[1], True)
    _vote(client, auth_headers, app_id, cast.members[2], False)

    res = _close(client, auth_headers, app_id, cast.chair)
    assert res.status_code == 200
    body = res.get_json()
    assert body["passed"] is True
    assert body["new_status"] == "chairman_review"

    summary = client.get(
        f"/api/v1/applications/{app_id}/voting-summary", headers=auth_headers(cast.chair),
    ).get_json()
    assert summary["total_voters"] == 3
    assert summary["agree_count"] == 2
    assert summary["vote_percentage"] == 67
    assert summary["is_passed"] is True
    assert summary["voting_closed_at"] is not None

    last = ApprovalLog.query.filter_by(application_id=app_id).order_by(ApprovalLog.id.desc()).first()
    assert last.action_type == "approve"
    assert last.from_status == "committee_review"
    assert last.to_status == "chairman_review"
    assert last.actor_id == cast.chair


def test_tie_is_rejected(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)
    _vote(client, auth_headers, app_id, cast.members[0], True)
    _vote(client, auth_headers, app_id, cast.members[1], False)

    res = _close(client, auth_headers, app_id, cast.chair)
    assert res.status_code == 200
    assert res.get_json() == {"success": True, "passed": False, "new_status": "rejected"}

    last = ApprovalLog.query.filter_by(application_id=app_id).order_by(ApprovalLog.id.desc()).first()
    assert last.action_type == "reject"
    assert last.to_status == "rejected"


def test_close_with_no_votes_is_refused(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)

    res = _close(client, auth_headers, app_id, cast.chair)
    assert res.status_code == 422
    assert res.get_json()["code"] == "ERR_VALIDATION"

    # Nothing was finalised: voting is still open.
    assert _vote(client, auth_headers, app_id, cast.members[0], True).status_code == 200
    assert _close(client, auth_headers, app_id, cast.chair).status_code == 200


def test_vote_after_close_gets_409(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)
    _vote(client, auth_headers, app_id, cast.members[0], True)
    assert _close(client, auth_headers, app_id, cast.chair).status_code == 200

    res = _vote(client, auth_headers, app_id, cast.members[1], False)
    assert res.status_code == 409
    assert res.get_json()["code"] == "ERR_VOTING_CLOSED"
    assert CommitteeVote.query.filter_by(application_id=app_id).count() == 1


def test_close_twice_gets_409(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)
    _vote(client, auth_headers, app_id, cast.members[0], True)
    assert _close(client, auth_headers, app_id, cast.chair).status_code == 200

    res = _close(client, auth_headers, app_id, cast.chair)
    assert res.status_code == 409


def test_summary_is_frozen_after_close(cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)
    voting_service.cast_vote(app_id, resolve_principal(cast.members[0]), True)
    voting_service.close_voting(app_id, resolve_principal(cast.chair))

    # A row written around the service does not change the finalised tally.
    _db.session.add(CommitteeVote(application_id=app_id, committee_id=cast.members[1], is_agree=False))
    _db.session.commit()

    summary = voting_service.get_voting_summary(app_id)
    assert summary["total_voters"] == 1
    assert summary["agree_count"] == 1
    assert summary["is_passed"] is True


def test_only_chairman_can_close(cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)
    voting_service.cast_vote(app_id, resolve_principal(cast.members[0]), True)

    with pytest.raises(Forbidden):
        voting_service.close_voting(app_id, resolve_principal(cast.members[0]))


def test_close_outside_committee_stage_is_illegal(cast, make_application):
    app_id = make_application(cast.student, Status.CHAIRMAN_REVIEW)
    with pytest.raises(IllegalTransition):
        voting_service.close_voting(app_id, resolve_principal(cast.chair))


def test_service_level_errors(cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)
    with pytest.raises(ValidationError):
        voting_service.close_voting(app_id, resolve_principal(cast.chair))

    voting_service.cast_vote(app_id, resolve_principal(cast.members[0]), False)
    assert voting_service.close_voting(app_id, resolve_principal(cast.chair)) is False
    with pytest.raises(VotingAlreadyClosed):
        voting_service.cast_vote(app_id, resolve_principal(cast.members[1]), True)


def test_generic_approve_is_refused_at_committee_stage(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)
    res = client.post(
        f"/api/v1/applications/{app_id}/approve",
        json={"action": "approve"},
        headers=auth_headers(cast.members[0]),
    )
    assert res.status_code == 400
    assert _db.session.get(Application, app_id).current_status == "committee_review"


def test_summary_row_created_concurrently_is_reused(cast, make_application, monkeypatch):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)
    _db.session.expunge_all()

    # Simulate another transaction inserting the row after our lookup.
    real_get = _db.session.get

    def _get(model, ident, *args, **kwargs):
        if model is VotingSummary:
            return None
        return real_get(model, ident, *args, **kwargs)

    monkeypatch.setattr(_db.session, "get", _get)
    summary = voting_service.ensure_summary_row(app_id)
    monkeypatch.undo()

    assert summary.application_id == app_id
    assert not summary.is_closed
    _db.session.commit()
    assert _db.session.query(VotingSummary).filter_by(application_id=app_id).count() == 1


def test_first_vote_without_summary_row_creates_it(cast, make_application):
    app_id = make_application(cast.student, Status.COMMITTEE_REVIEW)
    _db.session.query(VotingSummary).filter_by(application_id=app_id).delete()
    _db.session.commit()

    voting_service.cast_vote(app_id, resolve_principal(cast.members[0]), True)

    summary = voting_service.get_voting_summary(app_id)
    assert summary["total_voters"] == 1
    assert summary["voting_closed_at"] is None
