"""
Tests: signed endorsements at the chairman and president stages.

Decisions at chairman_review / president_review append an endorsement in
the same transaction as the transition; other stages append none.
"""

import pytest
from sqlalchemy import update

from nomination_portal.core.exceptions import StaleStateConflict
from nomination_portal.models import db as _db
from nomination_portal.models.application import Application, Status
from nomination_portal.models.endorsement import Endorsement
from nomination_portal.services import application_service, endorsement_service
from nomination_portal.services.role_resolver import resolve_principal


def _decide(client, auth_headers, app_id, user_id, action, comment=None):
    body = {"action": action}
    if comment is not None:
        body["comment"] = comment
    return client.post(
        f"/api/v1/applications/{app_id}/approve", json=body, headers=auth_headers(user_id),
    )


def test_chairman_approval_is_endorsed(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.CHAIRMAN_REVIEW)
    res = _decide(client, auth_headers, app_id, cast.chair, "approve", "  Endorsed  ")
    assert res.status_code == 200

    row = Endorsement.query.filter_by(application_id=app_id).one()
    assert row.endorsement_type == "chairman_approval"
    assert row.endorser_id == cast.chair
    assert row.is_approved is True
    assert row.comment == "Endorsed"
    assert len(row.signature_data) == 64
    assert endorsement_service.verify_signature(row)


def test_president_rejection_is_endorsed(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.PRESIDENT_REVIEW)
    res = _decide(client, auth_headers, app_id, cast.president, "reject")
    assert res.get_json()["new_status"] == "rejected"

    row = Endorsement.query.filter_by(application_id=app_id).one()
    assert row.endorsement_type == "president_approval"
    assert row.is_approved is False


def test_earlier_stages_are_not_endorsed(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.DEPT_REVIEW)
    assert _decide(client, auth_headers, app_id, cast.head, "approve").status_code == 200
    assert Endorsement.query.filter_by(application_id=app_id).count() == 0


def test_refused_decision_writes_no_endorsement(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.CHAIRMAN_REVIEW)
    res = _decide(client, auth_headers, app_id, cast.president, "approve")
    assert res.status_code == 403
    assert Endorsement.query.filter_by(application_id=app_id).count() == 0


def test_failed_decision_rolls_back_endorsement(cast, make_application, monkeypatch):
    app_id = make_application(cast.student, Status.CHAIRMAN_REVIEW)
    original = endorsement_service.record_endorsement

    def _record_then_fail(*args, **kwargs):
        assert original(*args, **kwargs) is not None
        raise StaleStateConflict(app_id, Status.CHAIRMAN_REVIEW)

    monkeypatch.setattr(endorsement_service, "record_endorsement", _record_then_fail)
    with pytest.raises(StaleStateConflict):
        application_service.decide(resolve_principal(cast.chair), app_id, "approve")

    assert Endorsement.query.filter_by(application_id=app_id).count() == 0
    assert _db.session.get(Application, app_id).current_status == "chairman_review"


def test_tampered_endorsement_fails_verification(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.CHAIRMAN_REVIEW)
    _decide(client, auth_headers, app_id, cast.chair, "approve")

    _db.session.execute(
        update(Endorsement).where(Endorsement.application_id == app_id).values(is_approved=False)
    )
    _db.session.commit()
    _db.session.expire_all()

    row = Endorsement.query.filter_by(application_id=app_id).one()
    assert endorsement_service.verify_signature(row) is False


def test_endorsements_are_listed_newest_first(client, auth_headers, cast, make_application):
    app_id = make_application(cast.student, Status.CHAIRMAN_REVIEW)
    _decide(client, auth_headers, app_id, cast.chair, "approve")
    _decide(client, auth_headers, app_id, cast.president, "approve")

    res = client.get(f"/api/v1/applications/{app_id}/endorsements", headers=auth_headers(cast.student))
    assert res.status_code == 200
    assert [e["endorsement_type"] for e in res.get_json()] == [
        "president_approval",
        "chairman_approval",
    ]
    assert res.get_json()[1]["endorser_email"] == "chair@test.com"

    detail = client.get(f"/api/v1/applications/{app_id}", headers=auth_headers(cast.student)).get_json()
    assert detail["endorsements"] == res.get_json()


def test_endorsements_of_missing_application_is_404(client, auth_headers, cast):
    res = client.get("/api/v1/applications/nope/endorsements", headers=auth_headers(cast.chair))
    assert res.status_code == 404
