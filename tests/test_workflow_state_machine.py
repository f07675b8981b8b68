"""
Tests: approval state machine (pure functions, no database).

Covers the successor table, rejection from every reviewable stage,
refusals from draft / terminal statuses, the reviewer role table, the
``to_status`` override check and log replay.
"""

import pytest

from nomination_portal.core.exceptions import IllegalTransition
from nomination_portal.models.application import Status
from nomination_portal.models.auth import Role
from nomination_portal.services.workflow import (
    APPROVAL_FLOW,
    NON_REVIEWABLE,
    WORKFLOW_STEPS_ORDER,
    is_reviewable,
    is_terminal,
    next_status,
    replay,
    reviewer_role_for,
    step_index,
    validate_override,
)

REVIEWABLE = [s for s in Status if s not in NON_REVIEWABLE]


def test_approve_walks_the_full_chain():
    status = Status.SUBMITTED
    visited = [status]
    while not is_terminal(status):
        status = next_status(status, "approve")
        visited.append(status)

    assert visited == [
        Status.SUBMITTED,
        Status.DEPT_REVIEW,
        Status.FACULTY_REVIEW,
        Status.STUDENT_AFFAIRS_REVIEW,
        Status.COMMITTEE_REVIEW,
        Status.CHAIRMAN_REVIEW,
        Status.PRESIDENT_REVIEW,
        Status.APPROVED,
    ]


@pytest.mark.parametrize("status", REVIEWABLE)
def test_reject_from_any_reviewable_status_lands_on_rejected(status):
    assert next_status(status, "reject") == Status.REJECTED


@pytest.mark.parametrize("status", [Status.DRAFT, Status.APPROVED, Status.REJECTED])
@pytest.mark.parametrize("decision", ["approve", "reject"])
def test_no_decision_from_draft_or_terminal_status(status, decision):
    with pytest.raises(IllegalTransition):
        next_status(status, decision)


def test_unknown_decision_is_illegal():
    with pytest.raises(IllegalTransition):
        next_status(Status.DEPT_REVIEW, "return")


def test_unknown_status_is_illegal():
    with pytest.raises(IllegalTransition):
        next_status("archived", "approve")


def test_string_statuses_are_accepted():
    assert next_status("dept_review", "approve") == Status.FACULTY_REVIEW


def test_successor_table_never_skips_a_stage():
    for status, successor in APPROVAL_FLOW.items():
        assert step_index(successor) == step_index(status) + 1


def test_reviewer_roles_per_stage():
    assert reviewer_role_for(Status.SUBMITTED).all == (Role.DEPARTMENT_HEAD,)
    assert reviewer_role_for(Status.DEPT_REVIEW).all == (Role.DEPARTMENT_HEAD,)
    assert reviewer_role_for(Status.FACULTY_REVIEW).all == (Role.DEAN, Role.ASSOCIATE_DEAN)
    assert reviewer_role_for(Status.STUDENT_AFFAIRS_REVIEW).primary == Role.STUDENT_AFFAIRS
    assert reviewer_role_for(Status.COMMITTEE_REVIEW).primary == Role.COMMITTEE_MEMBER
    assert reviewer_role_for(Status.CHAIRMAN_REVIEW).primary == Role.COMMITTEE_CHAIRMAN
    assert reviewer_role_for(Status.PRESIDENT_REVIEW).primary == Role.PRESIDENT


@pytest.mark.parametrize("status", sorted(NON_REVIEWABLE))
def test_reviewer_role_for_non_reviewable_status_raises(status):
    assert not is_reviewable(status)
    with pytest.raises(IllegalTransition):
        reviewer_role_for(status)


def test_terminal_statuses():
    assert is_terminal(Status.APPROVED)
    assert is_terminal(Status.REJECTED)
    assert not is_terminal(Status.DRAFT)
    assert not is_terminal(Status.PRESIDENT_REVIEW)


# ── Override ─────────────────────────────────────────────────────────────────


def test_override_absent_returns_computed_target():
    assert validate_override(Status.DEPT_REVIEW, "approve", None) == Status.FACULTY_REVIEW


def test_override_matching_computed_target_is_accepted():
    assert validate_override("dept_review", "approve", "faculty_review") == Status.FACULTY_REVIEW
    assert validate_override("dept_review", "reject", "rejected") == Status.REJECTED


@pytest.mark.parametrize("to_status", ["approved", "committee_review", "draft", "rejected"])
def test_override_cannot_skip_or_rewind(to_status):
    with pytest.raises(IllegalTransition):
        validate_override(Status.DEPT_REVIEW, "approve", to_status)


def test_override_with_unknown_status_is_illegal():
    with pytest.raises(IllegalTransition):
        validate_override(Status.DEPT_REVIEW, "approve", "done")


# ── Progress & replay ────────────────────────────────────────────────────────


def test_step_index():
    assert step_index(Status.REJECTED) == -1
    assert step_index(Status.DRAFT) == 0
    assert step_index(Status.SUBMITTED) == 0
    assert step_index(Status.APPROVED) == len(WORKFLOW_STEPS_ORDER) - 1


def test_replay_folds_a_consistent_history():
    entries = [
        {"action_type": "submit", "from_status": "draft", "to_status": "submitted"},
        {"action_type": "approve", "from_status": "submitted", "to_status": "dept_review"},
        {"action_type": "approve", "from_status": "dept_review", "to_status": "faculty_review"},
        {"action_type": "reject", "from_status": "faculty_review", "to_status": "rejected"},
    ]
    assert replay(entries) == Status.REJECTED


def test_replay_ignores_votes_that_keep_the_status():
    entries = [
        {"action_type": "submit", "from_status": "draft", "to_status": "submitted"},
        {"action_type": "approve", "from_status": "submitted", "to_status": "dept_review"},
        {"action_type": "vote", "from_status": "dept_review", "to_status": "dept_review"},
    ]
    assert replay(entries) == Status.DEPT_REVIEW


def test_replay_of_nothing_is_draft():
    assert replay([]) == Status.DRAFT


def test_replay_rejects_a_gap_in_the_chain():
    entries = [
        {"action_type": "submit", "from_status": "draft", "to_status": "submitted"},
        {"action_type": "approve", "from_status": "dept_review", "to_status": "faculty_review"},
    ]
    with pytest.raises(ValueError):
        replay(entries)


def test_replay_rejects_a_skipped_stage():
    entries = [
        {"action_type": "submit", "from_status": "draft", "to_status": "submitted"},
        {"action_type": "approve", "from_status": "submitted", "to_status": "approved"},
    ]
    with pytest.raises(ValueError):
        replay(entries)
