"""
Approval Workflow State Machine.

Pure functions over ``Status`` — no database access, no Flask context.

Chain:
    draft -> submitted -> dept_review -> faculty_review
          -> student_affairs_review -> committee_review
          -> chairman_review -> president_review -> approved

``rejected`` is reachable from every reviewable status.  ``draft`` leaves
only through the separate submit operation; ``approved`` and ``rejected``
are terminal.

Usage:
    from nomination_portal.services.workflow import next_status, reviewer_role_for

    next_status(Status.DEPT_REVIEW, "approve")      # Status.FACULTY_REVIEW
    reviewer_role_for(Status.FACULTY_REVIEW).all     # (Role.DEAN, Role.ASSOCIATE_DEAN)
"""

from typing import Iterable, NamedTuple

from nomination_portal.core.exceptions import IllegalTransition
from nomination_portal.models.application import Status
from nomination_portal.models.auth import Role

APPROVE = "approve"
REJECT = "reject"
DECISIONS = frozenset({APPROVE, REJECT})

NON_REVIEWABLE = frozenset({Status.DRAFT, Status.APPROVED, Status.REJECTED})
TERMINAL = frozenset({Status.APPROVED, Status.REJECTED})

# Successor on approve.  Every reviewable status has exactly one entry.
APPROVAL_FLOW: dict[Status, Status] = {
    Status.SUBMITTED: Status.DEPT_REVIEW,
    Status.DEPT_REVIEW: Status.FACULTY_REVIEW,
    Status.FACULTY_REVIEW: Status.STUDENT_AFFAIRS_REVIEW,
    Status.STUDENT_AFFAIRS_REVIEW: Status.COMMITTEE_REVIEW,
    Status.COMMITTEE_REVIEW: Status.CHAIRMAN_REVIEW,
    Status.CHAIRMAN_REVIEW: Status.PRESIDENT_REVIEW,
    Status.PRESIDENT_REVIEW: Status.APPROVED,
}

# Display order for progress bars.
WORKFLOW_STEPS_ORDER: tuple[Status, ...] = (
    Status.SUBMITTED,
    Status.DEPT_REVIEW,
    Status.FACULTY_REVIEW,
    Status.STUDENT_AFFAIRS_REVIEW,
    Status.COMMITTEE_REVIEW,
    Status.CHAIRMAN_REVIEW,
    Status.PRESIDENT_REVIEW,
    Status.APPROVED,
)


class ReviewerRoles(NamedTuple):
    primary: Role
    alternates: tuple[Role, ...] = ()

    @property
    def all(self) -> tuple[Role, ...]:
        return (self.primary, *self.alternates)


_REVIEWERS: dict[Status, ReviewerRoles] = {
    Status.SUBMITTED: ReviewerRoles(Role.DEPARTMENT_HEAD),
    Status.DEPT_REVIEW: ReviewerRoles(Role.DEPARTMENT_HEAD),
    Status.FACULTY_REVIEW: ReviewerRoles(Role.DEAN, (Role.ASSOCIATE_DEAN,)),
    Status.STUDENT_AFFAIRS_REVIEW: ReviewerRoles(Role.STUDENT_AFFAIRS),
    # Members vote; the stage advances only through close_voting.
    Status.COMMITTEE_REVIEW: ReviewerRoles(Role.COMMITTEE_MEMBER),
    Status.CHAIRMAN_REVIEW: ReviewerRoles(Role.COMMITTEE_CHAIRMAN),
    Status.PRESIDENT_REVIEW: ReviewerRoles(Role.PRESIDENT),
}

# Every status is either reviewable (with a successor and a reviewer) or not.
assert set(APPROVAL_FLOW) == set(Status) - NON_REVIEWABLE
assert set(_REVIEWERS) == set(Status) - NON_REVIEWABLE


def _coerce(status) -> Status:
    try:
        return Status(status)
    except ValueError:
        raise IllegalTransition(status, "transition", "unknown status") from None


def is_reviewable(status) -> bool:
    return _coerce(status) not in NON_REVIEWABLE


def is_terminal(status) -> bool:
    return _coerce(status) in TERMINAL


def next_status(current, decision: str) -> Status:
    """Return the status an application moves to after ``decision``.

    Raises:
        IllegalTransition: ``current`` is draft/approved/rejected, or
            ``decision`` is not approve/reject.
    """
    status = _coerce(current)
    if decision not in DECISIONS:
        raise IllegalTransition(status, decision, "unknown decision")
    if status in NON_REVIEWABLE:
        raise IllegalTransition(status, decision, "status is not reviewable")
    if decision == REJECT:
        return Status.REJECTED
    return APPROVAL_FLOW[status]


def reviewer_role_for(status) -> ReviewerRoles:
    """Roles permitted to act at ``status``."""
    s = _coerce(status)
    if s in NON_REVIEWABLE:
        raise IllegalTransition(s, "review", "status is not reviewable")
    return _REVIEWERS[s]


def validate_override(current, decision: str, to_status) -> Status:
    """Check an operator-supplied ``to_status`` against the legal table.

    The override is accepted only when it names the transition the state
    machine would have produced anyway, so it can never skip a stage.
    """
    expected = next_status(current, decision)
    if to_status is None:
        return expected
    try:
        requested = Status(to_status)
    except ValueError:
        raise IllegalTransition(current, decision, f"unknown to_status '{to_status}'") from None
    if requested != expected:
        raise IllegalTransition(
            current, decision, f"to_status '{requested}' is not a legal target",
        )
    return requested


def step_index(status) -> int:
    """Position of ``status`` in WORKFLOW_STEPS_ORDER; -1 for rejected, 0 for draft."""
    s = _coerce(status)
    if s == Status.REJECTED:
        return -1
    if s in WORKFLOW_STEPS_ORDER:
        return WORKFLOW_STEPS_ORDER.index(s)
    return 0


def replay(entries: Iterable) -> Status:
    """Fold log entries (oldest first) into the status they imply.

    Entries are dicts or objects carrying ``action_type``, ``from_status``
    and ``to_status``.  A status-changing entry must start where the
    previous one ended; vote entries must not move the status.

    Raises:
        ValueError: the sequence is not a consistent transition chain.
    """
    status = Status.DRAFT
    for entry in entries:
        get = entry.get if isinstance(entry, dict) else lambda k, e=entry: getattr(e, k)
        action = get("action_type")
        from_s, to_s = get("from_status"), get("to_status")
        if from_s is not None and Status(from_s) != status:
            raise ValueError(f"log entry starts at {from_s}, expected {status}")
        if action == "vote":
            if to_s is not None and Status(to_s) != status:
                raise ValueError("vote entry changed status")
            continue
        if action == "submit":
            if status != Status.DRAFT:
                raise ValueError(f"submit from {status}")
            status = Status(to_s or Status.SUBMITTED)
            continue
        expected = next_status(status, action)
        if to_s is not None and Status(to_s) != expected:
            raise ValueError(f"{action} from {status} landed on {to_s}, expected {expected}")
        status = expected
    return status
