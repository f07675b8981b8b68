"""
Committee Voting Service.

Runs the committee stage of the approval chain:

    cast_vote        one vote per (application, member); re-voting replaces
                     the earlier vote and is never an error
    get_voting_summary  live tally, or the frozen final tally once closed
    close_voting     chairman finalises the decision and moves the
                     application to chairman_review (passed) or rejected

Individual votes never change ``current_status``.  ``close_voting`` is the
only way out of committee_review.

Serialisation:
    Both cast_vote and close_voting issue a conditional UPDATE on the
    application's ``voting_summaries`` row
    (``WHERE voting_closed_at IS NULL``) before doing anything else.  The
    row lock orders a vote and a close against each other: a vote that
    locks first is counted by the close; a vote that locks after the close
    committed matches zero rows and gets VotingAlreadyClosed.

Pass rule: strictly more than half of the votes cast agree.  A tie fails.
There is no quorum over appointed members.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError

from nomination_portal.core.exceptions import (
    IllegalTransition,
    NotFoundError,
    ValidationError,
    VotingAlreadyClosed,
)
from nomination_portal.models import db
from nomination_portal.models.application import Application, Status
from nomination_portal.models.audit import ActionType, write_approval_log
from nomination_portal.models.auth import Role
from nomination_portal.models.voting import CommitteeVote, VotingSummary
from nomination_portal.services.authorization import require_role
from nomination_portal.services.role_resolver import Principal
from nomination_portal.services.transition_service import apply_transition
from nomination_portal.services.workflow import APPROVE, REJECT, next_status

logger = logging.getLogger(__name__)


# ── Pure helpers ─────────────────────────────────────────────────────────────


def compute_tally(agree_count: int, total_voters: int) -> tuple[int, bool]:
    """Return ``(vote_percentage, is_passed)``.

    vote_percentage is rounded half-up to a whole number, 0 when nobody has
    voted.  is_passed compares exact counts (2 * agree > total) so rounding
    can never turn a tie into a pass.
    """
    if total_voters <= 0:
        return 0, False
    percentage = (200 * agree_count + total_voters) // (2 * total_voters)
    return percentage, 2 * agree_count > total_voters


def _vote_comment(is_agree: bool, comment: str | None) -> str:
    text = "Vote: agree" if is_agree else "Vote: disagree"
    comment = (comment or "").strip()
    return f"{text}: {comment}" if comment else text


# ── Private helpers ──────────────────────────────────────────────────────────


def _get_application(application_id: str) -> Application:
    app = db.session.get(Application, application_id)
    if app is None:
        raise NotFoundError(resource="Application", resource_id=application_id)
    return app


def _count_votes(application_id: str) -> tuple[int, int]:
    """Return ``(agree_count, total_voters)`` from the vote rows."""
    total, agree = db.session.execute(
        select(
            func.count(CommitteeVote.id),
            func.coalesce(
                func.sum(case((CommitteeVote.is_agree.is_(True), 1), else_=0)), 0,
            ),
        ).where(CommitteeVote.application_id == application_id)
    ).one()
    return int(agree or 0), int(total or 0)


def ensure_summary_row(application_id: str) -> VotingSummary:
    """Return the application's summary row, creating it if missing.

    Normally created when the application enters committee_review; this
    covers rows that reached the stage any other way.  The insert runs in a
    savepoint: losing a race to a concurrent insert only discards the
    savepoint, and the winner's row is returned.
    """
    summary = db.session.get(VotingSummary, application_id)
    if summary is not None:
        return summary
    try:
        with db.session.begin_nested():
            summary = VotingSummary(application_id=application_id)
            db.session.add(summary)
    except IntegrityError:
        logger.debug("Voting summary for %s created concurrently", application_id)
        summary = db.session.execute(
            select(VotingSummary).where(VotingSummary.application_id == application_id)
        ).scalar_one()
    return summary


def _reject_if_closed(application_id: str) -> None:
    summary = db.session.get(VotingSummary, application_id)
    if summary is not None and summary.is_closed:
        raise VotingAlreadyClosed(application_id)


# ── Public API ───────────────────────────────────────────────────────────────


def cast_vote(
    application_id: str,
    principal: Principal,
    is_agree: bool,
    comment: str | None = None,
) -> dict:
    """Record or replace ``principal``'s vote on an application.

    Raises:
        NotFoundError: unknown application.
        Forbidden: not a committee member in scope of the application.
        VotingAlreadyClosed: the chairman has closed voting.
        IllegalTransition: the application is not at committee_review.
    """
    app = _get_application(application_id)
    require_role(principal, app, Role.COMMITTEE_MEMBER)
    _reject_if_closed(app.id)
    if app.current_status != Status.COMMITTEE_REVIEW:
        logger.warning(
            "Vote outside committee stage: application=%s status=%s user=%s",
            app.id, app.current_status, principal.user_id,
        )
        raise IllegalTransition(app.current_status, "vote", "application is not in committee review")

    try:
        ensure_summary_row(app.id)
        locked = db.session.execute(
            update(VotingSummary)
            .where(
                VotingSummary.application_id == app.id,
                VotingSummary.voting_closed_at.is_(None),
            )
            .values(vote_revision=VotingSummary.vote_revision + 1)
            .execution_options(synchronize_session=False)
        )
        if locked.rowcount != 1:
            raise VotingAlreadyClosed(app.id)

        vote = db.session.execute(
            select(CommitteeVote).where(
                CommitteeVote.application_id == app.id,
                CommitteeVote.committee_id == principal.user_id,
            )
        ).scalar_one_or_none()
        if vote is None:
            vote = CommitteeVote(
                application_id=app.id,
                committee_id=principal.user_id,
                is_agree=bool(is_agree),
                comment=(comment or "").strip() or None,
            )
            db.session.add(vote)
        else:
            vote.is_agree = bool(is_agree)
            vote.comment = (comment or "").strip() or None
            vote.updated_at = datetime.now(timezone.utc)
        db.session.flush()

        write_approval_log(
            application_id=app.id,
            actor_id=principal.user_id,
            action_type=ActionType.VOTE,
            from_status=Status.COMMITTEE_REVIEW,
            to_status=Status.COMMITTEE_REVIEW,
            comment=_vote_comment(is_agree, comment),
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Committee vote recorded",
        extra={"application_id": app.id, "actor_id": principal.user_id},
    )
    return vote.to_dict()


def list_votes(application_id: str) -> list[dict]:
    rows = db.session.execute(
        select(CommitteeVote)
        .where(CommitteeVote.application_id == application_id)
        .order_by(CommitteeVote.created_at.asc(), CommitteeVote.id.asc())
    ).scalars().all()
    return [v.to_dict() for v in rows]


def get_voting_summary(application_id: str) -> dict:
    """Tally for one application.

    Before close the figures are computed live from the vote rows; after
    close the frozen final figures are returned, so nothing written later
    can change a finalised decision.
    """
    app = _get_application(application_id)
    summary = db.session.get(VotingSummary, app.id)

    if summary is not None and summary.is_closed:
        total = summary.final_total_voters or 0
        agree = summary.final_agree_count or 0
    else:
        agree, total = _count_votes(app.id)

    percentage, passed = compute_tally(agree, total)
    return {
        "application_id": app.id,
        "total_voters": total,
        "agree_count": agree,
        "disagree_count": total - agree,
        "vote_percentage": percentage,
        "is_passed": passed,
        "voting_closed_at": (
            summary.voting_closed_at.isoformat()
            if summary is not None and summary.voting_closed_at else None
        ),
    }


def close_voting(application_id: str, principal: Principal) -> bool:
    """Finalise the committee decision and advance the application.

    Returns True when the vote passed (-> chairman_review), False when it
    failed (-> rejected).

    Raises:
        NotFoundError: unknown application.
        Forbidden: not the committee chairman in scope of the application.
        VotingAlreadyClosed: already closed.
        IllegalTransition: the application is not at committee_review.
        ValidationError: no votes have been cast.
        StaleStateConflict: the application moved on concurrently.
    """
    app = _get_application(application_id)
    require_role(principal, app, Role.COMMITTEE_CHAIRMAN)
    _reject_if_closed(app.id)
    if app.current_status != Status.COMMITTEE_REVIEW:
        logger.warning(
            "Close voting outside committee stage: application=%s status=%s",
            app.id, app.current_status,
        )
        raise IllegalTransition(app.current_status, "close_voting", "application is not in committee review")

    try:
        ensure_summary_row(app.id)
        now = datetime.now(timezone.utc)
        locked = db.session.execute(
            update(VotingSummary)
            .where(
                VotingSummary.application_id == app.id,
                VotingSummary.voting_closed_at.is_(None),
            )
            .values(voting_closed_at=now, closed_by=principal.user_id)
            .execution_options(synchronize_session=False)
        )
        if locked.rowcount != 1:
            raise VotingAlreadyClosed(app.id)

        agree, total = _count_votes(app.id)
        if total == 0:
            raise ValidationError(
                "Voting cannot be closed before any committee member has voted",
                details={"total_voters": 0},
            )
        percentage, passed = compute_tally(agree, total)

        db.session.execute(
            update(VotingSummary)
            .where(VotingSummary.application_id == app.id)
            .values(is_passed=passed, final_total_voters=total, final_agree_count=agree)
            .execution_options(synchronize_session=False)
        )

        decision = APPROVE if passed else REJECT
        apply_transition(
            app,
            expected=Status.COMMITTEE_REVIEW,
            target=next_status(Status.COMMITTEE_REVIEW, decision),
            action_type=ActionType.APPROVE if passed else ActionType.REJECT,
            actor_id=principal.user_id,
            comment=f"Committee voting closed: {agree}/{total} agree ({percentage}%)",
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Committee voting closed",
        extra={
            "application_id": app.id,
            "actor_id": principal.user_id,
            "from_status": str(Status.COMMITTEE_REVIEW),
            "to_status": app.current_status,
        },
    )
    return passed
