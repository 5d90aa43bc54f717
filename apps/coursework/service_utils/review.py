from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone

from accounts.models import Caller
from apps.coursework.models import Submission

from ..exceptions import AuthenticationRequired, AuthorizationDenied, NotFound
from . import access

logger = logging.getLogger(__name__)


def _require_reviewer_role(caller: Caller) -> None:
    if not caller.is_authenticated:
        raise AuthenticationRequired()
    if not caller.is_reviewer:
        raise AuthorizationDenied("Only instructors and admins can review submissions.")


def _lock_submission(submission_id, assignment_id=None) -> Submission:
    lookup = {"pk": submission_id}
    if assignment_id is not None:
        lookup["assignment_id"] = assignment_id
    try:
        return (
            Submission.objects.select_for_update()
            .select_related("assignment", "assignment__post")
            .get(**lookup)
        )
    except (Submission.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFound("Submission not found.") from exc


def _clean_feedback(feedback: Optional[str]) -> Optional[str]:
    if feedback is None:
        return None
    return feedback if feedback.strip() else None


@transaction.atomic
def set_checked(
    submission_id,
    caller: Caller,
    checked: Optional[bool] = None,
    feedback: Optional[str] = None,
    *,
    assignment_id=None,
) -> Submission:
    """Mark a submission checked or unchecked.

    ``checked=None`` flips the current state. Checking stamps the reviewer
    and time once; checking an already checked submission keeps the first
    stamp. Unchecking clears both. ``feedback``, when given, replaces the
    stored feedback.
    """

    _require_reviewer_role(caller)
    submission = _lock_submission(submission_id, assignment_id)
    access.require_reviewer(caller, submission.assignment)

    if checked is None:
        checked = not submission.is_checked

    if checked and not submission.is_checked:
        submission.checked_by_id = caller.user_id
        submission.checked_at = timezone.now()
    elif not checked:
        submission.checked_by = None
        submission.checked_at = None
    submission.is_checked = checked

    update_fields = ["is_checked", "checked_by", "checked_at"]
    if feedback is not None:
        submission.feedback = _clean_feedback(feedback)
        update_fields.append("feedback")
    submission.save(update_fields=update_fields)

    logger.info(
        "Submission %s marked %s by %s",
        submission.pk,
        "checked" if checked else "unchecked",
        caller.user_id,
    )
    return submission


@transaction.atomic
def set_feedback(
    submission_id, caller: Caller, feedback: Optional[str], *, assignment_id=None
) -> Submission:
    """Replace the feedback text; blank text clears it."""

    _require_reviewer_role(caller)
    submission = _lock_submission(submission_id, assignment_id)
    access.require_reviewer(caller, submission.assignment)

    submission.feedback = _clean_feedback(feedback)
    submission.save(update_fields=["feedback"])
    return submission
