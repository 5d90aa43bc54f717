"""Accept, count and remove submissions.

A submission goes through three phases:

1. cheap checks without locks (assignment exists, deadline, capacity,
   attempt cap) so that obvious rejections never upload anything;
2. the file upload, outside any transaction and bounded by a timeout;
3. a short transaction that locks the assignment row, takes a capacity slot
   with a conditional ``UPDATE``, re-counts the student's attempts and
   writes the row.

Phase 3 is what keeps ``current_submissions`` within ``max_submissions``
when many students submit at once: the ``UPDATE`` only matches while a slot
is free, and a failed attempt-cap re-check rolls the slot back.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from accounts.models import Caller
from apps.coursework.models import AssignmentDetail, Submission

from ..exceptions import (
    AttemptCapExceeded,
    AuthorizationDenied,
    AuthenticationRequired,
    CapacityExceeded,
    DeadlineExceeded,
    NotFound,
    ValidationError,
)
from . import storage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudentIdentity:
    """Whose attempts a submission counts against.

    Authenticated students are matched by user id. Guests only have the name
    they typed, so two guests typing the same name share one attempt budget.
    """

    student_id: Optional[int]
    student_name: str

    @property
    def is_guest(self) -> bool:
        return self.student_id is None

    def submissions_filter(self) -> Q:
        if self.student_id is not None:
            return Q(student_id=self.student_id)
        return Q(student__isnull=True, student_name=self.student_name)


def resolve_identity(caller: Caller, student_name: str | None = None) -> StudentIdentity:
    name = (student_name or "").strip()
    if caller.is_authenticated:
        return StudentIdentity(caller.user_id, name or caller.display_name)
    if not name:
        raise ValidationError({"student_name": ["Guests must give their name to submit."]})
    return StudentIdentity(None, name)


def _get_assignment(assignment_id) -> AssignmentDetail:
    try:
        return AssignmentDetail.objects.select_related("post").get(pk=assignment_id)
    except (AssignmentDetail.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFound("Assignment not found.") from exc


def attempts_used(assignment_id: int, identity: StudentIdentity) -> int:
    return Submission.objects.filter(assignment_id=assignment_id).filter(
        identity.submissions_filter()
    ).count()


def remaining_capacity(assignment: AssignmentDetail) -> Optional[int]:
    """Free slots, or ``None`` when the assignment is unlimited."""

    if assignment.is_unlimited:
        return None
    return max(0, assignment.max_submissions - assignment.current_submissions)


def _reject(exc_class, assignment: AssignmentDetail, identity: StudentIdentity):
    logger.info(
        "Submission to assignment %s by %s rejected: %s",
        assignment.pk,
        identity.student_id or identity.student_name,
        exc_class.default_code,
    )
    return exc_class()


def _precheck(assignment: AssignmentDetail, identity: StudentIdentity, now) -> None:
    if assignment.deadline_passed(now):
        raise _reject(DeadlineExceeded, assignment, identity)
    if assignment.is_full:
        raise _reject(CapacityExceeded, assignment, identity)
    if attempts_used(assignment.pk, identity) >= assignment.max_attempts_per_student:
        raise _reject(AttemptCapExceeded, assignment, identity)


def reserve_slot(assignment_id: int) -> bool:
    """Take one capacity slot; ``False`` when the assignment is full.

    The filter and the increment run as a single ``UPDATE``, so two callers
    can never both take the last slot.
    """

    updated = (
        AssignmentDetail.objects.filter(pk=assignment_id)
        .filter(Q(max_submissions=0) | Q(current_submissions__lt=F("max_submissions")))
        .update(current_submissions=F("current_submissions") + 1, updated_at=timezone.now())
    )
    return updated == 1


def release_slot(assignment_id: int) -> bool:
    updated = (
        AssignmentDetail.objects.filter(pk=assignment_id, current_submissions__gt=0)
        .update(current_submissions=F("current_submissions") - 1, updated_at=timezone.now())
    )
    return updated == 1


@transaction.atomic
def _record_submission(
    assignment_id: int,
    identity: StudentIdentity,
    stored: storage.StoredFile,
    comment: str,
    submitted_at,
) -> Submission:
    try:
        assignment = AssignmentDetail.objects.select_for_update().get(pk=assignment_id)
    except AssignmentDetail.DoesNotExist as exc:
        raise NotFound("Assignment not found.") from exc

    if not reserve_slot(assignment.pk):
        raise _reject(CapacityExceeded, assignment, identity)
    if attempts_used(assignment.pk, identity) >= assignment.max_attempts_per_student:
        raise _reject(AttemptCapExceeded, assignment, identity)

    return Submission.objects.create(
        assignment_id=assignment.pk,
        student_id=identity.student_id,
        student_name=identity.student_name,
        file_url=stored.url,
        file_name=stored.name,
        storage_key=stored.key,
        comment=comment or "",
        submitted_at=submitted_at,
    )


def submit(
    assignment_id,
    identity: StudentIdentity,
    uploaded_file,
    comment: str = "",
) -> Submission:
    """Store ``uploaded_file`` as a new submission of ``identity``.

    Rejections are checked in this order: unknown assignment, deadline,
    capacity, attempt cap. A submission made exactly at the due date is
    accepted. If the final transaction rejects the submission, the file that
    was already uploaded is deleted again.
    """

    assignment = _get_assignment(assignment_id)
    storage.validate_upload(uploaded_file)

    now = timezone.now()
    _precheck(assignment, identity, now)

    stored = storage.upload_submission_file(assignment.pk, uploaded_file)
    try:
        submission = _record_submission(assignment.pk, identity, stored, comment, now)
    except Exception:
        storage.delete_stored_file(stored.key)
        raise

    logger.info(
        "Submission %s accepted for assignment %s from %s",
        submission.pk,
        assignment.pk,
        identity.student_id or identity.student_name,
    )
    return submission


def submission_status(assignment_id, identity: StudentIdentity) -> Dict[str, Any]:
    """Read-only pre-check of whether ``identity`` may submit right now."""

    assignment = _get_assignment(assignment_id)
    own = list(
        Submission.objects.filter(assignment_id=assignment.pk)
        .filter(identity.submissions_filter())
        .order_by("-submitted_at", "-id")
    )
    used = len(own)
    remaining_attempts = max(0, assignment.max_attempts_per_student - used)
    capacity = remaining_capacity(assignment)
    deadline_passed = assignment.deadline_passed()

    return {
        "assignment_id": assignment.pk,
        "has_submitted": used > 0,
        "submission_count": used,
        "max_attempts_per_student": assignment.max_attempts_per_student,
        "remaining_attempts": remaining_attempts,
        "max_submissions": assignment.max_submissions,
        "current_submissions": assignment.current_submissions,
        "remaining_capacity": capacity,
        "deadline_passed": deadline_passed,
        "can_submit_more": (
            not deadline_passed and remaining_attempts > 0 and capacity != 0
        ),
        "submissions": own,
    }


def remove_submission(assignment_id, submission_id, caller: Caller) -> None:
    """Admin removal of one submission; frees its capacity slot."""

    if not caller.is_authenticated:
        raise AuthenticationRequired()
    if not caller.is_admin:
        raise AuthorizationDenied("Only admins can delete submissions.")

    with transaction.atomic():
        try:
            submission = Submission.objects.select_for_update().get(
                pk=submission_id, assignment_id=assignment_id
            )
        except (Submission.DoesNotExist, ValueError, TypeError) as exc:
            raise NotFound("Submission not found.") from exc
        submission.delete()
        release_slot(submission.assignment_id)

    logger.info(
        "Submission %s of assignment %s deleted by %s", submission_id, assignment_id, caller.user_id
    )
