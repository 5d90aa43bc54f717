"""Who may list, open, submit to and review an assignment.

All role and cohort rules live here so that list, detail, submission and
review paths apply the same policy.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db.models import Q, QuerySet

from accounts.models import Caller
from apps.coursework.models import AssignmentDetail, Submission

from ..exceptions import AuthenticationRequired, AuthorizationDenied

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessDecision:
    granted: bool
    reason: str

    def __bool__(self) -> bool:
        return self.granted


GRANTED_PRIVILEGED = AccessDecision(True, "privileged")
GRANTED_UNPROTECTED = AccessDecision(True, "unprotected")
GRANTED_SECRET = AccessDecision(True, "secret")
DENIED = AccessDecision(False, "secret_mismatch")


def is_privileged(caller: Caller, assignment: AssignmentDetail) -> bool:
    """Admins, and instructors owning ``assignment``, skip the access secret."""

    if caller.is_admin:
        return True
    return caller.is_instructor and assignment.is_owned_by(caller.user_id)


def check_access(
    assignment: AssignmentDetail, supplied_secret: str | None, caller: Caller
) -> AccessDecision:
    if is_privileged(caller, assignment):
        return GRANTED_PRIVILEGED
    if not assignment.has_password:
        return GRANTED_UNPROTECTED
    if assignment.verify_access_secret(supplied_secret):
        return GRANTED_SECRET
    return DENIED


def require_access(
    assignment: AssignmentDetail, supplied_secret: str | None, caller: Caller
) -> AccessDecision:
    decision = check_access(assignment, supplied_secret, caller)
    if not decision:
        logger.info(
            "Access to assignment %s denied for %s caller %s",
            assignment.pk,
            caller.role,
            caller.user_id,
        )
        raise AuthorizationDenied("A valid access password is required for this assignment.")
    return decision


def listable_filter(caller: Caller) -> Q:
    """Return the ``AssignmentDetail`` filter of what ``caller`` may list.

    Admins list everything; everybody else lists the cohorts they belong to
    (instructors: their assigned cohorts, students: their own class level).
    Guests have no cohort and list nothing.
    """

    if caller.is_admin:
        return Q()
    return Q(class_level__in=sorted(caller.cohorts))


def listable_assignments(caller: Caller, queryset: QuerySet | None = None) -> QuerySet:
    if queryset is None:
        queryset = AssignmentDetail.objects.all()
    return queryset.filter(listable_filter(caller))


def is_listable(caller: Caller, assignment: AssignmentDetail) -> bool:
    return caller.is_admin or assignment.class_level in caller.cohorts


def can_review(caller: Caller, assignment: AssignmentDetail) -> bool:
    if caller.is_admin:
        return True
    if not caller.is_instructor:
        return False
    return is_listable(caller, assignment) or assignment.is_owned_by(caller.user_id)


def require_reviewer(caller: Caller, assignment: AssignmentDetail) -> None:
    if not caller.is_authenticated:
        raise AuthenticationRequired()
    if not can_review(caller, assignment):
        raise AuthorizationDenied("Only instructors and admins can review submissions.")


def can_manage(caller: Caller, assignment: AssignmentDetail) -> bool:
    """Update rights: admins, and instructors who own or teach the assignment."""

    return can_review(caller, assignment)


def can_delete(caller: Caller, assignment: AssignmentDetail) -> bool:
    if caller.is_admin:
        return True
    return caller.is_instructor and assignment.is_owned_by(caller.user_id)


def can_read_submission(caller: Caller, submission: Submission) -> bool:
    if can_review(caller, submission.assignment):
        return True
    return caller.is_authenticated and submission.student_id == caller.user_id


def visible_submissions(caller: Caller, assignment: AssignmentDetail) -> QuerySet:
    """Submissions of ``assignment`` that ``caller`` may read.

    Reviewers see all of them, students only their own.
    """

    if not caller.is_authenticated:
        raise AuthenticationRequired()
    queryset = assignment.submissions.select_related("student", "checked_by")
    if can_review(caller, assignment):
        return queryset
    return queryset.filter(student_id=caller.user_id)
