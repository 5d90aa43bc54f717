"""Create, read, update and delete assignments.

An assignment is stored as two rows: the public :class:`BoardPost` and the
:class:`AssignmentDetail` that hangs off it. The helpers here keep the two in
step; callers never touch either model directly.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from accounts.models import Caller
from apps.coursework.models import AssignmentDetail, BoardPost

from .. import conf
from ..exceptions import (
    AuthenticationRequired,
    AuthorizationDenied,
    ConsistencyError,
    NotFound,
    ValidationError,
)
from . import access

logger = logging.getLogger(__name__)

REQUIRED_TEXT_FIELDS = ("title", "content", "class_level")
POST_FIELDS = ("title", "content")
DETAIL_FIELDS = (
    "class_level",
    "due_date",
    "max_submissions",
    "max_attempts_per_student",
    "instructor_id",
    "reviewer_memo",
)
UPDATABLE_FIELDS = POST_FIELDS + DETAIL_FIELDS + ("access_secret",)


def _base_queryset():
    return AssignmentDetail.objects.select_related(
        "post", "post__author", "instructor", "reviewed_by"
    )


def get_assignment_or_404(assignment_id) -> AssignmentDetail:
    try:
        return _base_queryset().get(pk=assignment_id)
    except (AssignmentDetail.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFound("Assignment not found.") from exc


def require_author(caller: Caller) -> None:
    if not caller.is_authenticated:
        raise AuthenticationRequired()
    if not caller.is_reviewer:
        raise AuthorizationDenied("Only instructors and admins can create assignments.")


def _clean_max_submissions(value) -> int:
    if value in (None, ""):
        return 0
    value = int(value)
    if value < 0:
        raise ValidationError({"max_submissions": ["Must be zero (unlimited) or a positive number."]})
    return value


def _clean_attempt_cap(value) -> int:
    if value in (None, ""):
        return conf.default_attempt_cap()
    value = int(value)
    if value < 1:
        raise ValidationError({"max_attempts_per_student": ["Must be at least 1."]})
    return value


def _clean_instructor_id(value):
    if value in (None, ""):
        return None
    if not get_user_model().objects.filter(pk=value).exists():
        raise ValidationError({"instructor_id": ["Unknown instructor."]})
    return value


def _validate_required(data: Mapping[str, Any]) -> None:
    errors = {}
    for name in REQUIRED_TEXT_FIELDS:
        value = data.get(name)
        if value is None or not str(value).strip():
            errors[name] = ["This field is required."]
    if not data.get("access_secret"):
        errors["access_secret"] = ["This field is required."]
    if errors:
        raise ValidationError(errors)


def _delete_orphan_post(post: BoardPost) -> None:
    """Undo the public post after its detail row failed to save."""

    try:
        post.delete()
    except Exception as exc:
        logger.exception(
            "Compensating delete of board post %s failed; manual cleanup needed", post.pk
        )
        raise ConsistencyError(
            "The assignment could not be created and its public post could not be removed.",
            ids={"post_id": post.pk},
        ) from exc


def create_assignment(caller: Caller, data: Mapping[str, Any]) -> AssignmentDetail:
    """Create the public post and the assignment detail as one unit.

    Required: ``title``, ``content``, ``class_level`` and ``access_secret``.
    The author is the caller. If the detail row cannot be written the
    already committed post is deleted again; if that delete fails too a
    :class:`ConsistencyError` naming the surviving post id is raised.
    """

    require_author(caller)
    _validate_required(data)

    max_submissions = _clean_max_submissions(data.get("max_submissions"))
    attempt_cap = _clean_attempt_cap(data.get("max_attempts_per_student"))
    instructor_id = _clean_instructor_id(data.get("instructor_id")) or caller.user_id

    # Committed on its own; undone below if the detail write fails.
    post = BoardPost.objects.create(
        title=data["title"].strip(),
        content=data["content"],
        post_type=BoardPost.PostType.ASSIGNMENT,
        author_id=caller.user_id,
    )
    try:
        with transaction.atomic():
            detail = AssignmentDetail(
                post=post,
                class_level=data["class_level"].strip(),
                due_date=data.get("due_date"),
                max_submissions=max_submissions,
                max_attempts_per_student=attempt_cap,
                instructor_id=instructor_id,
                reviewer_memo=data.get("reviewer_memo") or "",
            )
            detail.set_access_secret(data["access_secret"])
            detail.save()
    except Exception:
        logger.error("Assignment detail for post %s could not be saved", post.pk)
        _delete_orphan_post(post)
        raise

    logger.info(
        "Assignment %s created by %s for class level %s",
        detail.pk,
        caller.user_id,
        detail.class_level,
    )
    return get_assignment_or_404(detail.pk)


def list_assignments(
    caller: Caller, *, level: str | None = None, review_status: str | None = None
):
    queryset = access.listable_assignments(caller, _base_queryset())
    if level:
        queryset = queryset.filter(class_level=level)
    if review_status:
        queryset = queryset.filter(review_status=review_status)
    return queryset.order_by("-post__created_at", "-pk")


def increment_views(assignment: AssignmentDetail) -> bool:
    """Bump the view counter; a failure is logged and never reaches the reader."""

    try:
        with transaction.atomic():
            BoardPost.objects.filter(pk=assignment.post_id).update(views=F("views") + 1)
    except DatabaseError:
        logger.warning("Could not increment views of assignment %s", assignment.pk, exc_info=True)
        return False
    return True


def open_assignment(
    assignment_id, caller: Caller, supplied_secret: str | None = None
) -> AssignmentDetail:
    """Detail read: access gate, then view counter, then a fresh read."""

    assignment = get_assignment_or_404(assignment_id)
    access.require_access(assignment, supplied_secret, caller)
    if increment_views(assignment):
        assignment.post.refresh_from_db(fields=["views"])
    return assignment


def update_assignment(
    assignment_id, caller: Caller, changes: Mapping[str, Any]
) -> AssignmentDetail:
    """Apply only the fields present in ``changes``; always refresh ``updated_at``."""

    if not caller.is_authenticated:
        raise AuthenticationRequired()
    if not caller.is_reviewer:
        raise AuthorizationDenied("Only instructors and admins can edit assignments.")

    unknown = set(changes) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError({name: ["This field cannot be updated."] for name in sorted(unknown)})

    with transaction.atomic():
        try:
            assignment = (
                AssignmentDetail.objects.select_for_update()
                .select_related("post")
                .get(pk=assignment_id)
            )
        except (AssignmentDetail.DoesNotExist, ValueError, TypeError) as exc:
            raise NotFound("Assignment not found.") from exc

        if not access.can_manage(caller, assignment):
            raise AuthorizationDenied("You cannot edit this assignment.")

        post = assignment.post
        for name in ("title", "content", "class_level"):
            if name in changes and not str(changes[name] or "").strip():
                raise ValidationError({name: ["This field may not be blank."]})

        if "title" in changes:
            post.title = changes["title"].strip()
        if "content" in changes:
            post.content = changes["content"]
        if "class_level" in changes:
            assignment.class_level = changes["class_level"].strip()
        if "due_date" in changes:
            assignment.due_date = changes["due_date"]
        if "max_submissions" in changes:
            new_max = _clean_max_submissions(changes["max_submissions"])
            if new_max and new_max < assignment.current_submissions:
                raise ValidationError(
                    {"max_submissions": ["Cannot be lower than the number of submissions received."]}
                )
            assignment.max_submissions = new_max
        if "max_attempts_per_student" in changes:
            assignment.max_attempts_per_student = _clean_attempt_cap(
                changes["max_attempts_per_student"]
            )
        if "instructor_id" in changes:
            assignment.instructor_id = _clean_instructor_id(changes["instructor_id"])
        if "reviewer_memo" in changes:
            assignment.reviewer_memo = changes["reviewer_memo"] or ""
        if "access_secret" in changes:
            assignment.set_access_secret(changes["access_secret"])

        now = timezone.now()
        post.updated_at = now
        post.save()
        assignment.save()

    logger.info(
        "Assignment %s updated by %s: %s", assignment.pk, caller.user_id, sorted(changes)
    )
    return get_assignment_or_404(assignment.pk)


def delete_assignment(assignment_id, caller: Caller) -> None:
    """Remove the post, its detail and every submission of it."""

    if not caller.is_authenticated:
        raise AuthenticationRequired()

    assignment = get_assignment_or_404(assignment_id)
    if not access.can_delete(caller, assignment):
        raise AuthorizationDenied("Only the owning instructor or an admin can delete this assignment.")

    with transaction.atomic():
        submission_count = assignment.submissions.count()
        post_id = assignment.post_id
        BoardPost.objects.filter(pk=post_id).delete()

    logger.info(
        "Assignment %s (post %s) deleted by %s with %d submissions",
        assignment.pk,
        post_id,
        caller.user_id,
        submission_count,
    )


@transaction.atomic
def toggle_review_status(assignment_id, caller: Caller) -> AssignmentDetail:
    if not caller.is_authenticated:
        raise AuthenticationRequired()
    try:
        assignment = (
            AssignmentDetail.objects.select_for_update().select_related("post").get(pk=assignment_id)
        )
    except (AssignmentDetail.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFound("Assignment not found.") from exc
    access.require_reviewer(caller, assignment)

    if assignment.review_status == AssignmentDetail.ReviewStatus.COMPLETED:
        assignment.review_status = AssignmentDetail.ReviewStatus.PENDING
        assignment.reviewed_by = None
        assignment.reviewed_at = None
    else:
        assignment.review_status = AssignmentDetail.ReviewStatus.COMPLETED
        assignment.reviewed_by_id = caller.user_id
        assignment.reviewed_at = timezone.now()
    assignment.save(update_fields=["review_status", "reviewed_by", "reviewed_at", "updated_at"])
    return get_assignment_or_404(assignment.pk)
