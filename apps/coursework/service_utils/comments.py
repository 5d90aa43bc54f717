"""Discussion threads attached to a single submission."""
from __future__ import annotations

import logging

from django.db.models import QuerySet

from accounts.models import Caller
from apps.coursework.models import Submission, SubmissionComment

from ..exceptions import AuthenticationRequired, AuthorizationDenied, NotFound, ValidationError
from . import access

logger = logging.getLogger(__name__)

ANONYMOUS_AUTHOR = "Anonymous"


def _readable_submission(assignment_id, submission_id, caller: Caller) -> Submission:
    if not caller.is_authenticated:
        raise AuthenticationRequired()
    try:
        submission = Submission.objects.select_related("assignment", "assignment__post").get(
            pk=submission_id, assignment_id=assignment_id
        )
    except (Submission.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFound("Submission not found.") from exc
    if not access.can_read_submission(caller, submission):
        raise AuthorizationDenied("You cannot view this submission.")
    return submission


def list_comments(assignment_id, submission_id, caller: Caller) -> QuerySet:
    submission = _readable_submission(assignment_id, submission_id, caller)
    return submission.comments.select_related("author")


def add_comment(assignment_id, submission_id, caller: Caller, content: str) -> SubmissionComment:
    submission = _readable_submission(assignment_id, submission_id, caller)
    if not content or not content.strip():
        raise ValidationError({"content": ["Comment text may not be blank."]})
    comment = SubmissionComment.objects.create(
        submission=submission,
        author_id=caller.user_id,
        author_name=caller.display_name or ANONYMOUS_AUTHOR,
        content=content.strip(),
    )
    logger.debug("Comment %s added to submission %s", comment.pk, submission.pk)
    return comment


def delete_comment(assignment_id, submission_id, comment_id, caller: Caller) -> None:
    """Comments can be removed by their author or by an admin."""

    submission = _readable_submission(assignment_id, submission_id, caller)
    try:
        comment = submission.comments.get(pk=comment_id)
    except (SubmissionComment.DoesNotExist, ValueError, TypeError) as exc:
        raise NotFound("Comment not found.") from exc
    if not (caller.is_admin or comment.author_id == caller.user_id):
        raise AuthorizationDenied("You can only delete your own comments.")
    comment.delete()
