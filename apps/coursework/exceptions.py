"""Error taxonomy of the coursework API.

Every error is a Django REST framework ``APIException`` so views can let them
propagate; :func:`apps.coursework.api.handlers.exception_handler` renders
them as ``{"detail": ..., "code": ...}``.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from rest_framework import exceptions, status
from rest_framework.exceptions import ValidationError


class AuthenticationRequired(exceptions.NotAuthenticated):
    default_detail = "Authentication is required."
    default_code = "authentication_required"


class AuthorizationDenied(exceptions.PermissionDenied):
    default_detail = "You are not allowed to perform this action."
    default_code = "authorization_denied"


class NotFound(exceptions.NotFound):
    default_code = "not_found"


class SubmissionRejected(exceptions.APIException):
    """Base for expected business-rule rejections of a submission."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "The submission was rejected."
    default_code = "submission_rejected"


class DeadlineExceeded(SubmissionRejected):
    default_detail = "The due date has passed. Submissions are closed."
    default_code = "deadline_exceeded"


class CapacityExceeded(SubmissionRejected):
    default_detail = "This assignment has reached its submission limit."
    default_code = "capacity_exceeded"


class AttemptCapExceeded(SubmissionRejected):
    default_detail = "You have already used all your submission attempts."
    default_code = "attempt_cap_exceeded"


class StorageError(exceptions.APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "The file could not be stored. Please try again."
    default_code = "storage_error"


class ConsistencyError(exceptions.APIException):
    """A multi-record write failed half way and could not be undone.

    ``ids`` names the records left behind so they can be cleaned up by hand.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "The records are in an inconsistent state."
    default_code = "consistency_error"

    def __init__(self, detail: Optional[str] = None, ids: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail)
        self.ids = ids or {}


__all__ = [
    "AttemptCapExceeded",
    "AuthenticationRequired",
    "AuthorizationDenied",
    "CapacityExceeded",
    "ConsistencyError",
    "DeadlineExceeded",
    "NotFound",
    "StorageError",
    "SubmissionRejected",
    "ValidationError",
]
