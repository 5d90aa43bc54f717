from django.urls import path

from .views import (
    AssignmentAccessView,
    AssignmentDetailView,
    AssignmentListCreateView,
    AssignmentReviewView,
    SubmissionCheckView,
    SubmissionCommentDetailView,
    SubmissionCommentListCreateView,
    SubmissionDetailView,
    SubmissionFeedbackView,
    SubmissionListCreateView,
    SubmissionStatusView,
)


urlpatterns = [
    path("api/assignments/", AssignmentListCreateView.as_view(), name="assignment-list"),
    path(
        "api/assignments/<int:assignment_id>/",
        AssignmentDetailView.as_view(),
        name="assignment-detail",
    ),
    path(
        "api/assignments/<int:assignment_id>/access/",
        AssignmentAccessView.as_view(),
        name="assignment-access",
    ),
    path(
        "api/assignments/<int:assignment_id>/review/",
        AssignmentReviewView.as_view(),
        name="assignment-review",
    ),
    path(
        "api/assignments/<int:assignment_id>/submissions/",
        SubmissionListCreateView.as_view(),
        name="submission-list",
    ),
    path(
        "api/assignments/<int:assignment_id>/submissions/check/",
        SubmissionStatusView.as_view(),
        name="submission-status",
    ),
    path(
        "api/assignments/<int:assignment_id>/submissions/<int:submission_id>/",
        SubmissionDetailView.as_view(),
        name="submission-detail",
    ),
    path(
        "api/assignments/<int:assignment_id>/submissions/<int:submission_id>/check/",
        SubmissionCheckView.as_view(),
        name="submission-check",
    ),
    path(
        "api/assignments/<int:assignment_id>/submissions/<int:submission_id>/feedback/",
        SubmissionFeedbackView.as_view(),
        name="submission-feedback",
    ),
    path(
        "api/assignments/<int:assignment_id>/submissions/<int:submission_id>/comments/",
        SubmissionCommentListCreateView.as_view(),
        name="submission-comments",
    ),
    path(
        "api/assignments/<int:assignment_id>/submissions/<int:submission_id>/comments/<int:comment_id>/",
        SubmissionCommentDetailView.as_view(),
        name="submission-comment-detail",
    ),
]
