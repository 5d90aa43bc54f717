from django.db.models import Count
from rest_framework import permissions, serializers, status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import get_caller

from ..models import AssignmentDetail
from ..service_utils import access, comments, ledger, records, review
from .serializers import (
    AssignmentListSerializer,
    AssignmentSerializer,
    AssignmentUpdateSerializer,
    AssignmentWriteSerializer,
    SubmissionCommentSerializer,
    SubmissionCreateSerializer,
    SubmissionSerializer,
    SubmissionStatusSerializer,
)

SECRET_HEADER = "X-Assignment-Secret"


class CourseworkAPIView(APIView):
    """Base view: resolves the caller and the supplied access secret."""

    permission_classes = [permissions.AllowAny]

    def get_caller(self):
        return get_caller(self.request.user)

    def get_supplied_secret(self):
        return self.request.headers.get(SECRET_HEADER)


class AssignmentListCreateView(CourseworkAPIView):
    def get(self, request, *args, **kwargs):
        review_status = request.query_params.get("review_status") or None
        if review_status and review_status not in AssignmentDetail.ReviewStatus.values:
            raise serializers.ValidationError({"review_status": ["Unknown review status."]})
        assignments = records.list_assignments(
            self.get_caller(),
            level=request.query_params.get("level") or None,
            review_status=review_status,
        )
        serializer = AssignmentListSerializer(assignments, many=True)
        return Response(serializer.data)

    def post(self, request, *args, **kwargs):
        caller = self.get_caller()
        records.require_author(caller)
        serializer = AssignmentWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = records.create_assignment(caller, serializer.validated_data)
        return Response(AssignmentSerializer(assignment).data, status=status.HTTP_201_CREATED)


class AssignmentDetailView(CourseworkAPIView):
    def get(self, request, assignment_id: int, *args, **kwargs):
        assignment = records.open_assignment(
            assignment_id, self.get_caller(), self.get_supplied_secret()
        )
        return Response(AssignmentSerializer(assignment).data)

    def patch(self, request, assignment_id: int, *args, **kwargs):
        serializer = AssignmentUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        assignment = records.update_assignment(
            assignment_id, self.get_caller(), serializer.validated_data
        )
        return Response(AssignmentSerializer(assignment).data)

    def delete(self, request, assignment_id: int, *args, **kwargs):
        records.delete_assignment(assignment_id, self.get_caller())
        return Response(status=status.HTTP_204_NO_CONTENT)


class AssignmentAccessView(CourseworkAPIView):
    """Check an access secret without opening the assignment."""

    class InputSerializer(serializers.Serializer):
        secret = serializers.CharField(
            required=False, allow_blank=True, allow_null=True, trim_whitespace=False
        )

    def post(self, request, assignment_id: int, *args, **kwargs):
        serializer = self.InputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = records.get_assignment_or_404(assignment_id)
        decision = access.require_access(
            assignment, serializer.validated_data.get("secret"), self.get_caller()
        )
        return Response({"granted": True, "reason": decision.reason})


class AssignmentReviewView(CourseworkAPIView):
    def patch(self, request, assignment_id: int, *args, **kwargs):
        assignment = records.toggle_review_status(assignment_id, self.get_caller())
        return Response(AssignmentSerializer(assignment).data)


class SubmissionListCreateView(CourseworkAPIView):
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def get(self, request, assignment_id: int, *args, **kwargs):
        assignment = records.get_assignment_or_404(assignment_id)
        submissions = access.visible_submissions(self.get_caller(), assignment).annotate(
            comment_total=Count("comments")
        )
        return Response(SubmissionSerializer(submissions, many=True).data)

    def post(self, request, assignment_id: int, *args, **kwargs):
        caller = self.get_caller()
        assignment = records.get_assignment_or_404(assignment_id)
        access.require_access(assignment, self.get_supplied_secret(), caller)

        serializer = SubmissionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        identity = ledger.resolve_identity(caller, data.get("student_name"))
        submission = ledger.submit(
            assignment.pk, identity, data["file"], comment=data.get("comment", "")
        )
        return Response(SubmissionSerializer(submission).data, status=status.HTTP_201_CREATED)


class SubmissionStatusView(CourseworkAPIView):
    """Read-only pre-check: has this identity submitted, and may it submit again."""

    class InputSerializer(serializers.Serializer):
        student_name = serializers.CharField(required=False, allow_blank=True, max_length=150)

    def post(self, request, assignment_id: int, *args, **kwargs):
        caller = self.get_caller()
        assignment = records.get_assignment_or_404(assignment_id)
        access.require_access(assignment, self.get_supplied_secret(), caller)

        serializer = self.InputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        identity = ledger.resolve_identity(caller, serializer.validated_data.get("student_name"))
        result = ledger.submission_status(assignment.pk, identity)
        return Response(SubmissionStatusSerializer(result).data)


class SubmissionDetailView(CourseworkAPIView):
    def delete(self, request, assignment_id: int, submission_id: int, *args, **kwargs):
        ledger.remove_submission(assignment_id, submission_id, self.get_caller())
        return Response(status=status.HTTP_204_NO_CONTENT)


class SubmissionCheckView(CourseworkAPIView):
    """Mark a submission checked or unchecked; omitting ``is_checked`` flips it."""

    class InputSerializer(serializers.Serializer):
        is_checked = serializers.BooleanField(required=False, allow_null=True, default=None)
        feedback = serializers.CharField(
            required=False, allow_blank=True, allow_null=True, default=None
        )

    def patch(self, request, assignment_id: int, submission_id: int, *args, **kwargs):
        serializer = self.InputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        submission = review.set_checked(
            submission_id,
            self.get_caller(),
            checked=serializer.validated_data["is_checked"],
            feedback=serializer.validated_data["feedback"],
            assignment_id=assignment_id,
        )
        return Response(SubmissionSerializer(submission).data)


class SubmissionFeedbackView(CourseworkAPIView):
    class InputSerializer(serializers.Serializer):
        feedback = serializers.CharField(allow_blank=True, allow_null=True)

    def patch(self, request, assignment_id: int, submission_id: int, *args, **kwargs):
        serializer = self.InputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        submission = review.set_feedback(
            submission_id,
            self.get_caller(),
            serializer.validated_data["feedback"],
            assignment_id=assignment_id,
        )
        return Response(SubmissionSerializer(submission).data)


class SubmissionCommentListCreateView(CourseworkAPIView):
    def get(self, request, assignment_id: int, submission_id: int, *args, **kwargs):
        thread = comments.list_comments(assignment_id, submission_id, self.get_caller())
        return Response(SubmissionCommentSerializer(thread, many=True).data)

    def post(self, request, assignment_id: int, submission_id: int, *args, **kwargs):
        serializer = SubmissionCommentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = comments.add_comment(
            assignment_id,
            submission_id,
            self.get_caller(),
            serializer.validated_data["content"],
        )
        return Response(SubmissionCommentSerializer(comment).data, status=status.HTTP_201_CREATED)


class SubmissionCommentDetailView(CourseworkAPIView):
    def delete(
        self, request, assignment_id: int, submission_id: int, comment_id: int, *args, **kwargs
    ):
        comments.delete_comment(assignment_id, submission_id, comment_id, self.get_caller())
        return Response(status=status.HTTP_204_NO_CONTENT)
