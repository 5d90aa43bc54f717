from rest_framework import serializers

from ..models import AssignmentDetail, Submission, SubmissionComment
from ..utils.rendering import render_post_body


class UserSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(read_only=True)


class AssignmentSerializer(serializers.ModelSerializer):
    """Combined view of the board post and its assignment detail.

    The access secret is never part of the output; ``has_password`` tells
    clients whether one is required.
    """

    post_id = serializers.IntegerField(read_only=True)
    title = serializers.CharField(source="post.title", read_only=True)
    content = serializers.CharField(source="post.content", read_only=True)
    content_html = serializers.SerializerMethodField()
    post_type = serializers.CharField(source="post.post_type", read_only=True)
    views = serializers.IntegerField(source="post.views", read_only=True)
    author = UserSummarySerializer(source="post.author", read_only=True)
    instructor = UserSummarySerializer(read_only=True)
    reviewed_by = UserSummarySerializer(read_only=True)
    has_password = serializers.BooleanField(read_only=True)
    is_full = serializers.BooleanField(read_only=True)
    created_at = serializers.DateTimeField(source="post.created_at", read_only=True)
    updated_at = serializers.DateTimeField(source="post.updated_at", read_only=True)

    class Meta:
        model = AssignmentDetail
        fields = [
            "id",
            "post_id",
            "title",
            "content",
            "content_html",
            "post_type",
            "views",
            "author",
            "class_level",
            "due_date",
            "max_submissions",
            "current_submissions",
            "max_attempts_per_student",
            "is_full",
            "has_password",
            "instructor",
            "reviewer_memo",
            "review_status",
            "reviewed_by",
            "reviewed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_content_html(self, obj):
        return render_post_body(obj.post.content)


class AssignmentListSerializer(AssignmentSerializer):
    class Meta(AssignmentSerializer.Meta):
        fields = [
            name
            for name in AssignmentSerializer.Meta.fields
            if name not in ("content", "content_html", "reviewer_memo")
        ]
        read_only_fields = fields


class AssignmentWriteSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    content = serializers.CharField(trim_whitespace=False)
    class_level = serializers.CharField(max_length=64)
    access_secret = serializers.CharField(
        write_only=True, trim_whitespace=False, max_length=128
    )
    due_date = serializers.DateTimeField(required=False, allow_null=True)
    max_submissions = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    max_attempts_per_student = serializers.IntegerField(
        required=False, allow_null=True, min_value=1
    )
    instructor_id = serializers.IntegerField(required=False, allow_null=True)
    reviewer_memo = serializers.CharField(required=False, allow_blank=True)


class AssignmentUpdateSerializer(AssignmentWriteSerializer):
    """Partial update; an empty or null ``access_secret`` removes the password."""

    access_secret = serializers.CharField(
        write_only=True,
        trim_whitespace=False,
        max_length=128,
        required=False,
        allow_blank=True,
        allow_null=True,
    )


class SubmissionSerializer(serializers.ModelSerializer):
    assignment_id = serializers.IntegerField(read_only=True)
    student_id = serializers.IntegerField(read_only=True, allow_null=True)
    checked_by = UserSummarySerializer(read_only=True)
    comment_count = serializers.SerializerMethodField()

    class Meta:
        model = Submission
        fields = [
            "id",
            "assignment_id",
            "student_id",
            "student_name",
            "file_url",
            "file_name",
            "comment",
            "submitted_at",
            "is_checked",
            "checked_by",
            "checked_at",
            "feedback",
            "comment_count",
        ]
        read_only_fields = fields

    def get_comment_count(self, obj):
        annotated = getattr(obj, "comment_total", None)
        if annotated is not None:
            return annotated
        return obj.comments.count()


class OwnSubmissionSerializer(serializers.ModelSerializer):
    """What the pre-check returns about the caller's own submissions."""

    class Meta:
        model = Submission
        fields = ["id", "student_name", "file_name", "file_url", "submitted_at", "is_checked"]
        read_only_fields = fields


class SubmissionCreateSerializer(serializers.Serializer):
    file = serializers.FileField(allow_empty_file=True)
    student_name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    comment = serializers.CharField(required=False, allow_blank=True)


class SubmissionStatusSerializer(serializers.Serializer):
    assignment_id = serializers.IntegerField()
    has_submitted = serializers.BooleanField()
    submission_count = serializers.IntegerField()
    max_attempts_per_student = serializers.IntegerField()
    remaining_attempts = serializers.IntegerField()
    max_submissions = serializers.IntegerField()
    current_submissions = serializers.IntegerField()
    remaining_capacity = serializers.IntegerField(allow_null=True)
    deadline_passed = serializers.BooleanField()
    can_submit_more = serializers.BooleanField()
    submissions = OwnSubmissionSerializer(many=True)


class SubmissionCommentSerializer(serializers.ModelSerializer):
    author_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = SubmissionComment
        fields = ["id", "submission", "author_id", "author_name", "content", "created_at"]
        read_only_fields = ["id", "submission", "author_id", "author_name", "created_at"]
