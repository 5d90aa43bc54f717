from __future__ import annotations

from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.db import models
from django.utils import timezone


class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class BoardPost(TimeStampedModel):
    """Public part of a board entry: what every visitor of the board sees."""

    class PostType(models.TextChoices):
        FREE = "free", "Free"
        ASSIGNMENT = "assignment", "Assignment"

    title = models.CharField(max_length=255)
    content = models.TextField()
    post_type = models.CharField(
        max_length=16, choices=PostType.choices, default=PostType.ASSIGNMENT
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="board_posts",
    )
    views = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return self.title


class AssignmentDetail(TimeStampedModel):
    """Assignment-specific part of a board post.

    ``max_submissions == 0`` means the assignment accepts any number of
    submissions. ``current_submissions`` is only changed through conditional
    ``UPDATE`` statements in :mod:`apps.coursework.service_utils.ledger`.
    """

    class ReviewStatus(models.TextChoices):
        PENDING = "pending", "Pending"
        COMPLETED = "completed", "Completed"

    post = models.OneToOneField(
        BoardPost, on_delete=models.CASCADE, related_name="assignment"
    )
    class_level = models.CharField(max_length=64, db_index=True)
    due_date = models.DateTimeField(null=True, blank=True)
    max_submissions = models.PositiveIntegerField(default=0)
    current_submissions = models.PositiveIntegerField(default=0)
    max_attempts_per_student = models.PositiveIntegerField(default=1)
    access_secret_hash = models.CharField(max_length=128, blank=True)
    instructor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="instructed_assignments",
    )
    reviewer_memo = models.TextField(blank=True)
    review_status = models.CharField(
        max_length=16, choices=ReviewStatus.choices, default=ReviewStatus.PENDING
    )
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviewed_assignments",
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(max_submissions=0)
                | models.Q(current_submissions__lte=models.F("max_submissions")),
                name="coursework_submissions_within_capacity",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"{self.post.title} [{self.class_level}]"

    @property
    def has_password(self) -> bool:
        return bool(self.access_secret_hash)

    @property
    def is_unlimited(self) -> bool:
        return self.max_submissions == 0

    @property
    def is_full(self) -> bool:
        return not self.is_unlimited and self.current_submissions >= self.max_submissions

    def set_access_secret(self, raw_secret: str | None) -> None:
        self.access_secret_hash = make_password(raw_secret) if raw_secret else ""

    def verify_access_secret(self, raw_secret: str | None) -> bool:
        if not self.access_secret_hash:
            return True
        if raw_secret is None:
            return False
        return check_password(raw_secret, self.access_secret_hash)

    def deadline_passed(self, now=None) -> bool:
        if self.due_date is None:
            return False
        now = now or timezone.now()
        return now > self.due_date

    def is_owned_by(self, user_id: int | None) -> bool:
        if user_id is None:
            return False
        return user_id in (self.post.author_id, self.instructor_id)


class Submission(models.Model):
    assignment = models.ForeignKey(
        AssignmentDetail, on_delete=models.CASCADE, related_name="submissions"
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="coursework_submissions",
    )
    student_name = models.CharField(max_length=150)
    file_url = models.URLField(max_length=1024)
    file_name = models.CharField(max_length=255)
    storage_key = models.CharField(max_length=512, blank=True)
    comment = models.TextField(blank=True)
    submitted_at = models.DateTimeField(default=timezone.now)
    is_checked = models.BooleanField(default=False)
    checked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="checked_submissions",
    )
    checked_at = models.DateTimeField(null=True, blank=True)
    feedback = models.TextField(null=True, blank=True)

    class Meta:
        ordering = ["-submitted_at", "-id"]
        indexes = [
            models.Index(fields=["assignment", "student"], name="coursework_sub_student_idx"),
            models.Index(fields=["assignment", "student_name"], name="coursework_sub_name_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"{self.student_name} -> {self.assignment_id}"


class SubmissionComment(models.Model):
    submission = models.ForeignKey(
        Submission, on_delete=models.CASCADE, related_name="comments"
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="submission_comments",
    )
    author_name = models.CharField(max_length=150, default="Anonymous")
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"{self.author_name}: {self.content[:30]}"
