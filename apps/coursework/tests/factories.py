from __future__ import annotations

import shutil
import tempfile
from datetime import datetime
from typing import Iterable
from uuid import uuid4

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings

from accounts.models import Caller, InstructorCohort, Role, UserProfile, get_caller
from apps.coursework.models import AssignmentDetail, BoardPost, Submission


def create_user(
    username: str | None = None,
    *,
    role: str = Role.STUDENT,
    class_level: str = "",
    cohorts: Iterable[str] = (),
    is_superuser: bool = False,
    password: str = "pass",
):
    user_model = get_user_model()
    username = username or f"user-{uuid4().hex[:10]}"
    if is_superuser:
        user = user_model.objects.create_superuser(
            username=username, password=password, email=f"{username}@example.com"
        )
    else:
        user = user_model.objects.create_user(username=username, password=password)
    UserProfile.objects.filter(user=user).update(role=role, class_level=class_level)
    for level in cohorts:
        InstructorCohort.objects.create(instructor=user, class_level=level)
    return user


def create_instructor(username: str | None = None, *, cohorts: Iterable[str] = ("grade-10",)):
    return create_user(username, role=Role.INSTRUCTOR, cohorts=cohorts)


def create_student(username: str | None = None, *, class_level: str = "grade-10"):
    return create_user(username, role=Role.STUDENT, class_level=class_level)


def create_admin(username: str | None = None):
    return create_user(username, role=Role.ADMIN, is_superuser=True)


def caller_for(user) -> Caller:
    return get_caller(user)


def create_assignment(
    *,
    author=None,
    instructor=None,
    title: str | None = None,
    content: str = "Solve exercises 1-5 and upload a PDF.",
    class_level: str = "grade-10",
    access_secret: str | None = "abc123",
    due_date: datetime | None = None,
    max_submissions: int = 0,
    max_attempts_per_student: int = 1,
    current_submissions: int = 0,
) -> AssignmentDetail:
    author = author or create_instructor(cohorts=[class_level])
    post = BoardPost.objects.create(
        title=title or f"Assignment {uuid4().hex[:6]}",
        content=content,
        author=author,
    )
    detail = AssignmentDetail(
        post=post,
        class_level=class_level,
        due_date=due_date,
        max_submissions=max_submissions,
        current_submissions=current_submissions,
        max_attempts_per_student=max_attempts_per_student,
        instructor=instructor or author,
    )
    detail.set_access_secret(access_secret)
    detail.save()
    return detail


def create_submission(
    assignment: AssignmentDetail,
    *,
    student=None,
    student_name: str | None = None,
    storage_key: str = "",
    **fields,
) -> Submission:
    name = student_name or (student.get_username() if student is not None else "Guest")
    return Submission.objects.create(
        assignment=assignment,
        student=student,
        student_name=name,
        file_url=fields.pop("file_url", "https://files.example.com/answer.pdf"),
        file_name=fields.pop("file_name", "answer.pdf"),
        storage_key=storage_key,
        **fields,
    )


def make_upload(
    name: str = "answer.pdf",
    content: bytes = b"%PDF-1.4 homework",
    content_type: str = "application/pdf",
) -> SimpleUploadedFile:
    return SimpleUploadedFile(name, content, content_type=content_type)


class TempMediaMixin:
    """Point ``default_storage`` at a throw-away directory for each test."""

    def setUp(self):
        super().setUp()
        media_root = tempfile.mkdtemp(prefix="courseboard-media-")
        self.addCleanup(shutil.rmtree, media_root, ignore_errors=True)
        override = override_settings(
            MEDIA_ROOT=media_root,
            MEDIA_URL="/media/",
            STORAGES={
                "default": {
                    "BACKEND": "django.core.files.storage.FileSystemStorage",
                    "OPTIONS": {"location": media_root},
                },
                "staticfiles": {
                    "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
                },
            },
        )
        override.enable()
        self.addCleanup(override.disable)
        self.media_root = media_root
