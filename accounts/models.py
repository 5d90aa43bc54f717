from __future__ import annotations

from dataclasses import dataclass, field

from django.conf import settings
from django.db import models


class Role(models.TextChoices):
    ADMIN = "admin", "Admin"
    INSTRUCTOR = "instructor", "Instructor"
    STUDENT = "student", "Student"


GUEST_ROLE = "guest"

# Role names used by older profile imports.
ROLE_ALIASES = {
    "teacher": Role.INSTRUCTOR,
    "user": Role.STUDENT,
}


def normalize_role(value: str | None) -> str:
    """Map an external role name onto one of :class:`Role` values.

    Unknown or empty names fall back to ``student``.
    """

    value = (value or "").strip().lower()
    if value in Role.values:
        return value
    return ROLE_ALIASES.get(value, Role.STUDENT)


class UserProfile(models.Model):
    """Role and cohort of a user as supplied by the identity provider."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile"
    )
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.STUDENT)
    class_level = models.CharField(max_length=64, blank=True, db_index=True)
    display_name = models.CharField(max_length=150, blank=True)

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"{self.user.username} ({self.role})"

    def save(self, *args, **kwargs):
        self.role = normalize_role(self.role)
        return super().save(*args, **kwargs)


class InstructorCohort(models.Model):
    """Cohort (class level) an instructor is responsible for."""

    instructor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="cohort_assignments"
    )
    class_level = models.CharField(max_length=64)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("instructor", "class_level")
        indexes = [models.Index(fields=["class_level"], name="accounts_cohort_level_idx")]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"{self.instructor} · {self.class_level}"


@dataclass(frozen=True)
class Caller:
    """The identity a request acts as.

    Guests have no ``user_id`` and no cohorts.
    """

    user_id: int | None
    role: str
    cohorts: frozenset[str] = field(default_factory=frozenset)
    display_name: str = ""

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_instructor(self) -> bool:
        return self.role == Role.INSTRUCTOR

    @property
    def is_reviewer(self) -> bool:
        return self.role in (Role.ADMIN, Role.INSTRUCTOR)


GUEST = Caller(user_id=None, role=GUEST_ROLE)


def get_caller(user) -> Caller:
    """Resolve the :class:`Caller` for a Django user (or anonymous user)."""

    if user is None or not user.is_authenticated:
        return GUEST

    profile = UserProfile.objects.filter(user=user).first()
    if user.is_superuser:
        role = Role.ADMIN
    elif profile is not None:
        role = profile.role
    else:
        role = Role.STUDENT

    if role == Role.INSTRUCTOR:
        cohorts = frozenset(
            InstructorCohort.objects.filter(instructor=user).values_list("class_level", flat=True)
        )
    elif profile is not None and profile.class_level:
        cohorts = frozenset([profile.class_level])
    else:
        cohorts = frozenset()

    display_name = ""
    if profile is not None:
        display_name = profile.display_name
    display_name = display_name or user.get_full_name() or user.get_username()

    return Caller(user_id=user.pk, role=role, cohorts=cohorts, display_name=display_name)
