from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import TestCase

from accounts.models import (
    GUEST,
    InstructorCohort,
    Role,
    UserProfile,
    get_caller,
    normalize_role,
)

User = get_user_model()


class NormalizeRoleTests(TestCase):
    def test_known_roles_and_aliases(self):
        self.assertEqual(normalize_role("admin"), Role.ADMIN)
        self.assertEqual(normalize_role(" Instructor "), Role.INSTRUCTOR)
        self.assertEqual(normalize_role("teacher"), Role.INSTRUCTOR)
        self.assertEqual(normalize_role("user"), Role.STUDENT)

    def test_unknown_role_falls_back_to_student(self):
        self.assertEqual(normalize_role("janitor"), Role.STUDENT)
        self.assertEqual(normalize_role(None), Role.STUDENT)


class UserProfileTests(TestCase):
    def test_profile_created_with_user(self):
        user = User.objects.create_user(username="alice", password="pass")

        profile = UserProfile.objects.get(user=user)

        self.assertEqual(profile.role, Role.STUDENT)
        self.assertEqual(profile.class_level, "")

    def test_alias_is_normalized_on_save(self):
        user = User.objects.create_user(username="kim", password="pass")
        profile = UserProfile.objects.get(user=user)
        profile.role = "teacher"
        profile.save()

        profile.refresh_from_db()
        self.assertEqual(profile.role, Role.INSTRUCTOR)


class GetCallerTests(TestCase):
    def test_anonymous_is_guest(self):
        caller = get_caller(AnonymousUser())

        self.assertIs(caller, GUEST)
        self.assertFalse(caller.is_authenticated)
        self.assertEqual(caller.cohorts, frozenset())

    def test_student_cohort_is_own_class_level(self):
        user = User.objects.create_user(username="alice", password="pass", first_name="Alice", last_name="Lee")
        UserProfile.objects.filter(user=user).update(class_level="grade-10")

        caller = get_caller(user)

        self.assertEqual(caller.role, Role.STUDENT)
        self.assertEqual(caller.cohorts, frozenset({"grade-10"}))
        self.assertEqual(caller.display_name, "Alice Lee")
        self.assertFalse(caller.is_reviewer)

    def test_instructor_cohorts_come_from_assignments(self):
        user = User.objects.create_user(username="kim", password="pass")
        UserProfile.objects.filter(user=user).update(role=Role.INSTRUCTOR, class_level="staff")
        InstructorCohort.objects.create(instructor=user, class_level="grade-10")
        InstructorCohort.objects.create(instructor=user, class_level="grade-11")

        caller = get_caller(user)

        self.assertTrue(caller.is_instructor)
        self.assertTrue(caller.is_reviewer)
        self.assertEqual(caller.cohorts, frozenset({"grade-10", "grade-11"}))
        self.assertEqual(caller.display_name, "kim")

    def test_superuser_is_admin(self):
        user = User.objects.create_superuser(username="root", password="pass", email="root@example.com")

        caller = get_caller(user)

        self.assertTrue(caller.is_admin)
        self.assertTrue(caller.is_reviewer)
