from django.test import TestCase

from accounts.models import GUEST
from apps.coursework.exceptions import AuthenticationRequired, AuthorizationDenied
from apps.coursework.service_utils import access

from . import factories


class AccessGateTests(TestCase):
    def setUp(self):
        self.owner = factories.create_instructor(cohorts=["grade-10"])
        self.assignment = factories.create_assignment(author=self.owner, access_secret="abc123")
        self.student = factories.caller_for(factories.create_student())

    def test_secret_is_stored_hashed(self):
        self.assertTrue(self.assignment.has_password)
        self.assertNotIn("abc123", self.assignment.access_secret_hash)

    def test_secret_comparison_is_case_sensitive(self):
        denied = access.check_access(self.assignment, "ABC123", self.student)
        granted = access.check_access(self.assignment, "abc123", self.student)

        self.assertFalse(denied)
        self.assertEqual(denied.reason, "secret_mismatch")
        self.assertTrue(granted)
        self.assertEqual(granted, access.GRANTED_SECRET)

    def test_secret_is_not_trimmed(self):
        self.assertFalse(access.check_access(self.assignment, " abc123", self.student))

    def test_missing_secret_is_denied(self):
        self.assertFalse(access.check_access(self.assignment, None, self.student))
        self.assertFalse(access.check_access(self.assignment, "", GUEST))

    def test_unprotected_assignment_is_open(self):
        open_assignment = factories.create_assignment(author=self.owner, access_secret=None)

        decision = access.check_access(open_assignment, None, GUEST)

        self.assertFalse(open_assignment.has_password)
        self.assertEqual(decision, access.GRANTED_UNPROTECTED)

    def test_admin_and_owner_bypass_secret(self):
        admin = factories.caller_for(factories.create_admin())
        owner = factories.caller_for(self.owner)

        self.assertEqual(access.check_access(self.assignment, None, admin), access.GRANTED_PRIVILEGED)
        self.assertEqual(access.check_access(self.assignment, "wrong", owner), access.GRANTED_PRIVILEGED)

    def test_other_instructor_needs_secret(self):
        other = factories.caller_for(factories.create_instructor(cohorts=["grade-10"]))

        self.assertFalse(access.check_access(self.assignment, None, other))

    def test_require_access_raises_and_logs_without_secret(self):
        with self.assertLogs("apps.coursework.service_utils.access", level="INFO") as captured:
            with self.assertRaises(AuthorizationDenied):
                access.require_access(self.assignment, "nope", self.student)

        output = "\n".join(captured.output)
        self.assertIn("denied", output)
        self.assertNotIn("nope", output)
        self.assertNotIn("abc123", output)


class VisibilityTests(TestCase):
    def setUp(self):
        self.grade10 = factories.create_assignment(class_level="grade-10")
        self.grade11 = factories.create_assignment(class_level="grade-11")

    def _listed(self, caller):
        return set(access.listable_assignments(caller).values_list("pk", flat=True))

    def test_admin_lists_everything(self):
        admin = factories.caller_for(factories.create_admin())
        self.assertEqual(self._listed(admin), {self.grade10.pk, self.grade11.pk})

    def test_instructor_lists_assigned_cohorts(self):
        instructor = factories.caller_for(factories.create_instructor(cohorts=["grade-11", "grade-12"]))
        self.assertEqual(self._listed(instructor), {self.grade11.pk})

    def test_student_lists_own_class_level(self):
        student = factories.caller_for(factories.create_student(class_level="grade-10"))
        self.assertEqual(self._listed(student), {self.grade10.pk})

    def test_student_without_class_level_lists_nothing(self):
        student = factories.caller_for(factories.create_student(class_level=""))
        self.assertEqual(self._listed(student), set())

    def test_guest_lists_nothing(self):
        self.assertEqual(self._listed(GUEST), set())

    def test_reviewer_rules(self):
        outsider = factories.caller_for(factories.create_instructor(cohorts=["grade-12"]))
        teacher = factories.caller_for(factories.create_instructor(cohorts=["grade-10"]))
        student = factories.caller_for(factories.create_student())
        owner = factories.caller_for(self.grade11.post.author)

        self.assertTrue(access.can_review(teacher, self.grade10))
        self.assertFalse(access.can_review(outsider, self.grade10))
        self.assertFalse(access.can_review(student, self.grade10))
        self.assertTrue(access.can_review(owner, self.grade11))

        with self.assertRaises(AuthenticationRequired):
            access.require_reviewer(GUEST, self.grade10)
        with self.assertRaises(AuthorizationDenied):
            access.require_reviewer(student, self.grade10)

    def test_only_owner_or_admin_can_delete(self):
        cohort_teacher = factories.caller_for(factories.create_instructor(cohorts=["grade-10"]))
        owner = factories.caller_for(self.grade10.post.author)

        self.assertFalse(access.can_delete(cohort_teacher, self.grade10))
        self.assertTrue(access.can_delete(owner, self.grade10))

    def test_students_only_see_their_own_submissions(self):
        alice = factories.create_student("alice")
        bob = factories.create_student("bob")
        own = factories.create_submission(self.grade10, student=alice)
        factories.create_submission(self.grade10, student=bob)
        teacher = factories.caller_for(self.grade10.post.author)

        visible = access.visible_submissions(factories.caller_for(alice), self.grade10)

        self.assertEqual(list(visible), [own])
        self.assertEqual(access.visible_submissions(teacher, self.grade10).count(), 2)
        with self.assertRaises(AuthenticationRequired):
            access.visible_submissions(GUEST, self.grade10)
