from datetime import datetime, timedelta, timezone as dt_timezone
from unittest import mock

from django.test import TestCase

from accounts.models import GUEST
from apps.coursework.exceptions import AuthenticationRequired, AuthorizationDenied, NotFound
from apps.coursework.service_utils import review

from . import factories

FIRST_CHECK = datetime(2030, 5, 1, 9, 0, tzinfo=dt_timezone.utc)


class SetCheckedTests(TestCase):
    def setUp(self):
        self.owner = factories.create_instructor(cohorts=["grade-10"])
        self.reviewer = factories.caller_for(self.owner)
        self.assignment = factories.create_assignment(author=self.owner)
        self.submission = factories.create_submission(
            self.assignment, student=factories.create_student("alice")
        )

    def test_checking_stamps_reviewer_and_time(self):
        with mock.patch(
            "apps.coursework.service_utils.review.timezone.now", return_value=FIRST_CHECK
        ):
            submission = review.set_checked(self.submission.pk, self.reviewer, True)

        self.assertTrue(submission.is_checked)
        self.assertEqual(submission.checked_by, self.owner)
        self.assertEqual(submission.checked_at, FIRST_CHECK)

    def test_checking_twice_keeps_first_stamp(self):
        other = factories.create_instructor(cohorts=["grade-10"])
        with mock.patch(
            "apps.coursework.service_utils.review.timezone.now", return_value=FIRST_CHECK
        ):
            review.set_checked(self.submission.pk, self.reviewer, True)
        with mock.patch(
            "apps.coursework.service_utils.review.timezone.now",
            return_value=FIRST_CHECK + timedelta(hours=2),
        ):
            submission = review.set_checked(self.submission.pk, factories.caller_for(other), True)

        submission.refresh_from_db()
        self.assertTrue(submission.is_checked)
        self.assertEqual(submission.checked_by, self.owner)
        self.assertEqual(submission.checked_at, FIRST_CHECK)

    def test_unchecking_clears_stamp(self):
        review.set_checked(self.submission.pk, self.reviewer, True)

        submission = review.set_checked(self.submission.pk, self.reviewer, False)
        again = review.set_checked(self.submission.pk, self.reviewer, False)

        for result in (submission, again):
            self.assertFalse(result.is_checked)
            self.assertIsNone(result.checked_by)
            self.assertIsNone(result.checked_at)

    def test_omitted_state_flips(self):
        first = review.set_checked(self.submission.pk, self.reviewer)
        second = review.set_checked(self.submission.pk, self.reviewer)

        self.assertTrue(first.is_checked)
        self.assertFalse(second.is_checked)

    def test_feedback_is_saved_with_check(self):
        submission = review.set_checked(
            self.submission.pk, self.reviewer, True, feedback="Well argued."
        )
        self.assertEqual(submission.feedback, "Well argued.")

        untouched = review.set_checked(self.submission.pk, self.reviewer, False)
        self.assertEqual(untouched.feedback, "Well argued.")

    def test_only_reviewers(self):
        student = factories.caller_for(self.submission.student)
        outsider = factories.caller_for(factories.create_instructor(cohorts=["grade-12"]))

        with self.assertRaises(AuthenticationRequired):
            review.set_checked(self.submission.pk, GUEST, True)
        with self.assertRaises(AuthorizationDenied):
            review.set_checked(self.submission.pk, student, True)
        with self.assertRaises(AuthorizationDenied):
            review.set_checked(self.submission.pk, outsider, True)

        self.submission.refresh_from_db()
        self.assertFalse(self.submission.is_checked)

    def test_admin_can_review_any_assignment(self):
        admin = factories.caller_for(factories.create_admin())
        submission = review.set_checked(self.submission.pk, admin, True)
        self.assertTrue(submission.is_checked)

    def test_submission_must_belong_to_assignment(self):
        other = factories.create_assignment(author=self.owner)

        with self.assertRaises(NotFound):
            review.set_checked(self.submission.pk, self.reviewer, True, assignment_id=other.pk)


class SetFeedbackTests(TestCase):
    def setUp(self):
        self.owner = factories.create_instructor(cohorts=["grade-10"])
        self.reviewer = factories.caller_for(self.owner)
        self.assignment = factories.create_assignment(author=self.owner)
        self.submission = factories.create_submission(self.assignment, student_name="Ann")

    def test_replaces_feedback_without_touching_check_state(self):
        review.set_feedback(self.submission.pk, self.reviewer, "First draft")
        submission = review.set_feedback(self.submission.pk, self.reviewer, "Final notes")

        self.assertEqual(submission.feedback, "Final notes")
        self.assertFalse(submission.is_checked)

    def test_blank_feedback_clears(self):
        review.set_feedback(self.submission.pk, self.reviewer, "Notes")
        submission = review.set_feedback(self.submission.pk, self.reviewer, "   ")

        self.assertIsNone(submission.feedback)

    def test_students_cannot_write_feedback(self):
        student = factories.caller_for(factories.create_student())

        with self.assertRaises(AuthorizationDenied):
            review.set_feedback(self.submission.pk, student, "Great job, me")
