from django.test import TestCase

from accounts.models import GUEST
from apps.coursework.exceptions import AuthenticationRequired, AuthorizationDenied, ValidationError
from apps.coursework.models import SubmissionComment
from apps.coursework.service_utils import comments

from . import factories


class SubmissionCommentTests(TestCase):
    def setUp(self):
        self.owner = factories.create_instructor("ms-park", cohorts=["grade-10"])
        self.assignment = factories.create_assignment(author=self.owner)
        self.student = factories.create_student("alice")
        self.submission = factories.create_submission(self.assignment, student=self.student)
        self.args = (self.assignment.pk, self.submission.pk)

    def test_thread_between_student_and_instructor(self):
        comments.add_comment(*self.args, factories.caller_for(self.student), "Is this enough?")
        comments.add_comment(*self.args, factories.caller_for(self.owner), "  Add a graph.  ")

        thread = list(comments.list_comments(*self.args, factories.caller_for(self.student)))

        self.assertEqual([c.content for c in thread], ["Is this enough?", "Add a graph."])
        self.assertEqual([c.author_name for c in thread], ["alice", "ms-park"])

    def test_blank_content_is_rejected(self):
        with self.assertRaises(ValidationError):
            comments.add_comment(*self.args, factories.caller_for(self.student), "   ")

    def test_other_students_cannot_read_or_comment(self):
        bob = factories.caller_for(factories.create_student("bob"))

        with self.assertRaises(AuthorizationDenied):
            comments.list_comments(*self.args, bob)
        with self.assertRaises(AuthorizationDenied):
            comments.add_comment(*self.args, bob, "Let me see")
        with self.assertRaises(AuthenticationRequired):
            comments.list_comments(*self.args, GUEST)

    def test_delete_by_author_or_admin_only(self):
        comment = comments.add_comment(*self.args, factories.caller_for(self.student), "Oops")

        with self.assertRaises(AuthorizationDenied):
            comments.delete_comment(*self.args, comment.pk, factories.caller_for(self.owner))

        comments.delete_comment(*self.args, comment.pk, factories.caller_for(self.student))
        self.assertFalse(SubmissionComment.objects.exists())

        second = comments.add_comment(*self.args, factories.caller_for(self.owner), "Note")
        comments.delete_comment(*self.args, second.pk, factories.caller_for(factories.create_admin()))
        self.assertFalse(SubmissionComment.objects.exists())
