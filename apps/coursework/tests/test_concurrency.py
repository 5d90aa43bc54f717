import threading
from unittest import mock
from uuid import uuid4

from django.db import connection
from django.test import TestCase, TransactionTestCase, skipUnlessDBFeature

from apps.coursework.exceptions import AttemptCapExceeded, CapacityExceeded
from apps.coursework.models import AssignmentDetail, Submission
from apps.coursework.service_utils import ledger
from apps.coursework.service_utils.storage import StoredFile

from . import factories


def _stored_file():
    key = f"submissions/test/{uuid4().hex}.pdf"
    return StoredFile(key=key, url=f"https://files.example.com/{key}", name="answer.pdf")


class InterleavedSubmitTests(TestCase):
    """Every caller passes the pre-check before the first one commits.

    The fake upload of each caller starts the next caller, so all of them see
    the assignment with free capacity; commits then happen last-in first-out.
    """

    def _run_interleaved(self, assignment, identities):
        pending = list(identities)
        outcomes = []

        def attempt(identity):
            try:
                ledger.submit(assignment.pk, identity, factories.make_upload())
            except CapacityExceeded:
                outcomes.append("capacity")
            except AttemptCapExceeded:
                outcomes.append("attempt_cap")
            else:
                outcomes.append("accepted")

        def upload_then_let_next_caller_in(assignment_id, uploaded_file):
            if pending:
                attempt(pending.pop(0))
            return _stored_file()

        with mock.patch(
            "apps.coursework.service_utils.storage.upload_submission_file",
            side_effect=upload_then_let_next_caller_in,
        ) as upload, mock.patch(
            "apps.coursework.service_utils.storage.delete_stored_file"
        ) as delete_file:
            attempt(pending.pop(0))

        return outcomes, upload, delete_file

    def test_capacity_holds_when_all_callers_race(self):
        capacity = 3
        assignment = factories.create_assignment(max_submissions=capacity)
        identities = [
            ledger.resolve_identity(factories.caller_for(factories.create_student()))
            for _ in range(capacity * 3)
        ]

        outcomes, upload, delete_file = self._run_interleaved(assignment, identities)

        self.assertEqual(upload.call_count, len(identities))
        self.assertEqual(outcomes.count("accepted"), capacity)
        self.assertEqual(outcomes.count("capacity"), len(identities) - capacity)
        assignment.refresh_from_db()
        self.assertEqual(assignment.current_submissions, capacity)
        self.assertEqual(Submission.objects.filter(assignment=assignment).count(), capacity)
        # Files uploaded for rejected callers are removed again.
        self.assertEqual(delete_file.call_count, len(identities) - capacity)

    def test_attempt_cap_rechecked_at_commit_releases_slot(self):
        assignment = factories.create_assignment(max_submissions=5, max_attempts_per_student=1)
        identity = ledger.resolve_identity(factories.caller_for(factories.create_student()))

        outcomes, _, delete_file = self._run_interleaved(assignment, [identity, identity])

        self.assertEqual(sorted(outcomes), ["accepted", "attempt_cap"])
        assignment.refresh_from_db()
        self.assertEqual(assignment.current_submissions, 1)
        self.assertEqual(Submission.objects.filter(assignment=assignment).count(), 1)
        delete_file.assert_called_once()

    def test_unlimited_assignment_accepts_everyone(self):
        assignment = factories.create_assignment(max_submissions=0)
        identities = [
            ledger.resolve_identity(factories.caller_for(factories.create_student()))
            for _ in range(4)
        ]

        outcomes, _, _ = self._run_interleaved(assignment, identities)

        self.assertEqual(outcomes, ["accepted"] * 4)
        assignment.refresh_from_db()
        self.assertEqual(assignment.current_submissions, 4)


@skipUnlessDBFeature("has_select_for_update")
class ThreadedSubmitTests(TransactionTestCase):
    """Real concurrent submissions; needs a database with row locks."""

    def test_capacity_holds_under_threads(self):
        capacity = 2
        callers = 6
        assignment = factories.create_assignment(max_submissions=capacity)
        identities = [
            ledger.resolve_identity(factories.caller_for(factories.create_student()))
            for _ in range(callers)
        ]
        barrier = threading.Barrier(callers, timeout=10)
        results = []
        lock = threading.Lock()

        def upload_after_everyone_passed_precheck(assignment_id, uploaded_file):
            barrier.wait()
            return _stored_file()

        def worker(identity):
            try:
                ledger.submit(assignment.pk, identity, factories.make_upload())
                outcome = "accepted"
            except CapacityExceeded:
                outcome = "capacity"
            finally:
                connection.close()
            with lock:
                results.append(outcome)

        with mock.patch(
            "apps.coursework.service_utils.storage.upload_submission_file",
            side_effect=upload_after_everyone_passed_precheck,
        ), mock.patch("apps.coursework.service_utils.storage.delete_stored_file"):
            threads = [threading.Thread(target=worker, args=(identity,)) for identity in identities]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=30)

        self.assertEqual(results.count("accepted"), capacity)
        self.assertEqual(results.count("capacity"), callers - capacity)
        current = AssignmentDetail.objects.get(pk=assignment.pk).current_submissions
        self.assertEqual(current, capacity)
        self.assertEqual(Submission.objects.filter(assignment=assignment).count(), capacity)
