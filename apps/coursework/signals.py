from __future__ import annotations

from django.db import transaction
from django.db.models.signals import post_delete
from django.dispatch import receiver

from .models import Submission
from .service_utils import storage


@receiver(post_delete, sender=Submission)
def remove_submission_file(sender, instance: Submission, **kwargs) -> None:
    """Delete the stored file once the submission row is gone for good.

    Also fires for submissions removed by an assignment delete cascade.
    """
    key = instance.storage_key
    if key:
        transaction.on_commit(lambda: storage.delete_stored_file(key))
