import logging

from celery import shared_task

from users.services import UserService

logger = logging.getLogger(__name__)


@shared_task
def purge_expired_reset_tokens():
    """
    Periodic task that removes reset/activation tokens past their expiry.
    Scheduled nightly through CELERY_BEAT_SCHEDULE.
    """
    deleted = UserService().purge_expired_tokens()
    logger.info("Purged %s expired reset tokens", deleted)
    return f"Finished. Purged {deleted} expired reset tokens."
