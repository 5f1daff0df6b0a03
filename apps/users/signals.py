"""
Signals for the Users app.
"""
import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender='users.User')
def user_post_save(sender, instance, created, **kwargs):
    """
    Signal handler for post-save on User model.
    Logs user creation events.
    """
    if created:
        logger.info('New user registered: %s (id=%s)', instance.username, instance.id)
