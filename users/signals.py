"""
users/signals.py — Account notifications

user_profile_updated is sent once per successful profile mutation that other
code may care about (plugins hook in here), with keyword arguments:
    user    the updated User
    fields  list of changed field names
"""

import logging

from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)

user_profile_updated = Signal()


@receiver(user_profile_updated)
def log_profile_update(sender, user, fields, **kwargs):
    logger.info("Profile of user #%s updated: %s", user.pk, ", ".join(fields))
