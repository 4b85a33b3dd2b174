"""Celery tasks for the quarters module."""
from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from celery import shared_task

logger = logging.getLogger("crm")


@shared_task(name="quarters.tasks.ensure_current_quarter")
def ensure_current_quarter():
    """Scheduled daily (Celery Beat): make sure the running quarter has a row."""
    from quarters.services import get_or_create_current_quarter

    quarter = async_to_sync(get_or_create_current_quarter)()
    logger.debug("Current quarter is %s (%s)", quarter.quarter_id, quarter.status)
    return quarter.quarter_id
