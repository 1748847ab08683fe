"""
Celery application.

Chat notifications are dispatched as tasks after the sending transaction
commits. They go to their own queue so a backlog of pushes never delays
other background work.

Usage:
    from chat.tasks import dispatch_message_notification

    dispatch_message_notification.delay(str(message.id))
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are read from Django settings with the CELERY_ prefix
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
