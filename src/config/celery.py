"""
Celery application for the order fulfillment backend.

DJANGO_SETTINGS_MODULE is set before the app is created so Celery reads
Django settings (``CELERY_`` prefix).  Order notifications are delivered
by ``orders.deliver_notification``.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("fulfillment")

app.config_from_object("django.conf:settings", namespace="CELERY")

# Finds tasks.py in every installed app
app.autodiscover_tasks()
