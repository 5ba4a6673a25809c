"""
Celery configuration for the cake shop backend.

DJANGO_SETTINGS_MODULE is set before the app is created so Celery reads
the Django settings (``CELERY_`` prefix), including the beat schedule that
runs the baking task aggregation.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("cakeshop")

# Read Django settings prefixed with CELERY_
app.config_from_object("django.conf:settings", namespace="CELERY")

# Find tasks.py in every installed app
app.autodiscover_tasks()
