"""
FarmTrack — Celery Application

Deferred bird-count history writes and the daily ledger reconciliation
run here. Configuration comes from Django settings (``CELERY_`` prefix);
the beat schedule lives in ``CELERY_BEAT_SCHEDULE``.

@file config/celery.py
"""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

app = Celery('farmtrack')

app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()
