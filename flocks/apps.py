"""
Flocks — Application Configuration
"""

from django.apps import AppConfig


class FlocksConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'flocks'
    verbose_name = 'Batches & Bird Counts'
