"""
Core — Audit Service

Writes platform-wide audit log entries (houses, batches, allocations,
transfers, staff) from any app. Bird-count mutations are not written
here; they have their own history in flocks.

@file core/services.py
"""

import logging
import uuid
from datetime import date
from typing import Any

from django.forms.models import model_to_dict

from core.models import AuditLog

logger = logging.getLogger('farmtrack')


class AuditService:
    """Centralised audit logging for lifecycle writes."""

    @staticmethod
    def log(
        *,
        actor,
        action: str,
        model_name: str,
        object_id: str,
        farm_id=None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str = '',
    ) -> AuditLog:
        # Unsaved or anonymous actors are recorded as system writes.
        if actor is not None and not getattr(actor, 'pk', None):
            actor = None
        entry = AuditLog.objects.create(
            actor=actor,
            farm_id=farm_id,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            old_values=old_values,
            new_values=new_values,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.debug('Audit %s %s:%s farm=%s', action, model_name, object_id, farm_id)
        return entry

    @staticmethod
    def snapshot(instance, fields=None) -> dict[str, Any]:
        """
        Plain dict of the given fields for JSON storage. Foreign keys come
        out as their primary key; dates and UUIDs as strings.
        """
        cleaned: dict[str, Any] = {}
        for key, value in model_to_dict(instance, fields=fields).items():
            if isinstance(value, date):
                value = value.isoformat()
            elif isinstance(value, uuid.UUID):
                value = str(value)
            cleaned[key] = value
        return cleaned

    @staticmethod
    def get_client_ip(request) -> str | None:
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR')
