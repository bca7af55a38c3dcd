"""
Core — Constants

Audit action codes and shared limits used across apps.

@file core/constants.py
"""

AUDIT_ACTION_CREATE = 'CREATE'
AUDIT_ACTION_UPDATE = 'UPDATE'
AUDIT_ACTION_DELETE = 'DELETE'
AUDIT_ACTION_SOFT_DELETE = 'SOFT_DELETE'
AUDIT_ACTION_STATUS_CHANGE = 'STATUS_CHANGE'
AUDIT_ACTION_TRANSFER = 'TRANSFER'
AUDIT_ACTION_LOGIN = 'LOGIN'
AUDIT_ACTION_LOGOUT = 'LOGOUT'
AUDIT_ACTION_LOGIN_FAILED = 'LOGIN_FAILED'

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100

LOSS_FIELDS = ('dead', 'culled', 'offlaid')

# Router lookup for UUID primary keys; anything else never reaches a view.
UUID_LOOKUP_REGEX = '[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}'
