"""
Users — Authentication Backend

Email-based authentication backend that ignores soft-deleted accounts.

@file users/backends.py
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

User = get_user_model()


class EmailBackend(ModelBackend):
    """Authenticate using email + password; the admin passes it as ``username``."""

    def authenticate(self, request, email=None, password=None, username=None, **kwargs):
        email = email or username
        if email is None or password is None:
            return None
        try:
            user = User.objects.get(email__iexact=email.strip(), is_deleted=False)
        except User.DoesNotExist:
            User().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
