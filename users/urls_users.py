"""
Users — Farm Staff URL Configuration

Staff ViewSet routed under /v1/users/.

@file users/urls_users.py
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import StaffViewSet

app_name = 'users'

router = DefaultRouter()
router.register('', StaffViewSet, basename='user')

urlpatterns = [
    path('', include(router.urls)),
]
