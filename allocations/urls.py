"""
Allocations — URL Configuration

@file allocations/urls.py
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import AllocationViewSet

app_name = 'allocations'

router = SimpleRouter()
router.register('allocations', AllocationViewSet, basename='allocation')

urlpatterns = [
    path('', include(router.urls)),
]
