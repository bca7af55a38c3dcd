"""
Flocks — URL Configuration

@file flocks/urls.py
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import BatchViewSet

app_name = 'flocks'

router = SimpleRouter()
router.register('batches', BatchViewSet, basename='batch')

urlpatterns = [
    path('', include(router.urls)),
]
