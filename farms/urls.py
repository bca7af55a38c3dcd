"""
Farms — URL Configuration

@file farms/urls.py
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import FarmViewSet, HouseViewSet

app_name = 'farms'

router = SimpleRouter()
router.register('farms', FarmViewSet, basename='farm')
router.register('houses', HouseViewSet, basename='house')

urlpatterns = [
    path('', include(router.urls)),
]
