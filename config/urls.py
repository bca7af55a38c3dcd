"""
FarmTrack — Root URL Configuration

All API endpoints are namespaced under /api/v1/.
The DRF browsable API is available for route inspection in development.

@file config/urls.py
"""

from django.contrib import admin
from django.urls import include, path
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.reverse import reverse

admin.site.site_header = 'FarmTrack Administration'
admin.site.site_title = 'FarmTrack'
admin.site.index_title = 'Batch Counts & House Allocations'


@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request, format=None):
    """Index of the v1 API."""
    return Response({
        'auth': {
            'register': reverse('api-v1:auth:register', request=request, format=format),
            'login': reverse('api-v1:auth:login', request=request, format=format),
            'refresh': reverse('api-v1:auth:token-refresh', request=request, format=format),
            'logout': reverse('api-v1:auth:logout', request=request, format=format),
            'me': reverse('api-v1:auth:me', request=request, format=format),
        },
        'users': reverse('api-v1:users:user-list', request=request, format=format),
        'farm': reverse('api-v1:farms:farm-me', request=request, format=format),
        'houses': reverse('api-v1:farms:house-list', request=request, format=format),
        'batches': reverse('api-v1:flocks:batch-list', request=request, format=format),
        'allocations': {
            'list': reverse('api-v1:allocations:allocation-list', request=request, format=format),
            'transfer': reverse('api-v1:allocations:allocation-transfer', request=request, format=format),
        },
    })


api_v1_patterns = [
    path('', api_root, name='api-root'),
    path('auth/', include('users.urls', namespace='auth')),
    path('users/', include('users.urls_users', namespace='users')),
    path('', include('farms.urls', namespace='farms')),
    path('', include('flocks.urls', namespace='flocks')),
    path('', include('allocations.urls', namespace='allocations')),
]

urlpatterns = [
    path('admin/', admin.site.urls),

    # DRF session auth (powers the "Log in" button on the browsable API)
    path('api/auth/', include('rest_framework.urls', namespace='rest_framework')),

    # Versioned API
    path('api/v1/', include((api_v1_patterns, 'api-v1'))),
]
