"""
WMS — Root URL Configuration

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

admin.site.site_header = 'WMS Administration'
admin.site.site_title = 'WMS'
admin.site.index_title = 'Warehouse Stock & Status Management'


@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request, format=None):
    """WMS API v1 — endpoint directory."""
    def url(name):
        return reverse(f'api-v1:{name}', request=request, format=format)

    return Response({
        'auth': {
            'login': url('auth:login'),
            'refresh': url('auth:token-refresh'),
            'logout': url('auth:logout'),
            'me': url('auth:me'),
        },
        'catalog': {
            'warehouses': url('catalog:warehouse-list'),
            'locations': url('catalog:location-list'),
            'products': url('catalog:product-list'),
        },
        'stock': {
            'records': url('stock:record-list'),
            'transactions': url('stock:transaction-list'),
            'inbound': url('stock:inbound'),
        },
        'statuses': {
            'definitions': url('statuses:definition-list'),
            'entity': url('statuses:entity-list'),
            'lots': url('statuses:lot-list'),
            'notes': url('statuses:note-list'),
        },
        'transfers': {
            'preflight': url('transfers:transfer-preflight'),
            'submit': url('transfers:transfer-submit'),
        },
        'outbound': {
            'preflight': url('transfers:outbound-preflight'),
            'submit': url('transfers:outbound-submit'),
        },
    })


api_v1_patterns = [
    path('', api_root, name='api-root'),
    path('auth/', include('users.urls', namespace='auth')),
    path('catalog/', include('catalog.urls', namespace='catalog')),
    path('stock/', include('stock.urls', namespace='stock')),
    path('statuses/', include('statuses.urls', namespace='statuses')),
    path('', include('transfers.urls', namespace='transfers')),
]

urlpatterns = [
    path('admin/', admin.site.urls),

    # DRF session auth (powers the "Log in" button on the browsable API)
    path('api/auth/', include('rest_framework.urls', namespace='rest_framework')),

    # Versioned API
    path('api/v1/', include((api_v1_patterns, 'api-v1'))),
]
