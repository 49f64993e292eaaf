"""
Catalog — URL Configuration

@file catalog/urls.py
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import LocationViewSet, ProductViewSet, WarehouseViewSet

app_name = 'catalog'

router = DefaultRouter()
router.register('warehouses', WarehouseViewSet, basename='warehouse')
router.register('locations', LocationViewSet, basename='location')
router.register('products', ProductViewSet, basename='product')

urlpatterns = [
    path('', include(router.urls)),
]
