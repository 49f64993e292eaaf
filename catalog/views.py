"""
Catalog — Views

Read-only ViewSets for warehouses, locations and products.

@file catalog/views.py
"""

from rest_framework import viewsets
from rest_framework.permissions import IsAuthenticated

from .models import Location, Product, Warehouse
from .serializers import LocationSerializer, ProductSerializer, WarehouseSerializer


class WarehouseViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = WarehouseSerializer
    filterset_fields = ['is_active']
    search_fields = ['code', 'name']
    ordering = ['code']
    queryset = Warehouse.objects.all()


class LocationViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = LocationSerializer
    filterset_fields = ['warehouse', 'lot', 'is_active']
    search_fields = ['code']
    ordering_fields = ['code', 'lot', 'level']
    ordering = ['code']

    def get_queryset(self):
        return Location.objects.select_related('warehouse')


class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = ProductSerializer
    filterset_fields = ['is_active', 'uom']
    search_fields = ['sku', 'name']
    ordering = ['sku']
    queryset = Product.objects.all()
