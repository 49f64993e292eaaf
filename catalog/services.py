"""
Catalog — Service Layer

Lookups consumed by the stock, status and transfer apps. The catalog
itself is maintained through the Django admin.

@file catalog/services.py
"""

from django.core.exceptions import ValidationError

from core.exceptions import InvalidTargetError, ResourceNotFoundError

from .models import Location, Product, Warehouse


class CatalogService:

    @staticmethod
    def get_product(product_id) -> dict:
        try:
            product = Product.objects.get(pk=product_id)
        except (Product.DoesNotExist, ValueError, ValidationError):
            raise ResourceNotFoundError(detail=f'Product {product_id} not found.')
        return {'sku': product.sku, 'name': product.name, 'uom': product.uom}

    @staticmethod
    def get_location(location_id) -> dict:
        try:
            location = Location.objects.get(pk=location_id)
        except (Location.DoesNotExist, ValueError, ValidationError):
            raise ResourceNotFoundError(detail=f'Location {location_id} not found.')
        return {
            'code': location.code,
            'warehouse_id': location.warehouse_id,
            'is_active': location.is_active,
        }

    @staticmethod
    def get_warehouse(warehouse_id) -> Warehouse:
        try:
            return Warehouse.objects.get(pk=warehouse_id)
        except (Warehouse.DoesNotExist, ValueError, ValidationError):
            raise ResourceNotFoundError(detail=f'Warehouse {warehouse_id} not found.')

    @staticmethod
    def resolve_location(*, warehouse_id, lot, cart, level) -> Location:
        """
        Find the active location at ``lot/cart/level`` in a warehouse.
        Raises ``InvalidTargetError`` when no such position exists.
        """
        code = Location.build_code(lot, cart, level)
        location = (
            Location.objects
            .select_related('warehouse')
            .filter(warehouse_id=warehouse_id, code=code, is_active=True)
            .first()
        )
        if location is None:
            raise InvalidTargetError(detail=f'Target position {code} not found.')
        return location
