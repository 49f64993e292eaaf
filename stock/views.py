"""
Stock — Views

Active stock listing with statuses, inbound receiving, audit
adjustments and the transaction history.

@file stock/views.py
"""

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from statuses.services import EntityStatusService
from users.permissions import IsManagerOrAdmin

from .models import StockRecord, StockTransaction
from .serializers import (
    AdjustSerializer,
    InboundSerializer,
    StockRecordSerializer,
    StockTransactionSerializer,
)
from .services import StockLedger


class StockRecordViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Stock on hand. Empty records are hidden from the listing but remain
    reachable by id.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = StockRecordSerializer
    filterset_fields = ['product', 'location', 'location__warehouse', 'location__lot']
    search_fields = ['product__sku', 'product__name', 'location__code']
    ordering_fields = ['quantity', 'updated_at', 'location__code', 'product__sku']
    ordering = ['location__code', 'product__sku']

    def get_queryset(self):
        qs = StockRecord.objects.select_related('product', 'location', 'location__warehouse')
        if self.action == 'list':
            qs = qs.active()
        return qs

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        rows = page if page is not None else list(queryset)

        context = self.get_serializer_context()
        context['effective'] = EntityStatusService.effective_statuses_for(rows)
        serializer = self.get_serializer_class()(rows, many=True, context=context)

        if page is not None:
            return self.get_paginated_response(serializer.data)
        return Response(serializer.data)

    @action(
        detail=True, methods=['post'], url_path='adjust',
        permission_classes=[IsManagerOrAdmin],
    )
    def adjust(self, request, pk=None):
        ser = AdjustSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        stock = StockLedger.adjust(
            stock_id=pk,
            counted_quantity=ser.validated_data['counted_quantity'],
            actor=request.user,
            note=ser.validated_data['note'],
        )
        return Response({'success': True, 'data': StockRecordSerializer(stock).data})


class InboundView(APIView):
    """POST /v1/stock/inbound — receive goods into a location."""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        ser = InboundSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        record = StockLedger.receive(actor=request.user, **ser.validated_data)
        return Response(
            {'success': True, 'data': StockRecordSerializer(record).data},
            status=status.HTTP_201_CREATED,
        )


class StockTransactionViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = StockTransactionSerializer
    filterset_fields = {
        'type': ['exact'],
        'warehouse': ['exact'],
        'product': ['exact'],
        'stock': ['exact'],
        'created_at': ['gte', 'lte'],
    }
    search_fields = ['product__sku', 'product__name', 'note', 'actor_email']
    ordering_fields = ['created_at', 'quantity']
    ordering = ['-created_at']

    def get_queryset(self):
        return StockTransaction.objects.select_related(
            'product', 'from_location', 'to_location',
        )
