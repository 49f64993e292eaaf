"""
Transfers — Views

Preflight (advisory) and submit endpoints for transfer and outbound
batches.

@file transfers/views.py
"""

from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from users.permissions import IsManagerOrAdmin

from .serializers import OutboundBatchSerializer, TransferBatchSerializer
from .services import BulkOutboundService, BulkTransferService


class _BatchView(APIView):
    serializer_class = None
    service = None

    def parse(self, request):
        ser = self.serializer_class(data=request.data)
        ser.is_valid(raise_exception=True)
        return ser.to_queue()


class TransferPreflightView(_BatchView):
    """POST /transfers/preflight/ — check a transfer queue without committing."""
    permission_classes = [IsAuthenticated]
    serializer_class = TransferBatchSerializer
    service = BulkTransferService

    def post(self, request):
        return Response({'success': True, 'data': self.service.preflight(self.parse(request))})


class TransferSubmitView(_BatchView):
    """POST /transfers/submit/ — commit a transfer queue item by item."""
    permission_classes = [IsAuthenticated]
    serializer_class = TransferBatchSerializer
    service = BulkTransferService

    def post(self, request):
        result = self.service.commit(items=self.parse(request), actor=request.user)
        return Response(result.as_response())


class OutboundPreflightView(TransferPreflightView):
    permission_classes = [IsManagerOrAdmin]
    serializer_class = OutboundBatchSerializer
    service = BulkOutboundService


class OutboundSubmitView(TransferSubmitView):
    permission_classes = [IsManagerOrAdmin]
    serializer_class = OutboundBatchSerializer
    service = BulkOutboundService
