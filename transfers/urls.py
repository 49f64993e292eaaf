"""
Transfers — URL Configuration

@file transfers/urls.py
"""

from django.urls import path

from .views import (
    OutboundPreflightView,
    OutboundSubmitView,
    TransferPreflightView,
    TransferSubmitView,
)

app_name = 'transfers'

urlpatterns = [
    path('transfers/preflight/', TransferPreflightView.as_view(), name='transfer-preflight'),
    path('transfers/submit/', TransferSubmitView.as_view(), name='transfer-submit'),
    path('outbound/preflight/', OutboundPreflightView.as_view(), name='outbound-preflight'),
    path('outbound/submit/', OutboundSubmitView.as_view(), name='outbound-submit'),
]
