"""
Stock — URL Configuration

@file stock/urls.py
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import InboundView, StockRecordViewSet, StockTransactionViewSet

app_name = 'stock'

router = DefaultRouter()
router.register('records', StockRecordViewSet, basename='record')
router.register('transactions', StockTransactionViewSet, basename='transaction')

urlpatterns = [
    path('inbound/', InboundView.as_view(), name='inbound'),
    path('', include(router.urls)),
]
