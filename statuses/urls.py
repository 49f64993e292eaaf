"""
Statuses — URL Configuration

@file statuses/urls.py
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import EntityNoteViewSet, EntityStatusViewSet, LotStatusViewSet, StatusDefinitionViewSet

app_name = 'statuses'

router = DefaultRouter()
router.register('definitions', StatusDefinitionViewSet, basename='definition')
router.register('entity', EntityStatusViewSet, basename='entity')
router.register('lots', LotStatusViewSet, basename='lot')
router.register('notes', EntityNoteViewSet, basename='note')

urlpatterns = [
    path('', include(router.urls)),
]
