"""
Statuses — Views

Status definition management, entity status apply / remove /
partial-remove, lot statuses, change history and entity notes.

@file statuses/views.py
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.exceptions import BusinessRuleViolation
from users.models import User
from users.permissions import IsAdminOrReadOnly, IsAdminRole

from .effects import classify, quantity_breakdown
from .models import EntityNote, EntityStatus, EntityType, StatusDefinition
from .permissions import IsNoteAuthorOrAdmin
from .serializers import (
    ApplyStatusSerializer,
    EntityNoteSerializer,
    EntityNoteUpdateSerializer,
    EntityRefSerializer,
    EntityStatusSerializer,
    LotStatusSerializer,
    RemovePartialSerializer,
    RemoveStatusSerializer,
    StatusChangeLogSerializer,
    StatusDefinitionReadSerializer,
    StatusDefinitionWriteSerializer,
)
from .services import EntityStatusService, NoteService, StatusRegistryService


def _is_admin(user) -> bool:
    return user.is_superuser or user.has_role(User.RoleChoices.ADMIN)


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------

class StatusDefinitionViewSet(viewsets.ModelViewSet):
    """
    Status definition catalog. Reading is open to any signed-in user;
    writes need ADMIN. DELETE deactivates instead of deleting.
    """

    permission_classes = [IsAdminOrReadOnly]
    search_fields = ['code', 'name']
    http_method_names = ['get', 'post', 'put', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        if self.action == 'list' and not self._include_inactive():
            qs = StatusDefinition.objects.filter(is_active=True)
        else:
            qs = StatusDefinition.objects.all()
        status_type = self.request.query_params.get('status_type')
        if status_type:
            qs = qs.filter(status_type=status_type)
        return qs.order_by('sort_order', 'name')

    def _include_inactive(self) -> bool:
        flag = self.request.query_params.get('include_inactive') in ('1', 'true', 'True')
        return flag and _is_admin(self.request.user)

    def get_serializer_class(self):
        if self.action in ('list', 'retrieve'):
            return StatusDefinitionReadSerializer
        return StatusDefinitionWriteSerializer

    def list(self, request, *args, **kwargs):
        if self._include_inactive():
            return super().list(request, *args, **kwargs)
        definitions = StatusRegistryService.get_active_definitions(
            status_type=request.query_params.get('status_type') or None,
        )
        return Response(StatusDefinitionReadSerializer(definitions, many=True).data)

    def create(self, request, *args, **kwargs):
        ser = StatusDefinitionWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        definition = StatusRegistryService.create_definition(actor=request.user, **ser.validated_data)
        return Response(
            {
                'success': True,
                'message': 'Status created successfully.',
                'data': StatusDefinitionReadSerializer(definition).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        definition = self.get_object()
        ser = StatusDefinitionWriteSerializer(data=request.data, partial=partial)
        ser.is_valid(raise_exception=True)
        definition = StatusRegistryService.update_definition(
            definition_id=definition.pk, actor=request.user, **ser.validated_data,
        )
        return Response({
            'success': True,
            'message': 'Status updated successfully.',
            'data': StatusDefinitionReadSerializer(definition).data,
        })

    def destroy(self, request, *args, **kwargs):
        definition = self.get_object()
        definition = StatusRegistryService.deactivate_definition(
            definition_id=definition.pk, actor=request.user,
        )
        return Response({
            'success': True,
            'message': 'Status archived successfully.',
            'data': StatusDefinitionReadSerializer(definition).data,
        })

    @action(detail=False, methods=['get'], url_path='default')
    def default(self, request):
        definition = StatusRegistryService.get_default()
        data = StatusDefinitionReadSerializer(definition).data if definition else None
        return Response({'success': True, 'data': data})


# ---------------------------------------------------------------------------
# Entity statuses
# ---------------------------------------------------------------------------

class EntityStatusViewSet(viewsets.ViewSet):
    """
    Current status of one entity plus the apply / remove / partial-remove
    operations and the change history.
    """

    permission_classes = [IsAuthenticated]

    def list(self, request):
        ref = EntityRefSerializer(data=request.query_params)
        ref.is_valid(raise_exception=True)
        entity_type = ref.validated_data['entity_type']
        entity_id = ref.validated_data['entity_id']

        current = EntityStatusService.get_status(entity_type, entity_id)
        data = {
            'entity_type': entity_type,
            'entity_id': entity_id,
            'status': EntityStatusSerializer(current).data if current else None,
            'classification': classify(current)._asdict(),
        }
        if entity_type == EntityType.STOCK:
            quantity = EntityStatusService.stock_quantity(entity_id)
            if quantity is not None:
                data['breakdown'] = quantity_breakdown(quantity, current)._asdict()
        return Response({'success': True, 'data': data})

    @action(detail=False, methods=['post'], url_path='apply')
    def apply(self, request):
        ser = ApplyStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        applied = EntityStatusService.apply_status(actor=request.user, **ser.validated_data)
        return Response({
            'success': True,
            'message': 'Status applied successfully.',
            'data': EntityStatusSerializer(applied).data,
        })

    @action(detail=False, methods=['post'], url_path='remove')
    def remove(self, request):
        ser = RemoveStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        removed = EntityStatusService.remove_status(actor=request.user, **ser.validated_data)
        return Response({
            'success': True,
            'message': 'Status removed successfully.' if removed else 'No status to remove.',
        })

    @action(detail=False, methods=['post'], url_path='remove-partial')
    def remove_partial(self, request):
        ser = RemovePartialSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        remaining = EntityStatusService.remove_partial(actor=request.user, **ser.validated_data)
        if remaining is None:
            return Response({'success': True, 'message': 'Status fully removed.', 'data': None})
        return Response({
            'success': True,
            'message': f'Status now covers {remaining.affected_quantity} unit(s).',
            'data': EntityStatusSerializer(remaining).data,
        })

    @action(detail=False, methods=['get'], url_path='history')
    def history(self, request):
        ref = EntityRefSerializer(data=request.query_params)
        ref.is_valid(raise_exception=True)
        logs = EntityStatusService.history(ref.validated_data['entity_type'], ref.validated_data['entity_id'])
        return Response({'success': True, 'data': StatusChangeLogSerializer(logs, many=True).data})


class LotStatusViewSet(viewsets.ViewSet):
    """Statuses applied to whole lots. Setting one requires ADMIN."""

    permission_classes = [IsAuthenticated]

    def get_permissions(self):
        if self.action == 'create':
            return [IsAdminRole()]
        return super().get_permissions()

    def list(self, request):
        warehouse_id = request.query_params.get('warehouse_id')
        if not warehouse_id:
            raise BusinessRuleViolation(detail='warehouse_id is required.')
        rows = (
            EntityStatus.objects
            .select_related('definition', 'applied_by')
            .filter(entity_type=EntityType.LOT, entity_id__startswith=f'{warehouse_id}:')
            .order_by('entity_id')
        )
        data = []
        for row in rows:
            item = EntityStatusSerializer(row).data
            item['lot'] = row.entity_id.split(':', 1)[1]
            data.append(item)
        return Response({'success': True, 'data': data})

    def create(self, request):
        ser = LotStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        applied = EntityStatusService.set_lot_status(actor=request.user, **ser.validated_data)
        if applied is None:
            return Response({'success': True, 'message': 'Lot status removed.', 'data': None})
        return Response({
            'success': True,
            'message': 'Lot status applied.',
            'data': EntityStatusSerializer(applied).data,
        })


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

class EntityNoteViewSet(mixins.ListModelMixin,
                        mixins.RetrieveModelMixin,
                        mixins.CreateModelMixin,
                        mixins.UpdateModelMixin,
                        mixins.DestroyModelMixin,
                        viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated, IsNoteAuthorOrAdmin]
    serializer_class = EntityNoteSerializer
    pagination_class = None

    def get_queryset(self):
        if self.action == 'list':
            ref = EntityRefSerializer(data=self.request.query_params)
            ref.is_valid(raise_exception=True)
            return NoteService.list_notes(ref.validated_data['entity_type'], ref.validated_data['entity_id'])
        return EntityNote.objects.select_related('created_by')

    def perform_create(self, serializer):
        serializer.instance = NoteService.add_note(actor=self.request.user, **serializer.validated_data)

    def update(self, request, *args, **kwargs):
        note = self.get_object()
        ser = EntityNoteUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        note = NoteService.update_note(note=note, actor=request.user, **ser.validated_data)
        return Response(EntityNoteSerializer(note).data)

    def perform_destroy(self, instance):
        NoteService.delete_note(note=instance, actor=self.request.user)
