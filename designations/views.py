import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

# Optional django-filter import
try:
    from django_filters.rest_framework import DjangoFilterBackend
    HAS_DJANGO_FILTER = True
except ImportError:
    HAS_DJANGO_FILTER = False

from .exceptions import (
    CircularHierarchyError,
    DesignationNotFound,
    DesignationStoreError,
    LookupFailure,
)
from .hierarchy import PARENT, RELATION_FIELDS
from .models import Designation
from .serializers import (
    CircularCheckSerializer,
    DesignationDetailSerializer,
    DesignationListSerializer,
    DesignationSerializer,
)
from .services import DesignationService

logger = logging.getLogger(__name__)


def _error_response(exc):
    """Map service exceptions to API responses"""
    if isinstance(exc, CircularHierarchyError):
        return Response({
            'error': 'circular_hierarchy',
            'detail': str(exc),
            'relation': exc.relation,
        }, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, DesignationNotFound):
        return Response({'detail': str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, 'error_dict') else {'non_field_errors': exc.messages}
        return Response(detail, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, DesignationStoreError):
        return Response(
            {'detail': 'Designation store unavailable, please retry.'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE
        )
    raise exc


class DesignationViewSet(viewsets.ModelViewSet):
    """
    ViewSet for Designation management

    list: Get active designations ordered by level and sort order
    retrieve: Get designation with parent, reporting manager and children
    create: Create new designation (Admin only)
    update: Update designation, rejected if the hierarchy would loop (Admin only)
    destroy: Soft delete designation (Admin only)
    """
    queryset = Designation.objects.all()
    permission_classes = [IsAuthenticated]
    filter_backends = [SearchFilter, OrderingFilter]
    if HAS_DJANGO_FILTER:
        filter_backends.insert(0, DjangoFilterBackend)
    filterset_fields = ['department', 'level', 'parent', 'reporting_to', 'is_active'] if HAS_DJANGO_FILTER else []
    search_fields = ['name', 'code', 'description']
    ordering_fields = ['name', 'code', 'level', 'sort_order', 'created_at']
    ordering = ['level', 'sort_order']

    service_class = DesignationService

    def get_service(self):
        return self.service_class()

    def get_permissions(self):
        """Set permissions based on action"""
        if self.action in ['create', 'update', 'partial_update', 'destroy']:
            return [IsAuthenticated(), IsAdminUser()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        """Use different serializers for list and detail"""
        if self.action in ['list', 'roots', 'children', 'search']:
            return DesignationListSerializer
        if self.action == 'retrieve':
            return DesignationDetailSerializer
        if self.action == 'check_circular':
            return CircularCheckSerializer
        return DesignationSerializer

    def get_queryset(self):
        """Active designations only, unless staff asks for inactive ones too"""
        queryset = super().get_queryset()
        include_inactive = self.request.query_params.get('include_inactive', '').lower() in ('1', 'true', 'yes')
        if not (include_inactive and self.request.user.is_staff):
            queryset = queryset.filter(is_active=True)
        return queryset

    def retrieve(self, request, *args, **kwargs):
        try:
            details = self.get_service().get_with_details(kwargs[self.lookup_field])
        except Exception as exc:
            return _error_response(exc)
        serializer = DesignationDetailSerializer(
            details['designation'],
            context={**self.get_serializer_context(), 'details': details}
        )
        return Response(serializer.data)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            designation = self.get_service().create(serializer.validated_data, user=request.user)
        except Exception as exc:
            return _error_response(exc)
        return Response(
            DesignationSerializer(designation, context=self.get_serializer_context()).data,
            status=status.HTTP_201_CREATED
        )

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        serializer = self.get_serializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        try:
            designation = self.get_service().update(
                kwargs[self.lookup_field], serializer.validated_data, user=request.user
            )
        except Exception as exc:
            return _error_response(exc)
        return Response(DesignationSerializer(designation, context=self.get_serializer_context()).data)

    def destroy(self, request, *args, **kwargs):
        """Soft delete by marking is_active=False"""
        try:
            self.get_service().deactivate(kwargs[self.lookup_field], user=request.user)
        except Exception as exc:
            return _error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'])
    def roots(self, request):
        """Get top level designations (no org-chart parent)"""
        designations = self.get_service().list_roots()
        serializer = self.get_serializer(designations, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['get'])
    def children(self, request, pk=None):
        """Get active designations whose org-chart parent is this one"""
        designations = self.get_service().list_children(pk)
        serializer = self.get_serializer(designations, many=True)
        return Response(serializer.data)

    @swagger_auto_schema(
        operation_description="Ids above this designation along one relation, nearest first.",
        manual_parameters=[openapi.Parameter(
            'relation', openapi.IN_QUERY, type=openapi.TYPE_STRING,
            enum=sorted(RELATION_FIELDS), default=PARENT,
        )],
    )
    @action(detail=True, methods=['get'])
    def ancestors(self, request, pk=None):
        relation = request.query_params.get('relation', PARENT)
        if relation not in RELATION_FIELDS:
            return Response(
                {'error': f'relation must be one of {sorted(RELATION_FIELDS)}'},
                status=status.HTTP_400_BAD_REQUEST
            )
        service = self.get_service()
        try:
            service.get(pk)
            chain = service.checker.ancestors(pk, relation)
        except LookupFailure as exc:
            logger.warning("Broken %s chain for designation %s: %s", relation, pk, exc)
            return Response({'detail': str(exc)}, status=status.HTTP_409_CONFLICT)
        except Exception as exc:
            return _error_response(exc)
        return Response({'relation': relation, 'ancestors': [str(i) for i in chain]})

    @action(detail=False, methods=['get'])
    def hierarchy(self, request):
        """Get the org-chart tree of active designations"""
        return Response(self.get_service().get_hierarchy())

    @action(detail=False, methods=['get'])
    def departments(self, request):
        """Get distinct departments used by active designations"""
        return Response(self.get_service().list_departments())

    @swagger_auto_schema(
        operation_description="Search active designations by name, code or description.",
        manual_parameters=[openapi.Parameter('q', openapi.IN_QUERY, type=openapi.TYPE_STRING)],
    )
    @action(detail=False, methods=['get'])
    def search(self, request):
        designations = self.get_service().search(request.query_params.get('q', ''))
        serializer = self.get_serializer(designations, many=True)
        return Response(serializer.data)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        """Get designation counts for the dashboard"""
        return Response(self.get_service().stats())

    @swagger_auto_schema(
        request_body=CircularCheckSerializer,
        responses={200: openapi.Response(
            description="Whether the assignment would create a cycle",
            schema=openapi.Schema(
                type=openapi.TYPE_OBJECT,
                properties={
                    'relation': openapi.Schema(type=openapi.TYPE_STRING),
                    'candidate_id': openapi.Schema(type=openapi.TYPE_STRING),
                    'is_circular': openapi.Schema(type=openapi.TYPE_BOOLEAN),
                }
            )
        )}
    )
    @action(detail=True, methods=['post'], url_path='check-circular')
    def check_circular(self, request, pk=None):
        """Check a prospective parent or reporting manager without writing"""
        serializer = CircularCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        candidate_id = serializer.validated_data.get('candidate_id') or None
        relation = serializer.validated_data['relation']
        is_circular = self.get_service().check_circular_reference(pk, candidate_id, relation)
        return Response({
            'relation': relation,
            'candidate_id': candidate_id,
            'is_circular': is_circular,
        })
