# sc_core/audit/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import mixins, viewsets

from sc_core.audit.api.serializers import AccessEventSerializer, AuditEventSerializer
from sc_core.audit.filters import AccessEventFilter, AuditEventFilter
from sc_core.audit.selectors import access_events_qs, list_audit_events
from sc_core.common.api.pagination import DefaultPagination
from sc_core.common.permissions import IsAdminRole


@extend_schema_view(list=extend_schema(tags=["Audit"]))
class AuditEventViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    Workflow and consent transitions. Administrators only.
    """
    permission_classes = [IsAdminRole]
    serializer_class = AuditEventSerializer
    filterset_class = AuditEventFilter
    pagination_class = DefaultPagination

    def get_queryset(self):
        return list_audit_events()


@extend_schema_view(list=extend_schema(tags=["Audit"]))
class AccessEventViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    Access decisions (who looked at which patient, with what outcome). Administrators only.
    """
    permission_classes = [IsAdminRole]
    serializer_class = AccessEventSerializer
    filterset_class = AccessEventFilter
    pagination_class = DefaultPagination

    def get_queryset(self):
        return access_events_qs()
