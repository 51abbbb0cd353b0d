# sc_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from sc_core.access.api.views import AccessCheckView
from sc_core.audit.api.views import AccessEventViewSet, AuditEventViewSet
from sc_core.collaboration.api.views import (
    CollaborationAcceptView,
    CollaborationDeclineView,
    CollaborationListCreateView,
    CollaborationRevokeView,
)
from sc_core.consent.api.views import (
    ConsentActiveListView,
    ConsentCheckView,
    ConsentDenyView,
    ConsentGrantView,
    ConsentPendingListView,
    ConsentPendingStatusView,
    ConsentRequestedView,
    ConsentRequestView,
    ConsentRevokeView,
)
from sc_core.deletion.api.views import (
    AcknowledgeNotificationView,
    AdminDeletionHistoryView,
    AdminPendingDeletionsView,
    AuthenticatorNotificationsView,
    CancelDeletionView,
    DeletionNotificationsView,
    DeletionStatusView,
    InitiateDeletionView,
    MarkNotificationReadView,
    VerifyDeletionMfaView,
)
from sc_core.iam.api.auth import LoginView, LogoutView, RefreshView
from sc_core.iam.api.me import MeView
from sc_core.iam.api.mfa import MfaDisableView, MfaSetupView, MfaStatusView, MfaVerifySetupView
from sc_core.notifications.api.views import NotificationViewSet
from sc_core.records.api.views import MyRecordsView, PatientRecordsView, RecordCreateView

router = DefaultRouter()
router.register(r"audit/events", AuditEventViewSet, basename="audit-events")
router.register(r"audit/access-events", AccessEventViewSet, basename="audit-access-events")
router.register(r"notifications", NotificationViewSet, basename="notifications")

urlpatterns = [
    # Auth + /me + MFA
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("me/", MeView.as_view(), name="me"),
    path("mfa/status/", MfaStatusView.as_view(), name="mfa-status"),
    path("mfa/setup/", MfaSetupView.as_view(), name="mfa-setup"),
    path("mfa/verify-setup/", MfaVerifySetupView.as_view(), name="mfa-verify-setup"),
    path("mfa/disable/", MfaDisableView.as_view(), name="mfa-disable"),

    # Consent
    path("consent/request/", ConsentRequestView.as_view(), name="consent-request"),
    path("consent/grant/<uuid:consent_id>/", ConsentGrantView.as_view(), name="consent-grant"),
    path("consent/deny/<uuid:consent_id>/", ConsentDenyView.as_view(), name="consent-deny"),
    path("consent/revoke/<uuid:consent_id>/", ConsentRevokeView.as_view(), name="consent-revoke"),
    path("consent/pending/", ConsentPendingListView.as_view(), name="consent-pending"),
    path("consent/active/", ConsentActiveListView.as_view(), name="consent-active"),
    path("consent/requested/", ConsentRequestedView.as_view(), name="consent-requested"),
    path("consent/check/<str:patient_code>/", ConsentCheckView.as_view(), name="consent-check"),
    path(
        "consent/pending-status/<str:patient_code>/",
        ConsentPendingStatusView.as_view(),
        name="consent-pending-status",
    ),

    # Collaboration
    path("collaboration/", CollaborationListCreateView.as_view(), name="collaboration-list"),
    path(
        "collaboration/<uuid:collaboration_id>/accept/",
        CollaborationAcceptView.as_view(),
        name="collaboration-accept",
    ),
    path(
        "collaboration/<uuid:collaboration_id>/decline/",
        CollaborationDeclineView.as_view(),
        name="collaboration-decline",
    ),
    path(
        "collaboration/<uuid:collaboration_id>/revoke/",
        CollaborationRevokeView.as_view(),
        name="collaboration-revoke",
    ),

    # Records + access decisions
    path("records/", RecordCreateView.as_view(), name="records-create"),
    path("records/mine/", MyRecordsView.as_view(), name="records-mine"),
    path("records/patient/<str:patient_code>/", PatientRecordsView.as_view(), name="records-patient"),
    path("access/check/<str:patient_code>/", AccessCheckView.as_view(), name="access-check"),

    # Deletion
    path("deletion/initiate/", InitiateDeletionView.as_view(), name="deletion-initiate"),
    path("deletion/verify-mfa/", VerifyDeletionMfaView.as_view(), name="deletion-verify-mfa"),
    path("deletion/cancel/", CancelDeletionView.as_view(), name="deletion-cancel"),
    path("deletion/status/", DeletionStatusView.as_view(), name="deletion-status"),
    path("deletion/notifications/", DeletionNotificationsView.as_view(), name="deletion-notifications"),
    path(
        "deletion/notifications/<uuid:notification_id>/read/",
        MarkNotificationReadView.as_view(),
        name="deletion-notification-read",
    ),
    path(
        "deletion/auth-notifications/",
        AuthenticatorNotificationsView.as_view(),
        name="deletion-auth-notifications",
    ),
    path(
        "deletion/auth-notifications/<uuid:notification_id>/ack/",
        AcknowledgeNotificationView.as_view(),
        name="deletion-auth-notification-ack",
    ),
    path("deletion/admin/pending/", AdminPendingDeletionsView.as_view(), name="deletion-admin-pending"),
    path("deletion/admin/history/", AdminDeletionHistoryView.as_view(), name="deletion-admin-history"),
]

urlpatterns += router.urls
