import logging

from django.contrib.auth import get_user_model
from django.utils import timezone
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiResponse
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from src.travel.throttling import ScopedRateThrottleIsolated
from src.users.permissions import IsManager

from .models import Notification
from .serializers import (
    BroadcastSerializer, BulkResultSerializer, NotificationCreateSerializer,
    NotificationSerializer, UnreadCountSerializer,
)
from .services import broadcast, notify, unread_count

logger = logging.getLogger(__name__)


@extend_schema(tags=["notifications"])
@extend_schema_view(
    list=extend_schema(summary="My notifications", description="Newest first; expired ones are hidden."),
    retrieve=extend_schema(summary="Get notification"),
    destroy=extend_schema(summary="Delete notification", responses={204: OpenApiResponse(description="Deleted")}),
    create=extend_schema(
        summary="Send notification (manager)",
        request=NotificationCreateSerializer,
        responses={201: NotificationSerializer, 403: OpenApiResponse(description="Manager role required")},
    ),
)
class NotificationViewSet(mixins.ListModelMixin,
                          mixins.RetrieveModelMixin,
                          mixins.CreateModelMixin,
                          mixins.DestroyModelMixin,
                          viewsets.GenericViewSet):
    serializer_class = NotificationSerializer
    permission_classes = (permissions.IsAuthenticated,)
    throttle_classes = [ScopedRateThrottleIsolated]
    throttle_scope = 'notifications'
    filterset_fields = ('is_read', 'type')
    ordering_fields = ('created_at', 'priority')

    def get_queryset(self):
        return Notification.objects.filter(user=self.request.user).live()

    def get_permissions(self):
        if self.action in ('create', 'broadcast'):
            return [permissions.IsAuthenticated(), IsManager()]
        return super().get_permissions()

    def create(self, request, *args, **kwargs):
        serializer = NotificationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        user = data.pop('user')
        notification = notify(
            user,
            data.pop('title'),
            data.pop('message', ""),
            type=data.pop('type', Notification.Type.INFO),
            **data,
        )
        logger.info("Manager %s notified user %s", request.user.pk, user.pk)
        return Response(NotificationSerializer(notification).data, status=status.HTTP_201_CREATED)

    @extend_schema(summary="Unread count", responses={200: UnreadCountSerializer})
    @action(detail=False, methods=['get'], url_path='unread-count')
    def unread_count(self, request):
        return Response({"count": unread_count(request.user)})

    @extend_schema(summary="Mark as read", request=None, responses={200: NotificationSerializer})
    @action(detail=True, methods=['post'], url_path='read')
    def read(self, request, pk=None):
        notification = self.get_object()
        notification.mark_read()
        return Response(NotificationSerializer(notification).data)

    @extend_schema(summary="Mark all as read", request=None, responses={200: BulkResultSerializer})
    @action(detail=False, methods=['post'], url_path='read-all')
    def read_all(self, request):
        count = self.get_queryset().unread().update(is_read=True, read_at=timezone.now())
        return Response({"detail": "All notifications marked as read.", "count": count})

    @extend_schema(
        summary="Broadcast (manager)",
        description="Notify every active user, or only users with the given role.",
        request=BroadcastSerializer,
        responses={201: BulkResultSerializer, 403: OpenApiResponse(description="Manager role required")},
    )
    @action(detail=False, methods=['post'])
    def broadcast(self, request):
        serializer = BroadcastSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        users = get_user_model().objects.filter(is_active=True)
        if data.get('role'):
            users = users.filter(role=data['role'])
        count = broadcast(
            users,
            data['title'],
            data.get('message', ""),
            type=data['type'],
            priority=data['priority'],
            action_url=data.get('action_url', ""),
        )
        return Response({"detail": "Broadcast sent.", "count": count}, status=status.HTTP_201_CREATED)
