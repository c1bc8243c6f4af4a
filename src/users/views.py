import logging
from datetime import datetime, timezone

from django.conf import settings
from django.contrib.auth import authenticate
from drf_spectacular.utils import extend_schema, OpenApiResponse, extend_schema_view
from rest_framework import viewsets, mixins, status
from rest_framework import serializers as rf_serializers
from rest_framework.decorators import action
from rest_framework.generics import CreateAPIView, RetrieveUpdateAPIView
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import (
    TokenObtainPairView as BaseTokenObtainPairView,
    TokenRefreshView as BaseTokenRefreshView,
)

from .models import CustomUser
from .permissions import IsManager
from .serializers import (
    CustomUserSerializer, RegistrationSerializer, LoginSerializer, RoleUpdateSerializer,
)
from ..travel.throttling import ScopedRateThrottleIsolated

logger = logging.getLogger(__name__)


class ThrottledTokenObtainPairView(BaseTokenObtainPairView):
    throttle_classes = (ScopedRateThrottleIsolated,)
    throttle_scope = 'auth_login'


class ThrottledTokenRefreshView(BaseTokenRefreshView):
    throttle_classes = (ScopedRateThrottleIsolated,)
    throttle_scope = 'auth_login'


class PublicUserSerializer(rf_serializers.Serializer):
    id = rf_serializers.IntegerField()
    email = rf_serializers.EmailField()
    first_name = rf_serializers.CharField(allow_blank=True, allow_null=True, required=False)
    last_name = rf_serializers.CharField(allow_blank=True, allow_null=True, required=False)
    phone_number = rf_serializers.CharField(allow_blank=True, allow_null=True, required=False)
    role = rf_serializers.CharField()

class RegisterResponseSerializer(rf_serializers.Serializer):
    detail = rf_serializers.CharField()
    user = PublicUserSerializer()

class LoginResponseSerializer(rf_serializers.Serializer):
    detail = rf_serializers.CharField()
    role = rf_serializers.CharField()

class SimpleDetailSerializer(rf_serializers.Serializer):
    detail = rf_serializers.CharField()


def set_auth_cookies(response, user):
    """Issue a fresh JWT pair for `user` and attach both as httpOnly cookies."""
    refresh = RefreshToken.for_user(user)
    access_token = refresh.access_token
    access_expiry = datetime.fromtimestamp(access_token['exp'], tz=timezone.utc)
    refresh_expiry = datetime.fromtimestamp(refresh['exp'], tz=timezone.utc)

    response.set_cookie(
        key='access_token',
        value=str(access_token),
        httponly=True,
        secure=getattr(settings, 'AUTH_COOKIE_SECURE', False),
        samesite=getattr(settings, 'AUTH_COOKIE_SAMESITE', 'Lax'),
        expires=access_expiry,
        path='/',
    )
    response.set_cookie(
        key='refresh_token',
        value=str(refresh),
        httponly=True,
        secure=getattr(settings, 'AUTH_COOKIE_SECURE', False),
        samesite=getattr(settings, 'AUTH_COOKIE_SAMESITE', 'Lax'),
        expires=refresh_expiry,
        path='/',
    )
    return response


@extend_schema(
    summary="Register & set auth cookies",
    request=RegistrationSerializer,
    responses={
        201: OpenApiResponse(
            response=RegisterResponseSerializer,
            description="Account created; JWT tokens are set as httpOnly cookies."
        ),
        400: OpenApiResponse(description="Validation error")},
    tags=["auth"],
)
class RegisterView(CreateAPIView):
    serializer_class = RegistrationSerializer
    permission_classes = [AllowAny]
    throttle_classes = (ScopedRateThrottleIsolated,)
    throttle_scope = 'auth_register'

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Registered user %s", user.pk)

        data = {
            "detail": "Account created successfully.",
            "user": {
                "id": user.id,
                "email": user.email,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "phone_number": user.phone_number,
                "role": user.role,
            }
        }
        response = Response(data, status=status.HTTP_201_CREATED)
        return set_auth_cookies(response, user)


@extend_schema(tags=["users"])
@extend_schema_view(
    list=extend_schema(summary="List members (manager)"),
    retrieve=extend_schema(summary="Retrieve member (manager)"),
    update=extend_schema(summary="Update member (manager)"),
    partial_update=extend_schema(summary="Partial update member (manager)"),
    destroy=extend_schema(summary="Delete member (manager)"),
)
class CustomUserViewSet(mixins.ListModelMixin,
                        mixins.RetrieveModelMixin,
                        mixins.UpdateModelMixin,
                        mixins.DestroyModelMixin,
                        viewsets.GenericViewSet):
    """Member management for the platform administrators."""
    queryset = CustomUser.objects.all().order_by('-date_joined')
    serializer_class = CustomUserSerializer
    permission_classes = [IsAuthenticated, IsManager]
    filterset_fields = ('role', 'is_active')
    ordering_fields = ('date_joined', 'email')

    @extend_schema(
        summary="Change member role",
        request=RoleUpdateSerializer,
        responses={
            200: CustomUserSerializer,
            400: OpenApiResponse(description="Unknown role or self-demotion"),
        },
    )
    @action(detail=True, methods=['put', 'patch'], url_path='role')
    def role(self, request, pk=None):
        user = self.get_object()
        serializer = RoleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_role = serializer.validated_data['role']

        if user.pk == request.user.pk and new_role != CustomUser.Role.MANAGER:
            raise rf_serializers.ValidationError({"role": "You cannot remove your own manager role."})

        user.role = new_role
        user.save(update_fields=['role'])
        logger.info("User %s role changed to %s by %s", user.pk, new_role, request.user.pk)
        return Response(CustomUserSerializer(user).data)


@extend_schema(tags=["auth"])
@extend_schema_view(
    get=extend_schema(summary="Current user profile"),
    put=extend_schema(summary="Update own profile"),
    patch=extend_schema(summary="Partial update own profile"),
)
class MeView(RetrieveUpdateAPIView):
    serializer_class = CustomUserSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        return self.request.user


@extend_schema(tags=["auth"])
class LoginView(APIView):
    permission_classes = [AllowAny]
    serializer_class = LoginSerializer
    throttle_classes = (ScopedRateThrottleIsolated,)

    def get_throttles(self):
        self.throttle_scope = 'auth_login' if self.request.method == 'POST' else None
        return super().get_throttles()

    @extend_schema(
        request=None,
        responses={200: OpenApiResponse(response=LoginSerializer, description="Login form schema")},
        auth=[],
    )
    def get(self, request):
        serializer = self.serializer_class()
        return Response(serializer.data)

    @extend_schema(
        request=LoginSerializer,
        responses={
            200: OpenApiResponse(response=LoginResponseSerializer, description="Login successful; cookies set"),
            401: OpenApiResponse(response=SimpleDetailSerializer, description="Invalid credentials"),
        },
        auth=[],
    )
    def post(self, request, *args, **kwargs):
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data['email']
        password = serializer.validated_data['password']
        user = authenticate(request, email=email, password=password)

        if user:
            response = Response({"detail": "Login successful", "role": user.role}, status=status.HTTP_200_OK)
            return set_auth_cookies(response, user)

        logger.info("Failed login attempt for %s", email)
        return Response({"detail": "Invalid credentials"}, status=status.HTTP_401_UNAUTHORIZED)


@extend_schema(
    summary="Logout",
    request=None,
    responses={
        200: OpenApiResponse(response=SimpleDetailSerializer, description="Logged out"),
        401: OpenApiResponse(description="Unauthorized"),
    },
    tags=["auth"],
)
class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        response = Response({"detail": "Logout successful"}, status=status.HTTP_200_OK)
        response.delete_cookie('access_token', path='/')
        response.delete_cookie('refresh_token', path='/')
        return response

