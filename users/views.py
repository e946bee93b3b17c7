"""
Authentication and user management views.
"""

from rest_framework import generics, status
from rest_framework.exceptions import NotFound
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsCashierOrHigher, IsManagerOrHigher
from users.authentication import PasswordResetRateThrottle, login
from users.filters import UserFilterBackend
from users.models import User
from users.serializers import (
    CashierUserSerializer,
    PasswordChangeSerializer,
    ProfileUpdateSerializer,
    ResetConfirmSerializer,
    ResetRequestSerializer,
    TokenRequestSerializer,
    UserManagementSerializer,
    UserProfileSerializer,
    UserRegistrationSerializer,
    UserSerializer,
)
from users.services import UserService


class PublicAPIView(APIView):
    """
    Base for the unauthenticated /auth endpoints.
    A stale bearer header is ignored, and 401s still carry a WWW-Authenticate challenge.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def get_authenticate_header(self, request):
        return 'Bearer realm="api"'


class TokenView(PublicAPIView):
    """
    POST /auth/tokens
    Exchanges utorid + password for a JWT access token.
    """

    def post(self, request):
        serializer = TokenRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        token, expires_at = login(request, **serializer.validated_data)
        return Response({"token": token, "expiresAt": expires_at.isoformat()})


class PasswordResetRequestView(PublicAPIView):
    """
    POST /auth/resets
    Issues a reset token. Limited to one request per minute per IP.
    """

    throttle_classes = [PasswordResetRateThrottle]

    def post(self, request):
        serializer = ResetRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        token = UserService().request_password_reset(serializer.validated_data["utorid"])
        return Response(
            {
                "expiresAt": token.expires_at.isoformat(),
                "resetToken": str(token.token),
                "message": "Use the provided token to reset your password.",
            },
            status=status.HTTP_202_ACCEPTED,
        )


class PasswordResetConfirmView(PublicAPIView):
    """
    POST /auth/resets/<token>
    Sets a new password using a reset (or activation) token.
    """

    def post(self, request, token):
        serializer = ResetConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        UserService().reset_password(token, **serializer.validated_data)
        return Response({"message": "Password reset successful. You may now log in with your new password."})


class UserListCreateView(generics.ListCreateAPIView):
    """
    POST /users (cashier+) registers a member.
    GET /users (manager+) lists members with filters and pagination.
    """

    queryset = User.objects.all()
    filter_backends = [UserFilterBackend]

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsCashierOrHigher()]
        return [IsManagerOrHigher()]

    def get_serializer_class(self):
        if self.request.method == "POST":
            return UserRegistrationSerializer
        return UserSerializer


class CurrentUserView(APIView):
    """
    GET/PATCH /users/me
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def get(self, request):
        return Response(UserProfileSerializer(request.user, context={"request": request}).data)

    def patch(self, request):
        serializer = ProfileUpdateSerializer(request.user, data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


class PasswordChangeView(APIView):
    """
    PATCH /users/me/password
    """

    permission_classes = [IsAuthenticated]

    def patch(self, request):
        serializer = PasswordChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        UserService().change_password(request.user, **serializer.validated_data)
        return Response({"message": "Password updated successfully."})


class UserDetailView(generics.RetrieveUpdateAPIView):
    """
    GET /users/<id>: cashiers get a limited view, managers the full profile.
    PATCH /users/<id>: managers update email, verified, suspicious and role.
    """

    queryset = User.objects.all()
    http_method_names = ["get", "patch", "options"]

    def get_permissions(self):
        if self.request.method == "PATCH":
            return [IsManagerOrHigher()]
        return [IsCashierOrHigher()]

    def get_serializer_class(self):
        if self.request.method == "PATCH":
            return UserManagementSerializer
        if self.request.user.is_manager_or_higher:
            return UserProfileSerializer
        return CashierUserSerializer

    def get_object(self):
        try:
            return User.objects.get(pk=self.kwargs["pk"])
        except User.DoesNotExist:
            raise NotFound("User not found") from None
