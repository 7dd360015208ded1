"""
Authentication and user management views
"""
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.permissions import IsPrivileged
from apps.common.roles import MEMBER
from apps.common.uploads import absolute_file_url

from .serializers import (
    AdminTokenResetSerializer,
    ChangePasswordSerializer,
    CreateUserSerializer,
    LoginSerializer,
    MemberSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    ResetPasswordSerializer,
    UserSerializer,
    issue_tokens,
)
from .services import UserService


def _user_payload(user, request, include_token=False):
    payload = UserSerializer(user, context={'request': request}).data
    if include_token:
        payload.update(issue_tokens(user))
    return payload


class RegisterView(APIView):
    """POST /api/auth/register"""
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserService.register(serializer.validated_data)
        return Response(_user_payload(user, request, include_token=True), status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """POST /api/auth/login"""
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserService.authenticate(
            serializer.validated_data['email'],
            serializer.validated_data['password'],
        )
        return Response(_user_payload(user, request, include_token=True))


class ProfileView(APIView):
    """
    GET /api/auth/profile - current user
    PUT/PATCH /api/auth/profile - update name, email, password and details
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(_user_payload(request.user, request))

    def put(self, request):
        serializer = ProfileUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = UserService.update_profile(request.user, serializer.validated_data)
        return Response({
            'message': 'Profile updated successfully',
            **_user_payload(user, request, include_token=True),
        })

    patch = put


class AdminTokenPasswordResetView(APIView):
    """POST /api/auth/reset-password/admin-token"""
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = AdminTokenResetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        UserService.reset_with_admin_token(
            serializer.validated_data['email'],
            serializer.validated_data['admin_invite_token'],
            serializer.validated_data['new_password'],
        )
        return Response({'message': 'Password reset successfully'})


class UserViewSet(viewsets.ViewSet):
    """
    Team management

    GET    /api/users            - members with task counts (admin)
    POST   /api/users            - create member or client (admin)
    GET    /api/users/{id}       - any signed-in user
    DELETE /api/users/{id}       - admin
    PUT    /api/users/{id}/password - admin reset
    PUT    /api/users/profile/password - change own password
    PUT/DELETE /api/users/profile/photo - own profile photo
    """

    def get_permissions(self):
        if self.action in ('list', 'create', 'destroy', 'reset_password'):
            return [IsPrivileged()]
        return [IsAuthenticated()]

    def list(self, request):
        users = UserService.list_with_task_counts(request.query_params.get('role') or MEMBER)
        return Response(MemberSerializer(users, many=True, context={'request': request}).data)

    def create(self, request):
        serializer = CreateUserSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserService.create_user(request.user, serializer.validated_data)
        return Response(_user_payload(user, request), status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        user = UserService.get_user(pk)
        return Response(_user_payload(user, request))

    def destroy(self, request, pk=None):
        user = UserService.get_user(pk)
        UserService.delete_user(request.user, user)
        return Response({'message': 'User deleted successfully'})

    @action(detail=True, methods=['put'], url_path='password')
    def reset_password(self, request, pk=None):
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserService.get_user(pk)
        UserService.reset_password(request.user, user, serializer.validated_data['new_password'])
        return Response({'message': 'Password reset successfully'})

    @action(detail=False, methods=['put'], url_path='profile/password')
    def change_password(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        UserService.change_password(
            request.user,
            serializer.validated_data['current_password'],
            serializer.validated_data['new_password'],
        )
        return Response({'message': 'Password updated successfully'})

    @action(detail=False, methods=['put', 'delete'], url_path='profile/photo')
    def profile_photo(self, request):
        if request.method == 'DELETE':
            user = UserService.remove_photo(request.user)
            return Response({
                'message': 'Profile photo removed successfully',
                'user': _user_payload(user, request),
            })

        user = UserService.update_photo(request.user, request.FILES.get('profile_image'))
        return Response({
            'message': 'Profile photo updated successfully',
            'profile_image_url': absolute_file_url(request, user.profile_image),
            'user': _user_payload(user, request),
        })
