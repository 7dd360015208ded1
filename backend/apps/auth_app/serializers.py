"""
Serializers for authentication and user management
"""
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken

from apps.common.uploads import absolute_file_url

from .models import Gender, OfficeLocation, User


def issue_tokens(user):
    refresh = RefreshToken.for_user(user)
    return {
        'token': str(refresh.access_token),
        'refresh': str(refresh),
    }


class UserSerializer(serializers.ModelSerializer):
    """Public user payload"""
    role_label = serializers.CharField(read_only=True)
    profile_image_url = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'name',
            'email',
            'role',
            'role_label',
            'profile_image_url',
            'birthdate',
            'gender',
            'office_location',
            'must_change_password',
        ]
        read_only_fields = fields

    def get_profile_image_url(self, obj):
        return absolute_file_url(self.context.get('request'), obj.profile_image) or None


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user reference embedded in tasks, matters and documents"""
    profile_image_url = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'role', 'profile_image_url']
        read_only_fields = fields

    def get_profile_image_url(self, obj):
        return absolute_file_url(self.context.get('request'), obj.profile_image) or None


class MemberSerializer(UserSerializer):
    """User with task counters, for the team list"""
    pending_tasks = serializers.IntegerField(read_only=True)
    in_progress_tasks = serializers.IntegerField(read_only=True)
    completed_tasks = serializers.IntegerField(read_only=True)

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + [
            'pending_tasks',
            'in_progress_tasks',
            'completed_tasks',
            'created_at',
        ]
        read_only_fields = fields


REQUIRED_PROFILE = {'required': 'Gender and office location are required', 'blank': 'Gender and office location are required'}
REQUIRED_CREDENTIALS = {'required': 'Name, email and password are required', 'blank': 'Name, email and password are required'}
REQUIRED_PASSWORDS = {'required': 'Current password and new password are required', 'blank': 'Current password and new password are required'}


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, error_messages=REQUIRED_CREDENTIALS)
    email = serializers.EmailField(error_messages=REQUIRED_CREDENTIALS)
    password = serializers.CharField(write_only=True, error_messages=REQUIRED_CREDENTIALS)
    gender = serializers.ChoiceField(choices=Gender.choices, error_messages=REQUIRED_PROFILE)
    office_location = serializers.ChoiceField(choices=OfficeLocation.choices, error_messages=REQUIRED_PROFILE)
    birthdate = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    admin_invite_token = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    privileged_role = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def to_internal_value(self, data):
        # Trim before ChoiceField validation so "Gift City " is accepted.
        if hasattr(data, 'copy'):
            data = data.copy()
            office = data.get('office_location')
            if isinstance(office, str):
                data['office_location'] = office.strip()
        return super().to_internal_value(data)


class LoginSerializer(serializers.Serializer):
    """Login with email instead of username"""
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class ProfileUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    password = serializers.CharField(required=False, allow_blank=True, write_only=True)
    gender = serializers.ChoiceField(choices=Gender.choices, required=False)
    office_location = serializers.CharField(required=False, allow_blank=True)
    birthdate = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_office_location(self, value):
        value = value.strip()
        if value and value not in OfficeLocation.values:
            raise serializers.ValidationError('Office location must be Ahmedabad or Gift City')
        return value


class AdminTokenResetSerializer(serializers.Serializer):
    email = serializers.EmailField()
    admin_invite_token = serializers.CharField()
    new_password = serializers.CharField(write_only=True)


class CreateUserSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, error_messages=REQUIRED_CREDENTIALS)
    email = serializers.EmailField(error_messages=REQUIRED_CREDENTIALS)
    password = serializers.CharField(write_only=True, error_messages=REQUIRED_CREDENTIALS)
    role = serializers.CharField(required=False, allow_blank=True)
    gender = serializers.ChoiceField(choices=Gender.choices, required=False)
    office_location = serializers.ChoiceField(choices=OfficeLocation.choices, required=False)


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True, error_messages=REQUIRED_PASSWORDS)
    new_password = serializers.CharField(write_only=True, error_messages=REQUIRED_PASSWORDS)


class ResetPasswordSerializer(serializers.Serializer):
    new_password = serializers.CharField(
        write_only=True,
        error_messages={'required': 'New password is required', 'blank': 'New password is required'},
    )
