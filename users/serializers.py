"""
Users — Serializers

Registration, JWT login with user claims, and farm staff read/write
serializers.

@file users/serializers.py
"""

from django.contrib.auth import authenticate
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import User


# ---------------------------------------------------------------------------
# JWT — custom claims
# ---------------------------------------------------------------------------

class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Inject farm and farm role into the JWT payload."""

    username_field = 'email'

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['farm_id'] = str(user.farm_id) if user.farm_id else None
        token['role'] = user.role
        return token

    def validate(self, attrs):
        user = authenticate(
            request=self.context.get('request'),
            email=attrs.get('email'),
            password=attrs.get('password'),
        )

        if user is None:
            raise serializers.ValidationError(
                {'detail': 'Invalid credentials or account not active.'},
                code='authentication_failed',
            )

        if user.status != User.StatusChoices.ACTIVE:
            raise serializers.ValidationError(
                {'detail': f'Account status is {user.status}. Only ACTIVE accounts can log in.'},
                code='account_inactive',
            )

        data = super().validate(attrs)
        data['user'] = UserReadSerializer(user).data
        return data


# ---------------------------------------------------------------------------
# Auth serializers
# ---------------------------------------------------------------------------

class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100, required=False, default='')
    contact = serializers.CharField(max_length=20, required=False, default='')
    farm_name = serializers.CharField(max_length=200, required=False, default='')

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('Email already in use.')
        return value.lower()


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False)


# ---------------------------------------------------------------------------
# User serializers
# ---------------------------------------------------------------------------

class UserReadSerializer(serializers.ModelSerializer):
    """Read-only user representation, returned in list / detail views."""

    full_name = serializers.CharField(source='get_full_name', read_only=True)
    farm_name = serializers.CharField(source='farm.name', read_only=True, default=None)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'full_name', 'contact',
            'farm', 'farm_name', 'role', 'status', 'is_active',
            'date_joined', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class StaffCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    first_name = serializers.CharField(max_length=100, required=False, default='')
    last_name = serializers.CharField(max_length=100, required=False, default='')
    contact = serializers.CharField(max_length=20, required=False, default='')
    role = serializers.ChoiceField(
        choices=[User.RoleChoices.MANAGER, User.RoleChoices.WORKER],
        default=User.RoleChoices.WORKER,
    )

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('Email already in use.')
        return value.lower()


class StaffUpdateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100, required=False)
    last_name = serializers.CharField(max_length=100, required=False)
    contact = serializers.CharField(max_length=20, required=False, allow_blank=True)
    role = serializers.ChoiceField(
        choices=[User.RoleChoices.MANAGER, User.RoleChoices.WORKER],
        required=False,
    )


class ChangeStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=User.StatusChoices.choices)
    reason = serializers.CharField(required=False, default='')
