import bleach
from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)

    def validate_username(self, v):
        v = bleach.clean((v or '').strip(), tags=[], strip=True)
        if not v:
            raise serializers.ValidationError('Username is required')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required')
        return v


class RefreshSerializer(serializers.Serializer):
    refreshToken = serializers.CharField(required=False, allow_blank=True)
