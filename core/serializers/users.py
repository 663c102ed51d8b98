from rest_framework import serializers

from core.models import User

UPDATABLE_FIELDS = ('name', 'role', 'hostelId', 'roomId')


class UserUpdateSerializer(serializers.Serializer):
    """Accepts either the fields themselves or ``{"updates": {...}}``.

    Only keys actually sent end up in ``validated_data``; ``null`` for
    ``hostelId``/``roomId`` clears the binding.
    """
    name = serializers.CharField(max_length=120, required=False)
    role = serializers.ChoiceField(choices=[r for r, _ in User.ROLE_CHOICES], required=False)
    hostelId = serializers.IntegerField(required=False, allow_null=True)
    roomId = serializers.IntegerField(required=False, allow_null=True)

    def to_internal_value(self, data):
        if isinstance(data, dict) and isinstance(data.get('updates'), dict):
            data = data['updates']
        if not isinstance(data, dict):
            raise serializers.ValidationError({'non_field_errors': ['Expected an object of updates']})
        unknown = sorted(set(data) - set(UPDATABLE_FIELDS))
        if unknown:
            raise serializers.ValidationError({k: ['Unknown field'] for k in unknown})
        if not data:
            raise serializers.ValidationError({'non_field_errors': ['No updates given']})
        return super().to_internal_value(data)
