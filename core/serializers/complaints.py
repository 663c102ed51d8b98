from rest_framework import serializers

from core.models import Complaint


class ComplaintCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    description = serializers.CharField()


class ComplaintUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[s for s, _ in Complaint.STATUS_CHOICES])
    response = serializers.CharField(required=False, allow_blank=True)
