from rest_framework import serializers

from core.models import Attendance


class AttendanceMarkSerializer(serializers.Serializer):
    residentId = serializers.IntegerField()
    date = serializers.DateField()
    status = serializers.ChoiceField(choices=[s for s, _ in Attendance.STATUS_CHOICES])


class AttendanceQuerySerializer(serializers.Serializer):
    residentId = serializers.IntegerField(required=False)
    startDate = serializers.DateField(required=False)
    endDate = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('startDate'), attrs.get('endDate')
        if start and end and start > end:
            raise serializers.ValidationError({'endDate': ['endDate must not be before startDate']})
        return attrs
