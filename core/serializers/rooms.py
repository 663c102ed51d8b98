from rest_framework import serializers


class RoomCreateSerializer(serializers.Serializer):
    hostelId = serializers.IntegerField()
    number = serializers.CharField(max_length=20)
    capacity = serializers.IntegerField(min_value=1)


class RoomListQuerySerializer(serializers.Serializer):
    hostelId = serializers.IntegerField(required=False)


class AllocateSerializer(serializers.Serializer):
    residentId = serializers.IntegerField()
