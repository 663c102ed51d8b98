from rest_framework import serializers


class HostelCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    capacity = serializers.IntegerField(min_value=1)


class AssignWardenSerializer(serializers.Serializer):
    wardenId = serializers.IntegerField()
