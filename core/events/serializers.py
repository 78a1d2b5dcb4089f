from rest_framework import serializers

from core.events.models import Event


class StoredEventOutSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    type = serializers.CharField()
    status = serializers.CharField()
    payload = serializers.SerializerMethodField()
    created_at = serializers.DateTimeField()
    processed_at = serializers.DateTimeField(allow_null=True)

    def get_payload(self, obj):
        return obj.payload.to_dict()


class EventQuerySerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=Event.Type.choices)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=200, default=50)
