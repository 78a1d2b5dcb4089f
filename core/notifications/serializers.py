from rest_framework import serializers

from core.notifications.dispatcher import TEMPLATE_TYPE_BY_EVENT

STATUS_CHOICES = ["pending", "sent", "failed"]
TEMPLATE_TYPE_CHOICES = sorted(set(TEMPLATE_TYPE_BY_EVENT.values()))


class NotificationLogOutSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    recipient_phone = serializers.CharField()
    template_type = serializers.CharField(source="template.type")
    status = serializers.ChoiceField(choices=STATUS_CHOICES)
    provider_message_id = serializers.CharField(allow_null=True)
    error_message = serializers.CharField(allow_null=True)
    entity_type = serializers.CharField(allow_null=True)
    entity_id = serializers.CharField(allow_null=True)
    sent_at = serializers.DateTimeField()


class NotificationLogDetailSerializer(NotificationLogOutSerializer):
    template_name = serializers.CharField(source="template.name")
    template_content = serializers.CharField(source="template.content")
    event_data = serializers.JSONField(allow_null=True)


class NotificationLogQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=STATUS_CHOICES, required=False)
    template_type = serializers.ChoiceField(choices=TEMPLATE_TYPE_CHOICES, required=False)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=200, default=50)


class GupshupWebhookSerializer(serializers.Serializer):
    type = serializers.CharField()
    payload = serializers.DictField(required=False)
