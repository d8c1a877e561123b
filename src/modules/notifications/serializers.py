from rest_framework import serializers

from modules.notifications.notifier import SUBJECTS


class SendEmailSerializer(serializers.Serializer):
    template = serializers.ChoiceField(choices=sorted(SUBJECTS))
    recipient = serializers.EmailField()
    variables = serializers.DictField(required=False, default=dict)
