from rest_framework import serializers

from core.jobs.models import JobRun


class JobRunSerializer(serializers.ModelSerializer):
    class Meta:
        model = JobRun
        fields = [
            "id",
            "job_name",
            "status",
            "started_at",
            "completed_at",
            "duration_ms",
            "events_emitted",
            "records_processed",
            "error_message",
            "metadata",
        ]


class JobRunQuerySerializer(serializers.Serializer):
    job_name = serializers.CharField(required=False)
    status = serializers.ChoiceField(choices=JobRun.Status.choices, required=False)
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100, default=20)


class JobStatsQuerySerializer(serializers.Serializer):
    job_name = serializers.CharField(required=False)
    days = serializers.IntegerField(required=False, min_value=1, max_value=90, default=7)
