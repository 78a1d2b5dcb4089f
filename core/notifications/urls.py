from django.urls import path
from core.notifications.api import (
    gupshup_webhook,
    notification_detail,
    notification_logs,
    notification_stats,
    retry_notification,
)

urlpatterns = [
    path("notifications/logs", notification_logs, name="notification-logs"),
    path("notifications/logs/<uuid:notification_id>", notification_detail, name="notification-detail"),
    path("notifications/logs/<uuid:notification_id>/retry", retry_notification, name="notification-retry"),
    path("notifications/stats", notification_stats, name="notification-stats"),
    path("webhooks/gupshup", gupshup_webhook, name="gupshup-webhook"),
]
