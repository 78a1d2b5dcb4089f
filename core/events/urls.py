from django.urls import path
from core.events.api import events_list

urlpatterns = [
    path("events", events_list, name="events-list"),
]
