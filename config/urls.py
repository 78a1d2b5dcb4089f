from django.contrib import admin
from django.urls import path, include
from django.shortcuts import redirect
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    path("", lambda request: redirect("/api/docs/")),

    path("admin/", admin.site.urls),

    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),

    path("v1/auth/login", TokenObtainPairView.as_view(), name="jwt-login"),
    path("v1/auth/refresh", TokenRefreshView.as_view(), name="jwt-refresh"),

    path("v1/", include("core.events.urls")),
    path("v1/", include("core.jobs.urls")),
    path("v1/", include("core.notifications.urls")),
]
