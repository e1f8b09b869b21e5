from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from django.conf import settings

admin_url = settings.ADMIN_URL.strip("/") + "/"

urlpatterns = [
    path(admin_url, admin.site.urls),

    # Admin gate (JWT for staff users)
    path('api/v1/auth/token/', TokenObtainPairView.as_view(), name='token-obtain'),
    path('api/v1/auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),

    # Core Apps
    path('api/v1/orders/', include('apps.payments.urls')),  # payment link, callback, return
    path('api/v1/orders/', include('apps.orders.urls')),
    path('api/v1/settings/', include('apps.site_settings.urls')),
    path('api/v1/utils/', include('apps.utils.urls')),

    # OpenAPI schema
    path('api/v1/schema/', SpectacularAPIView.as_view(), name='schema'),
]
