# apps/site_settings/views.py
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import SiteSettingsSerializer
from .services import get_settings, update_settings


class SiteSettingsView(APIView):
    """
    GET is public (frontend shows delivery prices); PATCH is admin only.
    """

    def get_permissions(self):
        if self.request.method == "GET":
            return [AllowAny()]
        return [IsAdminUser()]

    def get(self, request):
        return Response(SiteSettingsSerializer(get_settings()).data)

    def patch(self, request):
        serializer = SiteSettingsSerializer(get_settings(), data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        obj = update_settings(**serializer.validated_data)
        return Response(SiteSettingsSerializer(obj).data)
