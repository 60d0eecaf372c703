from rest_framework import viewsets
from .models import Device
from .serializers import DeviceSerializer


class DeviceViewSet(viewsets.ModelViewSet):
    queryset = Device.objects.none()
    serializer_class = DeviceSerializer

    def get_queryset(self):
        queryset = Device.objects.all().order_by('-id')
        online_only = str(self.request.query_params.get('online_only', '')).lower() in {'1', 'true', 'yes'}

        if online_only:
            return queryset.filter(is_online=True)

        return queryset
