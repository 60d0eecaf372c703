from django.urls import path, include
from rest_framework.routers import DefaultRouter
from people.views import PersonViewSet
from devices.views import DeviceViewSet
from events.views import AttendanceRecordViewSet, DailySummaryViewSet, daily_report

from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

router = DefaultRouter()
router.register(r'people', PersonViewSet)
router.register(r'devices', DeviceViewSet)
router.register(r'attendance/records', AttendanceRecordViewSet)
router.register(r'attendance/summaries', DailySummaryViewSet)

urlpatterns = [
    path('auth/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('attendance/reports/daily', daily_report, name='attendance-daily-report'),
    path('', include(router.urls)),
]
