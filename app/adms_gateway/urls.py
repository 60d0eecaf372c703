from django.urls import path

from adms_gateway.views import adms_cdata, adms_getrequest, adms_punch, attendance_push, device_heartbeat

urlpatterns = [
    path("iclock/cdata", adms_cdata, name="adms-cdata"),
    path("iclock/cdata.aspx", adms_cdata, name="adms-cdata-aspx"),
    path("iclock/getrequest", adms_getrequest, name="adms-getrequest"),
    path("iclock/getrequest.aspx", adms_getrequest, name="adms-getrequest-aspx"),
    path("api/biometric-simple/punch", adms_punch, name="adms-punch"),
    path("api/biometric/attendance/push", attendance_push, name="attendance-push"),
    path("api/biometric/devices/<str:serial_number>/heartbeat", device_heartbeat, name="device-heartbeat"),
]
