from rest_framework import serializers
from .models import Device


class DeviceSerializer(serializers.ModelSerializer):
    serial_number = serializers.CharField(required=True, min_length=4, max_length=64)
    min_out_gap_seconds = serializers.IntegerField(required=False, min_value=1)
    duplicate_window_seconds = serializers.IntegerField(required=False, min_value=1)

    class Meta:
        model = Device
        fields = [
            'id',
            'serial_number',
            'name',
            'model',
            'manufacturer',
            'location',
            'protocol',
            'attendance_mode',
            'min_out_gap_seconds',
            'duplicate_window_seconds',
            'is_online',
            'last_heartbeat_at',
            'battery_level',
            'storage_used',
            'daily_records',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'protocol',
            'is_online',
            'last_heartbeat_at',
            'battery_level',
            'storage_used',
            'daily_records',
            'created_at',
            'updated_at',
        ]

    def validate_serial_number(self, value):
        value = value.strip()
        if not value.isalnum():
            raise serializers.ValidationError('Serial number must be alphanumeric.')
        queryset = Device.objects.filter(serial_number=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('Device already registered.')
        return value

    def validate(self, attrs):
        window = attrs.get('duplicate_window_seconds', getattr(self.instance, 'duplicate_window_seconds', None))
        gap = attrs.get('min_out_gap_seconds', getattr(self.instance, 'min_out_gap_seconds', None))
        if window is not None and gap is not None and window > gap:
            raise serializers.ValidationError(
                {'duplicate_window_seconds': 'Duplicate window cannot exceed the minimum OUT gap.'}
            )
        return attrs

    def create(self, validated_data):
        validated_data['protocol'] = 'ADMS'
        return super().create(validated_data)
