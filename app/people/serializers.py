from rest_framework import serializers

from .models import EnrollmentTask, Person
from .services import assign_missing_ids


class PersonSerializer(serializers.ModelSerializer):
    class Meta:
        model = Person
        fields = [
            'id',
            'external_id',
            'name',
            'role',
            'device_pin',
            'student_id',
            'employee_id',
            'biometric_id',
            'enrollment_status',
            'enrolled_at',
            'devices_seen',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['enrollment_status', 'enrolled_at', 'devices_seen', 'created_at', 'updated_at']

    def validate_device_pin(self, value):
        value = value.strip()
        if value and not value.isdigit():
            raise serializers.ValidationError('Device PIN must contain digits only.')
        return value

    def create(self, validated_data):
        person = Person(**validated_data)
        assign_missing_ids(person)
        person.save()
        return person


class EnrollSerializer(serializers.Serializer):
    template_id = serializers.CharField(max_length=32)
    device_ids = serializers.ListField(child=serializers.CharField(max_length=64), required=False, default=list)

    def validate_template_id(self, value):
        value = value.strip()
        if not value.isdigit():
            raise serializers.ValidationError('Template ID must contain digits only.')
        return value


class EnrollmentTaskSerializer(serializers.ModelSerializer):
    class Meta:
        model = EnrollmentTask
        fields = ['id', 'person', 'status', 'created_at', 'completed_at']
