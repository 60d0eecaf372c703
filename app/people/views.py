from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .models import Person
from .serializers import EnrollmentTaskSerializer, EnrollSerializer, PersonSerializer
from .services import enroll_person


class PersonViewSet(viewsets.ModelViewSet):
    queryset = Person.objects.all().order_by('-id')
    serializer_class = PersonSerializer

    def get_queryset(self):
        queryset = Person.objects.all().order_by('-id')
        role = self.request.query_params.get('role')
        enrollment_status = self.request.query_params.get('enrollment_status')

        if role:
            queryset = queryset.filter(role=role)
        if enrollment_status:
            queryset = queryset.filter(enrollment_status=enrollment_status)
        return queryset

    @action(detail=True, methods=['put'])
    def enroll(self, request, pk=None):
        person = self.get_object()
        serializer = EnrollSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        enroll_person(
            person,
            serializer.validated_data['template_id'],
            serializer.validated_data['device_ids'],
        )
        return Response(PersonSerializer(person).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=['get'], url_path='enrollment-tasks')
    def enrollment_tasks(self, request, pk=None):
        person = self.get_object()
        tasks = person.enrollment_tasks.order_by('-created_at', '-id')
        return Response(EnrollmentTaskSerializer(tasks, many=True).data)
