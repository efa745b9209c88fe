"""
Learning app views - enrollments, classes, chapter completion, progress and quiz attempts
"""
import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import Role
from accounts.permissions import HasCapability, authorize, can_view_course
from academie.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from courses.hierarchy import get_target, parse_identifier, parse_identifier_list
from courses.models import Chapter, ClassCourse, ClassMembership, Classroom, ContentItem, Course, Enrollment, Module
from courses.views import body_value, capability_map, request_body
from .serializers import (
    ChapterProgressSerializer, ClassCourseSerializer, ClassMemberSerializer, ClassroomSerializer,
    EnrollmentSerializer, QuizAttemptSerializer
)
from .services.classes import ClassService
from .services.progress import ProgressService
from .services.quiz import QuizService

logger = logging.getLogger(__name__)

User = get_user_model()


def require_enrollment(student, course):
    if not Enrollment.objects.filter(student=student, course=course).exists():
        logger.warning('Student %s is not enrolled in course %s', student.pk, course.pk)
        raise AuthorizationError('Vous n\'êtes pas inscrit à ce cours', code='not_enrolled')


# ============ Enrollments ============

class EnrollmentListView(APIView):
    """GET/POST /api/enrollments/"""
    permission_classes = [HasCapability]
    capabilities = {'POST': 'enrollment.manage'}

    def get(self, request):
        user = request.user
        enrollments = Enrollment.objects.select_related('student', 'course')

        student_id = request.query_params.get('studentId') or request.query_params.get('student_id')
        course_id = request.query_params.get('courseId') or request.query_params.get('course_id')
        if student_id:
            enrollments = enrollments.filter(student_id=parse_identifier(student_id))
        if course_id:
            enrollments = enrollments.filter(course_id=parse_identifier(course_id, Course))

        if user.role == Role.STUDENT:
            if student_id and parse_identifier(student_id) != user.pk:
                raise AuthorizationError()
            enrollments = enrollments.filter(student=user)
        elif user.role == Role.TRAINER:
            enrollments = enrollments.filter(course__teacher=user)

        return Response(EnrollmentSerializer(enrollments, many=True).data)

    def post(self, request):
        data = request_body(request)
        student_id = parse_identifier(body_value(data, 'studentId', 'student_id'), strict=True)
        bulk_ids = body_value(data, 'courseIds', 'course_ids')
        if bulk_ids is not None:
            course_ids = parse_identifier_list(bulk_ids, Course)
        else:
            course_ids = [parse_identifier(body_value(data, 'courseId', 'course_id'), Course, strict=True)]

        try:
            student = User.objects.get(pk=student_id)
        except User.DoesNotExist:
            raise NotFoundError('Utilisateur introuvable')
        if student.role != Role.STUDENT:
            raise ValidationError('Seuls les étudiants peuvent être inscrits à un cours')

        courses = Course.objects.in_bulk(course_ids)
        for course_id in course_ids:
            course = courses.get(course_id)
            if course is None:
                raise NotFoundError('Cours introuvable')
            if not course.is_active:
                raise ValidationError('Impossible d\'inscrire à un cours inactif', code='course_inactive')

        already = set(
            Enrollment.objects.filter(student=student, course_id__in=course_ids).values_list('course_id', flat=True)
        )
        if bulk_ids is None and already:
            raise ConflictError('L\'étudiant est déjà inscrit à ce cours', code='already_enrolled')

        try:
            with transaction.atomic():
                created = [
                    Enrollment.objects.create(student=student, course=courses[course_id])
                    for course_id in dict.fromkeys(course_ids)
                    if course_id not in already
                ]
        except IntegrityError:
            logger.warning('Concurrent enrollment of student %s in courses %s', student.pk, course_ids)
            raise ConflictError('L\'étudiant est déjà inscrit à ce cours', code='already_enrolled')

        logger.info('Enrolled student %s in courses %s (already enrolled: %s)',
                    student.pk, [e.course_id for e in created], sorted(already))
        body = {'success': True, 'message': 'Inscription réussie'}
        if bulk_ids is None:
            body['enrollment'] = EnrollmentSerializer(created[0]).data
        else:
            body['enrollments'] = EnrollmentSerializer(created, many=True).data
            body['skipped'] = sorted(already)
        return Response(body, status=status.HTTP_201_CREATED)


class EnrollmentDetailView(APIView):
    permission_classes = [HasCapability]
    capabilities = {'DELETE': 'enrollment.manage'}

    def delete(self, request, pk):
        enrollment = get_target(Enrollment, pk)
        enrollment.delete()
        logger.info('Enrollment %s removed (student %s, course %s)', pk, enrollment.student_id, enrollment.course_id)
        return Response({'success': True, 'message': 'Désinscription effectuée'})


# ============ Classes ============

class ClassViewSet(viewsets.ModelViewSet):
    """
    Classes and their members

    ADMIN and SUB_ADMIN manage every class; a trainer reads the classes they
    teach. Adding a student or assigning a course enrolls the students of the
    class in its courses.
    """
    serializer_class = ClassroomSerializer
    permission_classes = [HasCapability]
    capabilities = capability_map('class.view', 'enrollment.manage')

    def get_queryset(self):
        queryset = Classroom.objects.select_related('teacher')
        if self.request.user.role == Role.TRAINER:
            queryset = queryset.filter(teacher=self.request.user)
        active = self.request.query_params.get('active')
        if active in ('true', 'false'):
            queryset = queryset.filter(is_active=(active == 'true'))
        return queryset

    def get_object(self):
        classroom = get_target(Classroom, self.kwargs['pk'], Classroom.objects.select_related('teacher'))
        user = self.request.user
        if user.role == Role.TRAINER and classroom.teacher_id != user.pk:
            logger.warning('Trainer %s may not read class %s', user.pk, classroom.pk)
            raise AuthorizationError()
        return classroom

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        classroom = serializer.save()
        logger.info('Class %s (%s) created by user %s', classroom.pk, classroom.name, request.user.pk)
        return Response(
            {'success': True, 'message': 'Classe créée avec succès', 'class': self.get_serializer(classroom).data},
            status=status.HTTP_201_CREATED
        )

    def update(self, request, *args, **kwargs):
        classroom = self.get_object()
        serializer = self.get_serializer(classroom, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'message': 'Classe mise à jour avec succès', 'class': serializer.data})

    def destroy(self, request, *args, **kwargs):
        classroom = self.get_object()
        logger.info('Deleting class %s (%s)', classroom.pk, classroom.name)
        classroom.delete()
        return Response({'success': True, 'message': 'Classe supprimée avec succès'})

    @action(detail=True, methods=['get', 'post'])
    def students(self, request, pk=None):
        classroom = self.get_object()
        if request.method == 'GET':
            memberships = ClassMembership.objects.filter(classroom=classroom).select_related('student')
            return Response({'success': True, 'students': ClassMemberSerializer(memberships, many=True).data})

        data = request_body(request)
        student_id = parse_identifier(body_value(data, 'studentId', 'student_id'), strict=True)
        try:
            student = User.objects.get(pk=student_id)
        except User.DoesNotExist:
            raise NotFoundError('Utilisateur introuvable')

        membership, created = ClassService.add_student(classroom, student)
        return Response(
            {
                'success': True,
                'message': 'Étudiant ajouté à la classe',
                'student': ClassMemberSerializer(membership).data,
                'coursesEnrolled': created,
            },
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['delete'], url_path=r'students/(?P<student_id>[^/.]+)')
    def remove_student(self, request, pk=None, student_id=None):
        classroom = self.get_object()
        ClassService.remove_student(classroom, parse_identifier(student_id))
        return Response({'success': True, 'message': 'Étudiant retiré de la classe'})

    @action(detail=True, methods=['get', 'post'])
    def courses(self, request, pk=None):
        classroom = self.get_object()
        if request.method == 'GET':
            links = ClassCourse.objects.filter(classroom=classroom).select_related('course')
            return Response({'success': True, 'courses': ClassCourseSerializer(links, many=True).data})

        data = request_body(request)
        course_id = parse_identifier(body_value(data, 'courseId', 'course_id'), Course, strict=True)
        course = get_target(Course, course_id)

        link, created = ClassService.assign_course(classroom, course)
        return Response(
            {
                'success': True,
                'message': 'Cours assigné à la classe',
                'course': ClassCourseSerializer(link).data,
                'studentsEnrolled': created,
            },
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['delete'], url_path=r'courses/(?P<course_id>[^/.]+)')
    def remove_course(self, request, pk=None, course_id=None):
        classroom = self.get_object()
        ClassService.remove_course(classroom, parse_identifier(course_id, Course))
        return Response({'success': True, 'message': 'Cours retiré de la classe'})

    @action(detail=True, methods=['get'], url_path='enrollment-count')
    def enrollment_count(self, request, pk=None):
        classroom = self.get_object()
        return Response({'success': True, 'enrollmentCount': ClassService.enrollment_count(classroom)})


# ============ Progress ============

class ChapterCompleteView(APIView):
    """POST marks the chapter complete for the caller, DELETE reopens it"""
    permission_classes = [HasCapability]
    capabilities = {'POST': 'progress.record', 'DELETE': 'progress.record'}

    def get_chapter(self, request, chapter_id):
        chapter = get_target(Chapter, chapter_id, Chapter.objects.select_related('module__course'))
        require_enrollment(request.user, chapter.module.course)
        return chapter

    def post(self, request, chapter_id):
        chapter = self.get_chapter(request, chapter_id)
        progress, created = ProgressService.mark_complete(request.user, chapter)
        return Response(
            {
                'success': True,
                'message': 'Chapitre terminé',
                'created': created,
                'progress': ChapterProgressSerializer(progress).data,
                'module_progress': ProgressService.module_progress(request.user, chapter.module),
            },
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    def delete(self, request, chapter_id):
        chapter = self.get_chapter(request, chapter_id)
        removed = ProgressService.unmark_complete(request.user, chapter)
        return Response({
            'success': True,
            'removed': removed,
            'module_progress': ProgressService.module_progress(request.user, chapter.module),
        })


class ModuleProgressView(APIView):
    permission_classes = [HasCapability]
    capabilities = {'GET': 'progress.record'}

    def get(self, request, module_id):
        module = get_target(Module, module_id, Module.objects.select_related('course'))
        require_enrollment(request.user, module.course)
        return Response(ProgressService.module_progress(request.user, module))


class CourseModuleProgressView(APIView):
    permission_classes = [HasCapability]
    capabilities = {'GET': 'progress.record'}

    def get(self, request, course_id):
        course = get_target(Course, course_id)
        require_enrollment(request.user, course)
        return Response({'success': True, 'modules': ProgressService.course_module_progress(request.user, course)})


class CourseModuleStatsView(APIView):
    permission_classes = [HasCapability]
    capabilities = {'GET': 'stats.view'}

    def get(self, request, course_id):
        course = get_target(Course, course_id)
        authorize(request.user, 'stats.view', course)
        if not can_view_course(request.user, course):
            raise AuthorizationError()
        return Response({'success': True, 'modules': ProgressService.course_module_stats(course)})


# ============ Quiz attempts ============

class QuizAttemptsView(APIView):
    """GET ?contentId= lists the caller's attempts, POST {contentId, answers} submits one"""
    permission_classes = [HasCapability]
    capabilities = {'GET': 'progress.record', 'POST': 'progress.record'}

    def get_item(self, request, content_id):
        if content_id is None:
            raise ValidationError('contentId requis', code='invalid_identifier')
        item = get_target(ContentItem, content_id, ContentItem.objects.select_related('chapter__module__course'))
        require_enrollment(request.user, item.chapter.module.course)
        return item

    def get(self, request):
        content_id = request.query_params.get('contentId') or request.query_params.get('content_id')
        item = self.get_item(request, content_id)
        attempts = QuizService.attempts(request.user, item)
        return Response({'success': True, 'attempts': QuizAttemptSerializer(attempts, many=True).data})

    def post(self, request):
        data = request_body(request)
        content_id = body_value(data, 'contentId', 'content_id')
        if content_id is not None:
            content_id = parse_identifier(content_id, ContentItem, strict=True)
        item = self.get_item(request, content_id)

        answers = body_value(data, 'answers')
        if answers is None:
            raise ValidationError('Réponses requises')
        attempt = QuizService.submit(request.user, item, answers)
        return Response(
            {'success': True, 'attempt': QuizAttemptSerializer(attempt).data},
            status=status.HTTP_201_CREATED
        )
