"""
Learning app serializers - enrollments, classes, chapter progress and quiz attempts
"""
from django.contrib.auth import get_user_model
from rest_framework import serializers

from accounts.models import Role
from courses.models import ChapterProgress, Classroom, Domain, Enrollment, QuizAttempt
from courses.serializers import AliasMixin

User = get_user_model()


class EnrollmentSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source='student.name', read_only=True)
    student_email = serializers.EmailField(source='student.email', read_only=True)
    course_title = serializers.CharField(source='course.title', read_only=True)
    is_completed = serializers.SerializerMethodField()

    class Meta:
        model = Enrollment
        fields = [
            'id', 'student', 'student_name', 'student_email', 'course', 'course_title',
            'enrolled_at', 'completed_at', 'is_completed'
        ]
        read_only_fields = fields

    def get_is_completed(self, obj):
        return obj.completed_at is not None


class ChapterProgressSerializer(serializers.ModelSerializer):
    chapter_title = serializers.CharField(source='chapter.title', read_only=True)

    class Meta:
        model = ChapterProgress
        fields = ['id', 'student', 'chapter', 'chapter_title', 'completed_at']
        read_only_fields = fields


class QuizAttemptSerializer(serializers.ModelSerializer):
    content_title = serializers.CharField(source='content_item.title', read_only=True)

    class Meta:
        model = QuizAttempt
        fields = ['id', 'student', 'content_item', 'content_title', 'answers', 'score', 'passed', 'attempted_at']
        read_only_fields = fields


class ClassroomSerializer(AliasMixin, serializers.ModelSerializer):
    aliases = {
        'teacherId': 'teacher',
        'domainId': 'domain',
        'isActive': 'is_active',
        'maxStudents': 'max_students',
    }

    teacher = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), required=False, allow_null=True)
    teacher_name = serializers.CharField(source='teacher.name', read_only=True, default=None)
    domain = serializers.PrimaryKeyRelatedField(queryset=Domain.objects.all(), required=False, allow_null=True)
    max_students = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    student_count = serializers.SerializerMethodField()
    course_count = serializers.SerializerMethodField()

    class Meta:
        model = Classroom
        fields = [
            'id', 'name', 'description', 'teacher', 'teacher_name', 'domain', 'is_active', 'max_students',
            'student_count', 'course_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_student_count(self, obj):
        return obj.memberships.count()

    def get_course_count(self, obj):
        return obj.course_links.count()

    def validate_teacher(self, value):
        if value is not None and value.role != Role.TRAINER:
            raise serializers.ValidationError('Le formateur doit avoir le rôle TRAINER')
        return value

    def validate_max_students(self, value):
        if self.instance is not None and value is not None and value < self.instance.memberships.count():
            raise serializers.ValidationError('La classe compte déjà plus d\'étudiants')
        return value


class ClassMemberSerializer(serializers.Serializer):
    id = serializers.IntegerField(source='student.id')
    name = serializers.CharField(source='student.name')
    email = serializers.EmailField(source='student.email')
    enrolled_at = serializers.DateTimeField()


class ClassCourseSerializer(serializers.Serializer):
    id = serializers.IntegerField(source='course.id')
    title = serializers.CharField(source='course.title')
    slug = serializers.CharField(source='course.slug')
    is_active = serializers.BooleanField(source='course.is_active')
    assigned_at = serializers.DateTimeField()
