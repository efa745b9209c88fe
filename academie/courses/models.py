"""
Courses app models - content hierarchy Course -> Module -> Chapter -> ContentItem,
plus the learner rows hanging off it (enrollments, chapter progress, quiz attempts)
and the classes that enroll students in courses as a group
"""
from django.conf import settings
from django.db import models
from django.utils import timezone


class ContentType(models.TextChoices):
    TEXT = 'text', 'Texte'
    VIDEO = 'video', 'Vidéo'
    QUIZ = 'quiz', 'Quiz'
    TEST = 'test', 'Test'
    EXAM = 'exam', 'Examen'


class Domain(models.Model):
    """Thematic domain a course belongs to (développement web, marketing, ...)"""
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, null=True)
    color = models.CharField(max_length=7, default='#6366f1')
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'domains'
        ordering = ['name']

    def __str__(self):
        return self.name


class Course(models.Model):
    title = models.CharField(max_length=255)
    slug = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True, null=True)
    domain = models.ForeignKey(Domain, on_delete=models.SET_NULL, null=True, blank=True, related_name='courses')
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='taught_courses'
    )
    thumbnail_url = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'courses'
        ordering = ['-created_at']

    def __str__(self):
        return self.title


class Module(models.Model):
    """Thematic grouping of chapters, ordered among the modules of its course"""
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='modules')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    order_index = models.IntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'modules'
        ordering = ['course', 'order_index', 'id']
        indexes = [
            models.Index(fields=['course', 'order_index'], name='idx_modules_order'),
        ]

    def __str__(self):
        return self.title


class Chapter(models.Model):
    """Smallest navigable unit of a module; carries a typed content payload"""
    module = models.ForeignKey(Module, on_delete=models.CASCADE, related_name='chapters')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    order_index = models.IntegerField(default=0)
    content_type = models.CharField(max_length=20, choices=ContentType.choices, default=ContentType.TEXT)
    content_data = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'chapters'
        ordering = ['module', 'order_index', 'id']
        indexes = [
            models.Index(fields=['module', 'order_index'], name='idx_chapters_order'),
        ]

    def __str__(self):
        return self.title


class ContentItem(models.Model):
    chapter = models.ForeignKey(Chapter, on_delete=models.CASCADE, related_name='content_items')
    title = models.CharField(max_length=200)
    content_type = models.CharField(max_length=20, choices=ContentType.choices)
    content_data = models.JSONField(default=dict)
    order_index = models.IntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'content_items'
        ordering = ['chapter', 'order_index', 'id']
        indexes = [
            models.Index(fields=['chapter', 'order_index'], name='idx_content_items_order'),
        ]

    def __str__(self):
        return self.title


class Enrollment(models.Model):
    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='enrollments')
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='enrollments')
    enrolled_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(blank=True, null=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'enrollments'
        ordering = ['-enrolled_at']
        unique_together = ('student', 'course')

    def __str__(self):
        return f"{self.student} -> {self.course}"


class ChapterProgress(models.Model):
    """Completion of one chapter by one student"""
    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='chapter_progress')
    chapter = models.ForeignKey(Chapter, on_delete=models.CASCADE, related_name='progress_records')
    completed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'chapter_progress'
        unique_together = ('student', 'chapter')


class QuizAttempt(models.Model):
    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='quiz_attempts')
    content_item = models.ForeignKey(ContentItem, on_delete=models.CASCADE, related_name='attempts')
    answers = models.JSONField(default=dict)
    score = models.IntegerField()
    passed = models.BooleanField()
    attempted_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'quiz_attempts'
        ordering = ['-attempted_at']


class Classroom(models.Model):
    """Group of students sharing the same set of courses"""
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='taught_classes'
    )
    domain = models.ForeignKey(Domain, on_delete=models.SET_NULL, null=True, blank=True, related_name='classes')
    is_active = models.BooleanField(default=True)
    max_students = models.PositiveIntegerField(blank=True, null=True)
    students = models.ManyToManyField(settings.AUTH_USER_MODEL, through='ClassMembership', related_name='classes')
    courses = models.ManyToManyField(Course, through='ClassCourse', related_name='classes')
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'classes'
        ordering = ['name']

    def __str__(self):
        return self.name


class ClassMembership(models.Model):
    classroom = models.ForeignKey(Classroom, on_delete=models.CASCADE, related_name='memberships')
    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='class_memberships')
    enrolled_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'class_enrollments'
        ordering = ['enrolled_at']
        unique_together = ('classroom', 'student')


class ClassCourse(models.Model):
    classroom = models.ForeignKey(Classroom, on_delete=models.CASCADE, related_name='course_links')
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='class_links')
    assigned_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'class_courses'
        ordering = ['-assigned_at']
        unique_together = ('classroom', 'course')
