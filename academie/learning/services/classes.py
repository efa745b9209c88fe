"""
Class service - class membership and course assignment

A class enrolls its students in its courses: adding a student enrolls them
in every course of the class, assigning a course enrolls every student of
the class in it. Course enrollments are left in place when a student or a
course leaves the class.
"""
import logging

from django.db import IntegrityError, transaction

from accounts.models import Role
from academie.exceptions import ConflictError, NotFoundError, ValidationError
from courses.models import ClassCourse, ClassMembership, Enrollment

logger = logging.getLogger(__name__)


def enroll_missing(students, courses):
    """Create the Enrollment rows missing between students and courses, return how many"""
    student_ids = [student.pk for student in students]
    course_ids = [course.pk for course in courses]
    if not student_ids or not course_ids:
        return 0

    existing = set(
        Enrollment.objects.filter(student_id__in=student_ids, course_id__in=course_ids)
        .values_list('student_id', 'course_id')
    )
    missing = [
        Enrollment(student_id=student_id, course_id=course_id)
        for student_id in student_ids
        for course_id in course_ids
        if (student_id, course_id) not in existing
    ]
    Enrollment.objects.bulk_create(missing, ignore_conflicts=True)
    return len(missing)


class ClassService:

    @staticmethod
    def add_student(classroom, student):
        """Returns (membership, enrollments created)"""
        if student.role != Role.STUDENT:
            raise ValidationError('Seuls les étudiants peuvent être ajoutés à une classe')

        try:
            with transaction.atomic():
                if ClassMembership.objects.filter(classroom=classroom, student=student).exists():
                    raise ConflictError('L\'étudiant fait déjà partie de cette classe', code='already_in_class')
                if classroom.max_students is not None and classroom.memberships.count() >= classroom.max_students:
                    raise ConflictError('La classe est complète', code='class_full')

                membership = ClassMembership.objects.create(classroom=classroom, student=student)
                created = enroll_missing([student], classroom.courses.filter(is_active=True))
        except IntegrityError:
            raise ConflictError('L\'étudiant fait déjà partie de cette classe', code='already_in_class')

        logger.info('Student %s added to class %s (%d course enrollment(s) created)',
                    student.pk, classroom.pk, created)
        return membership, created

    @staticmethod
    def remove_student(classroom, student_id):
        removed, _ = ClassMembership.objects.filter(classroom=classroom, student_id=student_id).delete()
        if not removed:
            raise NotFoundError('Cet étudiant ne fait pas partie de la classe')
        logger.info('Student %s removed from class %s', student_id, classroom.pk)

    @staticmethod
    def assign_course(classroom, course):
        """Returns (link, enrollments created)"""
        if not course.is_active:
            raise ValidationError('Impossible d\'assigner un cours inactif', code='course_inactive')

        try:
            with transaction.atomic():
                if ClassCourse.objects.filter(classroom=classroom, course=course).exists():
                    raise ConflictError('Ce cours est déjà assigné à la classe', code='already_assigned')
                link = ClassCourse.objects.create(classroom=classroom, course=course)
                created = enroll_missing(classroom.students.all(), [course])
        except IntegrityError:
            raise ConflictError('Ce cours est déjà assigné à la classe', code='already_assigned')

        logger.info('Course %s assigned to class %s (%d student enrollment(s) created)',
                    course.pk, classroom.pk, created)
        return link, created

    @staticmethod
    def remove_course(classroom, course_id):
        removed, _ = ClassCourse.objects.filter(classroom=classroom, course_id=course_id).delete()
        if not removed:
            raise NotFoundError('Ce cours n\'est pas assigné à la classe')
        logger.info('Course %s removed from class %s', course_id, classroom.pk)

    @staticmethod
    def enrollment_count(classroom):
        """Course enrollments held by the students of the class, in any course"""
        return Enrollment.objects.filter(student__class_memberships__classroom=classroom).count()
