"""
Learning Progress Service
Chapter completion per student and the module / course progress derived from it
"""
import logging
import math
from collections import defaultdict

from django.db import IntegrityError, transaction
from django.db.models import Count, Max
from django.utils import timezone

from courses.models import Chapter, ChapterProgress, Enrollment, Module

logger = logging.getLogger(__name__)


def percentage(completed, total):
    """completed / total as a whole percentage, halves rounded up; 0 when total is 0"""
    if total <= 0:
        return 0
    return int(math.floor(completed * 100 / total + 0.5))


def _module_progress(module, total, completed, last_activity):
    return {
        'module_id': module.pk,
        'module_title': module.title,
        'order_index': module.order_index,
        'total_chapters': total,
        'completed_chapters': completed,
        'percentage_complete': percentage(completed, total),
        'last_activity_at': last_activity,
    }


class ProgressService:
    """Chapter completion bookkeeping for enrolled students"""

    @staticmethod
    def mark_complete(student, chapter):
        """
        Record chapter as completed by student. Marking an already completed
        chapter returns the existing record.

        Returns: (progress, created)
        """
        course_id = chapter.module.course_id
        try:
            with transaction.atomic():
                progress, created = ChapterProgress.objects.get_or_create(student=student, chapter=chapter)
        except IntegrityError:
            # concurrent request for the same chapter won the insert
            progress, created = ChapterProgress.objects.get(student=student, chapter=chapter), False

        if created:
            logger.info('Student %s completed chapter %s', student.pk, chapter.pk)
            ProgressService.refresh_course_completion(student, course_id)
        return progress, created

    @staticmethod
    def unmark_complete(student, chapter):
        """Remove the completion record; returns True when one existed"""
        deleted, _ = ChapterProgress.objects.filter(student=student, chapter=chapter).delete()
        if deleted:
            logger.info('Student %s reopened chapter %s', student.pk, chapter.pk)
            ProgressService.refresh_course_completion(student, chapter.module.course_id)
        return bool(deleted)

    @staticmethod
    def refresh_course_completion(student, course_id):
        """Set or clear enrollment.completed_at from the student's chapter progress"""
        enrollment = Enrollment.objects.filter(student=student, course_id=course_id).first()
        if enrollment is None:
            return None

        total = Chapter.objects.filter(module__course_id=course_id).count()
        completed = ChapterProgress.objects.filter(student=student, chapter__module__course_id=course_id).count()
        is_complete = total > 0 and completed >= total

        if is_complete and enrollment.completed_at is None:
            enrollment.completed_at = timezone.now()
            enrollment.save(update_fields=['completed_at', 'updated_at'])
            logger.info('Student %s completed course %s', student.pk, course_id)
        elif not is_complete and enrollment.completed_at is not None:
            enrollment.completed_at = None
            enrollment.save(update_fields=['completed_at', 'updated_at'])
        return enrollment

    @staticmethod
    def module_progress(student, module):
        chapters = Chapter.objects.filter(module=module)
        total = chapters.count()
        done = ChapterProgress.objects.filter(student=student, chapter__module=module)
        summary = done.aggregate(count=Count('id'), last=Max('completed_at'))
        return _module_progress(module, total, summary['count'], summary['last'])

    @staticmethod
    def course_module_progress(student, course):
        """Progress of student in every module of course, in display order"""
        modules = list(Module.objects.filter(course=course).annotate(total=Count('chapters')))
        done = (
            ChapterProgress.objects
            .filter(student=student, chapter__module__course=course)
            .values('chapter__module_id')
            .annotate(count=Count('id'), last=Max('completed_at'))
        )
        by_module = {row['chapter__module_id']: row for row in done}

        result = []
        for module in modules:
            row = by_module.get(module.pk, {})
            result.append(_module_progress(module, module.total, row.get('count', 0), row.get('last')))
        return result

    @staticmethod
    def course_module_stats(course):
        """
        Per module: how many enrolled students have not started it, are
        working through it, or completed every chapter.
        """
        modules = list(Module.objects.filter(course=course).annotate(total=Count('chapters')))
        student_ids = list(Enrollment.objects.filter(course=course).values_list('student_id', flat=True))

        # (module_id, student_id) -> completed chapters
        completed = defaultdict(int)
        rows = (
            ChapterProgress.objects
            .filter(student_id__in=student_ids, chapter__module__course=course)
            .values('chapter__module_id', 'student_id')
            .annotate(count=Count('id'))
        )
        for row in rows:
            completed[(row['chapter__module_id'], row['student_id'])] = row['count']

        stats = []
        for module in modules:
            not_started = in_progress = done = 0
            for student_id in student_ids:
                count = completed[(module.pk, student_id)]
                if count == 0:
                    not_started += 1
                elif module.total > 0 and count >= module.total:
                    done += 1
                else:
                    in_progress += 1
            stats.append({
                'module_id': module.pk,
                'module_title': module.title,
                'order_index': module.order_index,
                'total_chapters': module.total,
                'total_students': len(student_ids),
                'students_not_started': not_started,
                'students_in_progress': in_progress,
                'students_completed': done,
            })
        return stats
