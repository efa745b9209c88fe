"""
Cascade deletion - removes a module, chapter or course together with everything under it

The schema declares on_delete=CASCADE as well, but the subtree is deleted
here explicitly, leaf tables first, so that the order of removal and the
counts reported to the caller do not depend on the database.
"""
import logging

from django.db import DatabaseError, transaction

from academie.exceptions import ConflictError, PersistenceError
from .models import Chapter, ChapterProgress, ClassCourse, ContentItem, Enrollment, Module, QuizAttempt
from .sequence import Sequence

logger = logging.getLogger(__name__)


def _module_rows(module_ids):
    chapters = Chapter.objects.filter(module_id__in=module_ids)
    items = ContentItem.objects.filter(chapter__module_id__in=module_ids)
    return {
        'chapters': chapters,
        'content_items': items,
        'chapter_progress': ChapterProgress.objects.filter(chapter__module_id__in=module_ids),
        'quiz_attempts': QuizAttempt.objects.filter(content_item__chapter__module_id__in=module_ids),
    }


def deletion_impact(module):
    """Counts of the rows that delete_module(module) would remove"""
    rows = _module_rows([module.pk])
    return {name: queryset.count() for name, queryset in rows.items()}


def _delete_module_subtree(module_ids):
    rows = _module_rows(module_ids)
    removed = {}

    # Learner rows first: attempts hang off content items, progress off chapters
    removed['quiz_attempts'] = rows['quiz_attempts'].delete()[0]
    removed['chapter_progress'] = rows['chapter_progress'].delete()[0]

    removed['content_items'] = rows['content_items'].delete()[0]
    removed['chapters'] = rows['chapters'].delete()[0]
    removed['modules'] = Module.objects.filter(pk__in=module_ids).delete()[0]
    return removed


def delete_module(module):
    """
    Delete module and its chapters, content items, chapter progress and quiz
    attempts in one transaction. Returns the removed counts.

    The order_index of the remaining modules is left as is; gaps are allowed.
    """
    module_id = module.pk
    try:
        with transaction.atomic():
            removed = _delete_module_subtree([module_id])
    except DatabaseError as e:
        logger.exception('Deleting module %s failed: %s', module_id, e)
        raise PersistenceError('Échec de la suppression du module', code='deletion_failed')

    logger.info('Deleted module %s (course %s): %s', module_id, module.course_id, removed)
    return removed


def delete_chapter(chapter):
    """Delete chapter with its content items and learner rows, then close the gap in its module"""
    chapter_id = chapter.pk
    try:
        with transaction.atomic():
            removed = {
                'quiz_attempts': QuizAttempt.objects.filter(content_item__chapter_id=chapter_id).delete()[0],
                'chapter_progress': ChapterProgress.objects.filter(chapter_id=chapter_id).delete()[0],
                'content_items': ContentItem.objects.filter(chapter_id=chapter_id).delete()[0],
            }
            removed['chapters'] = Chapter.objects.filter(pk=chapter_id).delete()[0]
            Sequence.for_module(chapter.module).close_gap(chapter.order_index)
    except DatabaseError as e:
        logger.exception('Deleting chapter %s failed: %s', chapter_id, e)
        raise PersistenceError('Échec de la suppression du chapitre', code='deletion_failed')

    logger.info('Deleted chapter %s (module %s): %s', chapter_id, chapter.module_id, removed)
    return removed


def delete_content_item(item):
    item_id = item.pk
    try:
        with transaction.atomic():
            removed = {
                'quiz_attempts': QuizAttempt.objects.filter(content_item_id=item_id).delete()[0],
                'content_items': ContentItem.objects.filter(pk=item_id).delete()[0],
            }
            Sequence.for_chapter(item.chapter).close_gap(item.order_index)
    except DatabaseError as e:
        logger.exception('Deleting content item %s failed: %s', item_id, e)
        raise PersistenceError('Échec de la suppression du contenu', code='deletion_failed')

    logger.info('Deleted content item %s (chapter %s): %s', item_id, item.chapter_id, removed)
    return removed


def delete_course(course):
    """
    Delete course and every module subtree under it.

    A course that still has enrollments is refused with ConflictError and
    nothing is removed.
    """
    course_id = course.pk
    try:
        with transaction.atomic():
            enrolled = Enrollment.objects.filter(course_id=course_id).count()
            if enrolled:
                logger.warning('Refused to delete course %s: %d enrollment(s)', course_id, enrolled)
                raise ConflictError(
                    'Impossible de supprimer un cours avec des inscriptions actives',
                    code='has_active_enrollments'
                )

            module_ids = list(Module.objects.filter(course_id=course_id).values_list('id', flat=True))
            removed = _delete_module_subtree(module_ids)
            removed['enrollments'] = Enrollment.objects.filter(course_id=course_id).delete()[0]
            removed['class_courses'] = ClassCourse.objects.filter(course_id=course_id).delete()[0]
            removed['courses'] = type(course).objects.filter(pk=course_id).delete()[0]
    except DatabaseError as e:
        logger.exception('Deleting course %s failed: %s', course_id, e)
        raise PersistenceError('Échec de la suppression du cours', code='deletion_failed')

    logger.info('Deleted course %s: %s', course_id, removed)
    return removed
