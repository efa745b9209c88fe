"""
Sibling ordering - every order_index write goes through a Sequence

A Sequence is the ordered set of children of one parent: the modules of a
course, the chapters of a module or the content items of a chapter.
"""
import logging

from django.db import DatabaseError, transaction
from django.db.models import F, Max
from django.utils import timezone

from academie.exceptions import PersistenceError, ValidationError
from .hierarchy import check_sibling_set
from .models import Chapter, ContentItem, Course, Module

logger = logging.getLogger(__name__)


class Sequence:
    """Ordered siblings sharing one parent row."""

    def __init__(self, model, parent_field, parent):
        self.model = model
        self.parent_field = parent_field
        self.parent = parent

    @classmethod
    def for_course(cls, course):
        return cls(Module, 'course', course)

    @classmethod
    def for_module(cls, module):
        return cls(Chapter, 'module', module)

    @classmethod
    def for_chapter(cls, chapter):
        return cls(ContentItem, 'chapter', chapter)

    def __repr__(self):
        return f'<Sequence {self.model.__name__} of {self.parent_field}={self.parent.pk}>'

    def siblings(self):
        return self.model.objects.filter(**{self.parent_field: self.parent}).order_by('order_index', 'id')

    def ids(self):
        return list(self.siblings().values_list('id', flat=True))

    def next_index(self):
        """Position for a row appended at the end (0 for an empty parent)"""
        max_order = self.siblings().aggregate(Max('order_index'))['order_index__max']
        return 0 if max_order is None else max_order + 1

    def reorder(self, sibling_ids):
        """
        Rewrite order_index so that sibling_ids[i] is at position i.

        sibling_ids must be exactly the current siblings. The siblings are
        locked, validated and written in one transaction: either every row
        reflects the new order or none does.
        """
        try:
            with transaction.atomic():
                rows = list(self.siblings().select_for_update())
                check_sibling_set([row.id for row in rows], sibling_ids)

                positions = {pk: index for index, pk in enumerate(sibling_ids)}
                now = timezone.now()
                changed = []
                for row in rows:
                    new_index = positions[row.id]
                    if row.order_index != new_index:
                        row.order_index = new_index
                        row.updated_at = now
                        changed.append(row)
                if changed:
                    self.model.objects.bulk_update(changed, ['order_index', 'updated_at'])
        except DatabaseError as e:
            logger.exception('Reorder of %r failed: %s', self, e)
            raise PersistenceError('Échec de la réorganisation', code='reorder_failed')

        logger.info('Reordered %r: %s (%d rows changed)', self, sibling_ids, len(changed))
        return list(self.siblings())

    def insert(self, obj, index=None):
        """
        Place obj (already pointing at this parent, not yet saved there) at
        index, shifting the siblings at or after it. None or an index past
        the end appends.
        """
        end = self.next_index()
        if index is None or index > end:
            index = end
        now = timezone.now()
        self.siblings().filter(order_index__gte=index).update(order_index=F('order_index') + 1, updated_at=now)
        obj.order_index = index
        obj.save()
        return obj

    def close_gap(self, index):
        """Shift down the siblings that followed a removed position"""
        now = timezone.now()
        return self.siblings().filter(order_index__gt=index).update(order_index=F('order_index') - 1, updated_at=now)


def move_chapter(chapter, target_module, target_index=None):
    """
    Move chapter to target_module at target_index (appended when omitted).

    Within the same module this is a reorder; across modules the chapter is
    inserted in the target and the gap it leaves in the source is closed.
    """
    if target_index is not None and (isinstance(target_index, bool) or not isinstance(target_index, int) or target_index < 0):
        raise ValidationError('Position cible invalide', code='validation_failed')

    source_module = chapter.module
    try:
        with transaction.atomic():
            if source_module.pk == target_module.pk:
                sequence = Sequence.for_module(source_module)
                ids = sequence.ids()
                ids.remove(chapter.pk)
                position = len(ids) if target_index is None else min(target_index, len(ids))
                ids.insert(position, chapter.pk)
                sequence.reorder(ids)
                chapter.refresh_from_db()
                return chapter

            old_index = chapter.order_index
            chapter.module = target_module
            Sequence.for_module(target_module).insert(chapter, target_index)
            Sequence.for_module(source_module).close_gap(old_index)
    except DatabaseError as e:
        logger.exception('Moving chapter %s failed: %s', chapter.pk, e)
        raise PersistenceError('Échec du déplacement du chapitre', code='move_failed')

    logger.info('Moved chapter %s from module %s to module %s at %s',
                chapter.pk, source_module.pk, target_module.pk, chapter.order_index)
    return chapter


def course_of(obj):
    """Course at the root of obj's branch"""
    if isinstance(obj, Course):
        return obj
    if isinstance(obj, Module):
        return obj.course
    if isinstance(obj, Chapter):
        return obj.module.course
    if isinstance(obj, ContentItem):
        return obj.chapter.module.course
    raise TypeError(f'{type(obj).__name__} is not part of the content hierarchy')
