"""
Sibling ordering tests - append position, reorder, insert and chapter moves
"""
from academie.exceptions import ValidationError
from academie.testutils import PlatformAPITestCase
from courses.models import Chapter, Module
from courses.sequence import Sequence, move_chapter


class SequenceTests(PlatformAPITestCase):

    def setUp(self):
        super().setUp()
        self.course = self.make_course()
        self.a = self.make_module(self.course, 'A')
        self.b = self.make_module(self.course, 'B')
        self.d = self.make_module(self.course, 'D')
        self.sequence = Sequence.for_course(self.course)

    def orders(self):
        return dict(Module.objects.filter(course=self.course).values_list('title', 'order_index'))

    def test_append_positions(self):
        self.assertEqual(self.orders(), {'A': 0, 'B': 1, 'D': 2})
        self.assertEqual(self.sequence.next_index(), 3)
        self.assertEqual(Sequence.for_module(self.a).next_index(), 0)

    def test_append_after_gap(self):
        Module.objects.filter(pk=self.d.pk).update(order_index=7)
        self.assertEqual(self.sequence.next_index(), 8)

    def test_reorder_permutation(self):
        rows = self.sequence.reorder([self.d.pk, self.a.pk, self.b.pk])
        self.assertEqual(self.orders(), {'D': 0, 'A': 1, 'B': 2})
        self.assertEqual([row.pk for row in rows], [self.d.pk, self.a.pk, self.b.pk])

    def test_reorder_is_idempotent(self):
        self.sequence.reorder([self.d.pk, self.a.pk, self.b.pk])
        first = self.orders()
        self.sequence.reorder([self.d.pk, self.a.pk, self.b.pk])
        self.assertEqual(self.orders(), first)

    def test_reorder_missing_sibling_changes_nothing(self):
        self.sequence.reorder([self.d.pk, self.a.pk, self.b.pk])
        with self.assertRaises(ValidationError) as ctx:
            self.sequence.reorder([self.a.pk, self.b.pk])
        self.assertEqual(ctx.exception.get_codes(), 'incomplete_or_mismatched_set')
        self.assertEqual(self.orders(), {'D': 0, 'A': 1, 'B': 2})

    def test_reorder_foreign_id_changes_nothing(self):
        foreign = self.make_module(self.make_course('Autre cours'), 'X')
        with self.assertRaises(ValidationError):
            self.sequence.reorder([self.a.pk, self.b.pk, foreign.pk])
        self.assertEqual(self.orders(), {'A': 0, 'B': 1, 'D': 2})
        foreign.refresh_from_db()
        self.assertEqual(foreign.order_index, 0)

    def test_reorder_duplicates_rejected(self):
        with self.assertRaises(ValidationError):
            self.sequence.reorder([self.a.pk, self.a.pk, self.b.pk, self.d.pk])

    def test_single_sibling_reorder_is_a_no_op(self):
        chapter = self.make_chapter(self.a, 'Seul')
        rows = Sequence.for_module(self.a).reorder([chapter.pk])
        self.assertEqual([(row.pk, row.order_index) for row in rows], [(chapter.pk, 0)])

    def test_reorder_repairs_ties(self):
        Module.objects.filter(course=self.course).update(order_index=0)
        self.sequence.reorder([self.b.pk, self.d.pk, self.a.pk])
        self.assertEqual(self.orders(), {'B': 0, 'D': 1, 'A': 2})

    def test_close_gap(self):
        Module.objects.filter(pk=self.a.pk).delete()
        self.sequence.close_gap(0)
        self.assertEqual(self.orders(), {'B': 0, 'D': 1})


class MoveChapterTests(PlatformAPITestCase):

    def setUp(self):
        super().setUp()
        course = self.make_course()
        self.source = self.make_module(course, 'Source')
        self.target = self.make_module(course, 'Cible')
        self.s1, self.s2, self.s3 = [self.make_chapter(self.source, f'S{i}') for i in (1, 2, 3)]
        self.t1, self.t2 = [self.make_chapter(self.target, f'T{i}') for i in (1, 2)]

    def titles(self, module):
        return list(Chapter.objects.filter(module=module).order_by('order_index').values_list('title', 'order_index'))

    def test_move_to_other_module_at_index(self):
        move_chapter(self.s2, self.target, 1)
        self.assertEqual(self.titles(self.target), [('T1', 0), ('S2', 1), ('T2', 2)])
        self.assertEqual(self.titles(self.source), [('S1', 0), ('S3', 1)])

    def test_move_without_index_appends(self):
        move_chapter(self.s1, self.target)
        self.assertEqual(self.titles(self.target), [('T1', 0), ('T2', 1), ('S1', 2)])
        self.assertEqual(self.titles(self.source), [('S2', 0), ('S3', 1)])

    def test_index_past_end_is_clamped(self):
        move_chapter(self.s3, self.target, 50)
        self.assertEqual(self.titles(self.target)[-1], ('S3', 2))

    def test_move_within_module(self):
        move_chapter(self.s3, self.source, 0)
        self.assertEqual(self.titles(self.source), [('S3', 0), ('S1', 1), ('S2', 2)])

    def test_negative_index_rejected(self):
        with self.assertRaises(ValidationError):
            move_chapter(self.s1, self.target, -1)
        self.assertEqual(self.titles(self.source), [('S1', 0), ('S2', 1), ('S3', 2)])
