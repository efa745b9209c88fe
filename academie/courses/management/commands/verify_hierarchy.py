from django.core.management.base import BaseCommand
from django.db.models import Count

from courses.models import Chapter, ContentItem, Course, Module
from courses.sequence import Sequence


class Command(BaseCommand):
    help = 'Report order_index ties and gaps in the course hierarchy, optionally renumbering them'

    def add_arguments(self, parser):
        parser.add_argument('--course', type=int, help='Only check this course id')
        parser.add_argument('--fix', action='store_true', help='Renumber every sibling set 0..n-1 in display order')

    def handle(self, *args, **options):
        courses = Course.objects.order_by('title')
        if options['course']:
            courses = courses.filter(pk=options['course'])
        if not courses.exists():
            self.stdout.write(self.style.ERROR('❌ No course found'))
            return

        problems = 0
        for course in courses:
            self.stdout.write(self.style.SUCCESS(f'\n{course.title} (#{course.pk})'))
            problems += self.check(Sequence.for_course(course), options['fix'])
            for module in Module.objects.filter(course=course):
                problems += self.check(Sequence.for_module(module), options['fix'], indent=4)
                for chapter in Chapter.objects.filter(module=module):
                    problems += self.check(Sequence.for_chapter(chapter), options['fix'], indent=8)

        orphans = (
            Module.objects.annotate(n=Count('chapters')).filter(n=0).count(),
            Chapter.objects.annotate(n=Count('content_items')).filter(n=0, content_data={}).count(),
        )
        self.stdout.write(f'\nModules without chapters: {orphans[0]}')
        self.stdout.write(f'Chapters without content: {orphans[1]}')
        self.stdout.write(f'Content items: {ContentItem.objects.count()}')

        if problems:
            verb = 'renumbered' if options['fix'] else 'found'
            self.stdout.write(self.style.WARNING(f'\n⚠️  {problems} sibling set(s) with ties or gaps {verb}'))
        else:
            self.stdout.write(self.style.SUCCESS('\n✅ Every sibling set is numbered 0..n-1'))

    def check(self, sequence, fix, indent=2):
        rows = list(sequence.siblings().values_list('id', 'order_index'))
        indexes = [order_index for _, order_index in rows]
        if indexes == list(range(len(rows))):
            return 0

        pad = ' ' * indent
        ties = len(indexes) - len(set(indexes))
        self.stdout.write(self.style.WARNING(
            f'{pad}{sequence.model.__name__} of #{sequence.parent.pk}: {indexes} ({ties} tie(s))'
        ))
        if fix:
            sequence.reorder([pk for pk, _ in rows])
        return 1
