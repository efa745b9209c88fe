"""
Management command to create demo users and a demo course hierarchy.
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from accounts.models import Role
from courses.models import Chapter, ContentItem, ContentType, Course, Domain, Enrollment, Module
from courses.sequence import Sequence
from courses.slugs import slug_for_course

User = get_user_model()

DEMO_PASSWORD = 'password123'

DEMO_USERS = [
    {'email': 'admin@academie.ma', 'name': 'Amina Admin', 'role': Role.ADMIN},
    {'email': 'sousadmin@academie.ma', 'name': 'Samir Sous-Admin', 'role': Role.SUB_ADMIN},
    {'email': 'formateur@academie.ma', 'name': 'Fatima Formatrice', 'role': Role.TRAINER},
    {'email': 'etudiant@academie.ma', 'name': 'Youssef Étudiant', 'role': Role.STUDENT},
]

DEMO_MODULES = [
    ('Introduction au HTML', ['Structure d\'une page', 'Balises sémantiques', 'Formulaires']),
    ('Mise en forme avec CSS', ['Sélecteurs', 'Flexbox', 'Grid']),
    ('JavaScript moderne', ['Variables et fonctions', 'Le DOM', 'Requêtes asynchrones']),
]


class Command(BaseCommand):
    help = 'Create demo users and a demo course (idempotent)'

    def add_arguments(self, parser):
        parser.add_argument('--password', default=DEMO_PASSWORD, help='Password for the demo accounts')

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS('Creating demo users...'))
        users = {}
        for user_data in DEMO_USERS:
            user = User.objects.filter(email=user_data['email']).first()
            if user is not None:
                self.stdout.write(self.style.WARNING(f'✓ User {user.email} already exists'))
            else:
                user = User.objects.create_user(password=options['password'], **user_data)
                self.stdout.write(self.style.SUCCESS(f'✓ Created {user.role} user: {user.email}'))
            users[user_data['role']] = user

        title = 'Développement Web pour débutants'
        if Course.objects.filter(title=title).exists():
            self.stdout.write(self.style.WARNING(f'✓ Course "{title}" already exists'))
            return

        with transaction.atomic():
            domain, _ = Domain.objects.get_or_create(
                name='Développement web',
                defaults={'description': 'HTML, CSS, JavaScript et frameworks', 'color': '#0ea5e9'}
            )
            course = Course.objects.create(
                title=title,
                slug=slug_for_course(title),
                description='Les bases du web, de la première page au premier script.',
                domain=domain,
                teacher=users[Role.TRAINER],
            )
            for module_title, chapter_titles in DEMO_MODULES:
                module = Module.objects.create(
                    course=course, title=module_title, order_index=Sequence.for_course(course).next_index()
                )
                for chapter_title in chapter_titles:
                    chapter = Chapter.objects.create(
                        module=module,
                        title=chapter_title,
                        order_index=Sequence.for_module(module).next_index(),
                        content_type=ContentType.TEXT,
                        content_data={'content': f'Contenu du chapitre « {chapter_title} ».'},
                    )
                    ContentItem.objects.create(
                        chapter=chapter,
                        title=f'Quiz : {chapter_title}',
                        content_type=ContentType.QUIZ,
                        content_data={
                            'questions': [{
                                'id': 'q1',
                                'question': f'Avez-vous compris « {chapter_title} » ?',
                                'options': ['Oui', 'Non'],
                                'correctAnswer': 0,
                            }],
                            'passingScore': 70,
                        },
                        order_index=0,
                    )
            Enrollment.objects.create(student=users[Role.STUDENT], course=course)

        self.stdout.write(self.style.SUCCESS(
            f'✓ Created course "{course.title}" ({course.slug}) with {len(DEMO_MODULES)} modules'
        ))
        self.stdout.write(self.style.SUCCESS(f'\n✓ Demo data ready (password: {options["password"]})'))
