"""
Shared fixtures for the API test suites: one user per role and builders for the content hierarchy
"""
from django.contrib.auth import get_user_model
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase

from accounts.models import Role
from courses.models import Chapter, ContentItem, ContentType, Course, Enrollment, Module
from courses.sequence import Sequence
from courses.slugs import slug_for_course

User = get_user_model()

QUIZ_DATA = {
    'questions': [
        {'id': 'q1', 'question': '2 + 2 ?', 'options': ['3', '4', '5'], 'correctAnswer': 1},
        {'id': 'q2', 'question': 'Capitale du Maroc ?', 'options': ['Rabat', 'Fès'], 'correctAnswer': 0},
    ],
    'passingScore': 50,
}

EXAM_DATA = {
    'questions': [
        {
            'id': 'e1', 'question': 'HTTP 404 ?', 'points': 2, 'difficulty': 'easy', 'category': 'web',
            'options': ['Introuvable', 'Interdit'], 'correctAnswer': 0,
        },
    ],
    'passingScore': 100,
    'timeLimit': 30,
    'attemptsAllowed': 2,
    'proctored': False,
}


class PlatformAPITestCase(APITestCase):
    password = 'testpass123'

    def setUp(self):
        self.admin = self.create_user('admin@test.ma', Role.ADMIN)
        self.sub_admin = self.create_user('sousadmin@test.ma', Role.SUB_ADMIN)
        self.trainer = self.create_user('formateur@test.ma', Role.TRAINER)
        self.student = self.create_user('etudiant@test.ma', Role.STUDENT)

    def create_user(self, email, role, **extra):
        return User.objects.create_user(
            email=email, password=self.password, name=email.split('@')[0], role=role, **extra
        )

    def authenticate(self, user):
        token, _ = Token.objects.get_or_create(user=user)
        self.client.credentials(HTTP_AUTHORIZATION=f'Token {token.key}')

    def make_course(self, title='Cours de test', **extra):
        return Course.objects.create(title=title, slug=slug_for_course(title), **extra)

    def make_module(self, course, title='Module', order_index=None):
        if order_index is None:
            order_index = Sequence.for_course(course).next_index()
        return Module.objects.create(course=course, title=title, order_index=order_index)

    def make_chapter(self, module, title='Chapitre', order_index=None, **extra):
        if order_index is None:
            order_index = Sequence.for_module(module).next_index()
        return Chapter.objects.create(module=module, title=title, order_index=order_index, **extra)

    def make_item(self, chapter, title='Quiz', content_type=ContentType.QUIZ, content_data=None, order_index=None):
        if order_index is None:
            order_index = Sequence.for_chapter(chapter).next_index()
        return ContentItem.objects.create(
            chapter=chapter,
            title=title,
            content_type=content_type,
            content_data=QUIZ_DATA if content_data is None else content_data,
            order_index=order_index,
        )

    def enroll(self, student, course):
        return Enrollment.objects.create(student=student, course=course)

    def assertError(self, response, status_code, code=None):
        self.assertEqual(response.status_code, status_code, response.data)
        self.assertIs(response.data['success'], False)
        self.assertIn('error', response.data)
        if code is not None:
            self.assertEqual(response.data['code'], code)
