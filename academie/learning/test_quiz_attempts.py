"""
Quiz grading and attempt endpoint tests
"""
from django.test import SimpleTestCase

from academie.exceptions import ValidationError
from academie.testutils import EXAM_DATA, QUIZ_DATA, PlatformAPITestCase
from courses.models import ContentType, QuizAttempt
from learning.services.quiz import attempts_allowed, grade


class GradeTests(SimpleTestCase):

    def test_answers_by_question_id(self):
        self.assertEqual(grade(QUIZ_DATA, {'q1': 1, 'q2': 0}), (2, 2, 100, True))
        self.assertEqual(grade(QUIZ_DATA, {'q1': 1, 'q2': 1}), (1, 2, 50, True))
        self.assertEqual(grade(QUIZ_DATA, {'q1': 0}), (0, 2, 0, False))

    def test_answers_by_position(self):
        self.assertEqual(grade(QUIZ_DATA, [1, 0]), (2, 2, 100, True))
        self.assertEqual(grade(QUIZ_DATA, [1]), (1, 2, 50, True))

    def test_default_passing_score(self):
        data = {'questions': QUIZ_DATA['questions']}
        self.assertEqual(grade(data, [1, 1]), (1, 2, 50, False))

    def test_non_integer_answers_are_wrong(self):
        self.assertEqual(grade(QUIZ_DATA, {'q1': '1', 'q2': True}), (0, 2, 0, False))

    def test_attempts_allowed(self):
        self.assertIsNone(attempts_allowed(QUIZ_DATA))
        self.assertEqual(attempts_allowed({'attemptsAllowed': 3}), 3)
        self.assertEqual(attempts_allowed({'attemptsAllowed': '2'}), 2)
        for value in (0, -1, True, 1.5, 'deux', [2]):
            with self.assertRaises(ValidationError):
                attempts_allowed({'attemptsAllowed': value})


class QuizAttemptAPITests(PlatformAPITestCase):

    def setUp(self):
        super().setUp()
        self.course = self.make_course()
        chapter = self.make_chapter(self.make_module(self.course))
        self.quiz = self.make_item(chapter, 'Quiz')
        self.exam = self.make_item(chapter, 'Examen', ContentType.EXAM, EXAM_DATA)
        self.enroll(self.student, self.course)
        self.authenticate(self.student)

    def submit(self, item, answers):
        return self.client.post('/api/quiz-attempts/', {'contentId': item.pk, 'answers': answers}, format='json')

    def test_submit_and_list(self):
        response = self.submit(self.quiz, {'q1': 1, 'q2': 1})
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data['attempt']['score'], 50)
        self.assertTrue(response.data['attempt']['passed'])

        self.submit(self.quiz, [1, 0])
        response = self.client.get(f'/api/quiz-attempts/?contentId={self.quiz.pk}')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(sorted(a['score'] for a in response.data['attempts']), [50, 100])

    def test_attempts_allowed_enforced(self):
        self.assertEqual(self.submit(self.exam, [1]).data['attempt']['passed'], False)
        self.assertEqual(self.submit(self.exam, [0]).status_code, 201)
        response = self.submit(self.exam, [0])
        self.assertError(response, 409, 'attempts_exhausted')
        self.assertEqual(QuizAttempt.objects.filter(content_item=self.exam).count(), 2)

    def test_ungraded_content_rejected(self):
        text = self.make_item(self.quiz.chapter, 'Lecture', ContentType.TEXT, {'content': 'Bonjour'})
        self.assertError(self.submit(text, {}), 400, 'validation_failed')

    def test_malformed_requests(self):
        self.assertError(self.client.get('/api/quiz-attempts/'), 400, 'invalid_identifier')
        self.assertError(
            self.client.post('/api/quiz-attempts/', {'contentId': self.quiz.pk}, format='json'), 400, 'validation_failed'
        )
        self.assertError(self.submit(self.quiz, 'a,b'), 400, 'validation_failed')
        self.assertError(
            self.client.post('/api/quiz-attempts/', {'contentId': 'x', 'answers': []}, format='json'),
            400, 'invalid_identifier'
        )
        self.assertFalse(QuizAttempt.objects.exists())

    def test_not_enrolled(self):
        other = self.create_user('autre@test.ma', self.student.role)
        self.authenticate(other)
        self.assertError(self.submit(self.quiz, [1, 0]), 403, 'not_enrolled')

    def test_numeric_string_attempts_allowed_is_counted(self):
        self.authenticate(self.admin)
        response = self.client.post(
            f'/api/chapters/{self.quiz.chapter_id}/content/',
            {'title': 'Quiz limité', 'contentType': 'quiz', 'contentData': {**QUIZ_DATA, 'attemptsAllowed': '2'}},
            format='json'
        )
        self.assertEqual(response.status_code, 201, response.data)
        limited = self.quiz.chapter.content_items.get(title='Quiz limité')

        self.authenticate(self.student)
        self.assertEqual(self.submit(limited, [1, 0]).status_code, 201)
        self.assertEqual(self.submit(limited, [1, 0]).status_code, 201)
        self.assertError(self.submit(limited, [1, 0]), 409, 'attempts_exhausted')

    def test_invalid_attempts_allowed_rejected_on_write(self):
        self.authenticate(self.admin)
        for value in ('deux', 0):
            response = self.client.post(
                f'/api/chapters/{self.quiz.chapter_id}/content/',
                {'title': 'Quiz', 'contentType': 'quiz', 'contentData': {**QUIZ_DATA, 'attemptsAllowed': value}},
                format='json'
            )
            self.assertError(response, 400, 'validation_failed')
            self.assertIn('content_data', response.data['details'])

    def test_stored_invalid_attempts_allowed_is_a_structured_error(self):
        broken = self.make_item(self.quiz.chapter, 'Ancien quiz', content_data={**QUIZ_DATA, 'attemptsAllowed': 'deux'})
        response = self.submit(broken, [1, 0])
        self.assertError(response, 400, 'validation_failed')
        self.assertFalse(QuizAttempt.objects.filter(content_item=broken).exists())
