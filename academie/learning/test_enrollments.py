"""
Enrollment endpoint tests
"""
from unittest import mock

from academie.testutils import PlatformAPITestCase
from courses.models import Enrollment


class EnrollmentCreateTests(PlatformAPITestCase):

    def setUp(self):
        super().setUp()
        self.course = self.make_course('Cours A')
        self.second = self.make_course('Cours B')
        self.authenticate(self.sub_admin)

    def test_enroll_student(self):
        response = self.client.post(
            '/api/enrollments/', {'studentId': self.student.pk, 'courseId': self.course.pk}, format='json'
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data['enrollment']['course'], self.course.pk)
        self.assertFalse(response.data['enrollment']['is_completed'])

        response = self.client.post(
            '/api/enrollments/', {'studentId': self.student.pk, 'courseId': self.course.pk}, format='json'
        )
        self.assertError(response, 409, 'already_enrolled')
        self.assertEqual(Enrollment.objects.count(), 1)

    def test_bulk_enrollment_skips_existing(self):
        self.enroll(self.student, self.course)
        response = self.client.post(
            '/api/enrollments/',
            {'student_id': self.student.pk, 'course_ids': [self.course.pk, self.second.pk]},
            format='json'
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual([e['course'] for e in response.data['enrollments']], [self.second.pk])
        self.assertEqual(response.data['skipped'], [self.course.pk])

    def test_rejections(self):
        inactive = self.make_course('Cours archivé', is_active=False)
        cases = [
            ({'studentId': 9999, 'courseId': self.course.pk}, 404, 'not_found'),
            ({'studentId': self.trainer.pk, 'courseId': self.course.pk}, 400, 'validation_failed'),
            ({'studentId': self.student.pk, 'courseId': 9999}, 404, 'not_found'),
            ({'studentId': self.student.pk, 'courseId': inactive.pk}, 400, 'course_inactive'),
            ({'studentId': self.student.pk, 'courseIds': [self.second.pk, 9999]}, 404, 'not_found'),
            ({'studentId': str(self.student.pk), 'courseId': self.course.pk}, 400, 'invalid_identifier'),
        ]
        for body, status_code, code in cases:
            with self.subTest(body=body):
                self.assertError(self.client.post('/api/enrollments/', body, format='json'), status_code, code)
        self.assertFalse(Enrollment.objects.exists())

    def test_concurrent_duplicate_is_a_conflict(self):
        create = Enrollment.objects.create

        def create_after_rival(**kwargs):
            create(**kwargs)
            return create(**kwargs)

        with mock.patch.object(Enrollment.objects, 'create', side_effect=create_after_rival):
            response = self.client.post(
                '/api/enrollments/', {'studentId': self.student.pk, 'courseId': self.course.pk}, format='json'
            )
        self.assertError(response, 409, 'already_enrolled')
        self.assertFalse(Enrollment.objects.exists())

    def test_trainers_and_students_cannot_enroll(self):
        for user in (self.trainer, self.student):
            self.authenticate(user)
            response = self.client.post(
                '/api/enrollments/', {'studentId': self.student.pk, 'courseId': self.course.pk}, format='json'
            )
            self.assertError(response, 403, 'unauthorized')


class EnrollmentListTests(PlatformAPITestCase):

    def setUp(self):
        super().setUp()
        self.taught = self.make_course('Cours enseigné', teacher=self.trainer)
        self.other = self.make_course('Autre cours')
        self.classmate = self.create_user('camarade@test.ma', self.student.role)
        self.mine = self.enroll(self.student, self.taught)
        self.enroll(self.student, self.other)
        self.enroll(self.classmate, self.other)

    def ids(self, response):
        self.assertEqual(response.status_code, 200, response.data)
        return {row['id'] for row in response.data}

    def test_admin_sees_all_and_filters(self):
        self.authenticate(self.admin)
        self.assertEqual(len(self.ids(self.client.get('/api/enrollments/'))), 3)
        self.assertEqual(len(self.ids(self.client.get(f'/api/enrollments/?courseId={self.other.pk}'))), 2)
        self.assertEqual(self.ids(self.client.get(f'/api/enrollments/?studentId={self.classmate.pk}')),
                         set(Enrollment.objects.filter(student=self.classmate).values_list('id', flat=True)))

    def test_student_sees_own_enrollments(self):
        self.authenticate(self.student)
        self.assertEqual(len(self.ids(self.client.get('/api/enrollments/'))), 2)
        response = self.client.get(f'/api/enrollments/?studentId={self.classmate.pk}')
        self.assertError(response, 403, 'unauthorized')

    def test_trainer_sees_own_courses(self):
        self.authenticate(self.trainer)
        self.assertEqual(self.ids(self.client.get('/api/enrollments/')), {self.mine.pk})

    def test_unenroll(self):
        self.authenticate(self.student)
        self.assertError(self.client.delete(f'/api/enrollments/{self.mine.pk}/'), 403, 'unauthorized')

        self.authenticate(self.admin)
        response = self.client.delete(f'/api/enrollments/{self.mine.pk}/')
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Enrollment.objects.filter(pk=self.mine.pk).exists())
        self.assertError(self.client.delete(f'/api/enrollments/{self.mine.pk}/'), 404, 'not_found')
