"""
Module endpoint tests - listing, CRUD, reorder and deletion through the API
"""
from academie.testutils import PlatformAPITestCase
from courses.models import Chapter, ChapterProgress, Module


class ModuleListTests(PlatformAPITestCase):

    def setUp(self):
        super().setUp()
        self.course = self.make_course()
        self.first = self.make_module(self.course, 'Premier module')
        self.second = self.make_module(self.course, 'Second module')
        self.make_chapter(self.second, 'Chapitre A')
        self.make_item(self.make_chapter(self.second, 'Chapitre B'))

    def test_requires_authentication(self):
        response = self.client.get(f'/api/courses/{self.course.pk}/modules/')
        self.assertError(response, 401, 'unauthenticated')

    def test_lists_modules_with_chapters_in_order(self):
        Module.objects.filter(pk=self.first.pk).update(order_index=5)
        self.authenticate(self.admin)
        response = self.client.get(f'/api/courses/{self.course.pk}/modules/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual([m['title'] for m in response.data], ['Second module', 'Premier module'])
        self.assertEqual(response.data[0]['chapter_count'], 2)
        self.assertEqual([c['title'] for c in response.data[0]['chapters']], ['Chapitre A', 'Chapitre B'])
        self.assertNotIn('content_items', response.data[0]['chapters'][0])

    def test_include_content(self):
        self.authenticate(self.admin)
        response = self.client.get(f'/api/courses/{self.course.pk}/modules/?include=content')
        chapters = response.data[1]['chapters']
        self.assertEqual(len(chapters[1]['content_items']), 1)

    def test_student_reads_only_enrolled_courses(self):
        self.authenticate(self.student)
        response = self.client.get(f'/api/courses/{self.course.pk}/modules/')
        self.assertError(response, 403, 'unauthorized')

        self.enroll(self.student, self.course)
        response = self.client.get(f'/api/courses/{self.course.pk}/modules/')
        self.assertEqual(response.status_code, 200)

    def test_invalid_and_unknown_course(self):
        self.authenticate(self.admin)
        response = self.client.get('/api/courses/abc/modules/')
        self.assertError(response, 400, 'invalid_identifier')
        self.assertEqual(response.data['error'], 'ID de cours invalide')

        response = self.client.get('/api/courses/9999/modules/')
        self.assertError(response, 404, 'not_found')


class ModuleWriteTests(PlatformAPITestCase):

    def setUp(self):
        super().setUp()
        self.course = self.make_course()
        self.existing = self.make_module(self.course, 'Existant')
        self.authenticate(self.admin)

    def test_create_appends(self):
        response = self.client.post(
            f'/api/courses/{self.course.pk}/modules/',
            {'title': 'Nouveau module', 'description': 'Bases', 'orderIndex': 0, 'order_index': 0},
            format='json'
        )
        self.assertEqual(response.status_code, 201, response.data)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['message'], 'Module créé avec succès')
        self.assertEqual(response.data['module']['order_index'], 1)
        self.assertEqual(response.data['module']['course'], self.course.pk)

    def test_create_in_empty_course_starts_at_zero(self):
        course = self.make_course('Cours vide')
        response = self.client.post(f'/api/courses/{course.pk}/modules/', {'title': 'Premier'}, format='json')
        self.assertEqual(response.data['module']['order_index'], 0)

    def test_create_validation(self):
        response = self.client.post(f'/api/courses/{self.course.pk}/modules/', {'title': 'ab'}, format='json')
        self.assertError(response, 400, 'validation_failed')
        self.assertEqual(response.data['error'], 'Données invalides')
        self.assertIn('title', response.data['details'])

        response = self.client.post(
            f'/api/courses/{self.course.pk}/modules/', {'title': 'Titre', 'description': 'x' * 1001}, format='json'
        )
        self.assertError(response, 400, 'validation_failed')

    def test_create_under_missing_course(self):
        response = self.client.post('/api/courses/9999/modules/', {'title': 'Orphelin'}, format='json')
        self.assertError(response, 404, 'parent_not_found')
        self.assertEqual(response.data['error'], 'Cours introuvable')

    def test_non_admin_cannot_write(self):
        for user in (self.sub_admin, self.trainer, self.student):
            self.authenticate(user)
            with self.subTest(role=user.role):
                response = self.client.post(
                    f'/api/courses/{self.course.pk}/modules/', {'title': 'Interdit'}, format='json'
                )
                self.assertError(response, 403, 'unauthorized')
                response = self.client.patch(f'/api/modules/{self.existing.pk}/', {'title': 'Interdit'}, format='json')
                self.assertError(response, 403, 'unauthorized')
                response = self.client.delete(f'/api/modules/{self.existing.pk}/')
                self.assertError(response, 403, 'unauthorized')

        self.assertEqual(Module.objects.filter(course=self.course).count(), 1)
        self.existing.refresh_from_db()
        self.assertEqual(self.existing.title, 'Existant')

    def test_update(self):
        response = self.client.patch(
            f'/api/modules/{self.existing.pk}/', {'title': 'Renommé', 'order_index': 9}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['message'], 'Module mis à jour avec succès')
        self.existing.refresh_from_db()
        self.assertEqual(self.existing.title, 'Renommé')
        self.assertEqual(self.existing.order_index, 0)

    def test_update_scoped_to_wrong_course(self):
        other = self.make_course('Autre cours')
        response = self.client.patch(
            f'/api/courses/{other.pk}/modules/{self.existing.pk}/', {'title': 'Renommé'}, format='json'
        )
        self.assertError(response, 404, 'not_found')

        response = self.client.patch(
            f'/api/modules/{self.existing.pk}/', {'title': 'Renommé', 'courseId': other.pk}, format='json'
        )
        self.assertError(response, 404, 'not_found')

    def test_update_missing_module(self):
        response = self.client.patch('/api/modules/9999/', {'title': 'Renommé'}, format='json')
        self.assertError(response, 404, 'not_found')
        self.assertEqual(response.data['error'], 'Module introuvable')


class ModuleDeleteTests(PlatformAPITestCase):

    def setUp(self):
        super().setUp()
        self.course = self.make_course()
        self.module = self.make_module(self.course, 'Condamné')
        chapters = [self.make_chapter(self.module, f'Chapitre {i}') for i in range(3)]
        for chapter in chapters:
            ChapterProgress.objects.create(student=self.student, chapter=chapter)
        self.authenticate(self.admin)

    def test_impact_then_delete(self):
        response = self.client.get(f'/api/modules/{self.module.pk}/deletion-impact/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['chapters'], 3)
        self.assertEqual(response.data['chapter_progress'], 3)

        response = self.client.delete(f'/api/modules/{self.module.pk}/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['message'], 'Module supprimé avec succès')
        self.assertEqual(response.data['deleted']['chapters'], 3)

        self.assertFalse(Chapter.objects.filter(module_id=self.module.pk).exists())
        self.assertEqual(ChapterProgress.objects.count(), 0)

        response = self.client.delete(f'/api/modules/{self.module.pk}/')
        self.assertError(response, 404, 'not_found')

    def test_impact_is_admin_only(self):
        self.authenticate(self.trainer)
        response = self.client.get(f'/api/modules/{self.module.pk}/deletion-impact/')
        self.assertError(response, 403, 'unauthorized')


class ModuleReorderTests(PlatformAPITestCase):

    def setUp(self):
        super().setUp()
        self.course = self.make_course()
        self.a = self.make_module(self.course, 'A')
        self.b = self.make_module(self.course, 'B')
        self.d = self.make_module(self.course, 'D')
        self.authenticate(self.admin)

    def orders(self):
        return dict(Module.objects.filter(course=self.course).values_list('title', 'order_index'))

    def test_reorder(self):
        response = self.client.post(
            '/api/modules/reorder/',
            {'courseId': self.course.pk, 'moduleIds': [self.d.pk, self.a.pk, self.b.pk]},
            format='json'
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['message'], 'Modules réorganisés avec succès')
        self.assertEqual([m['title'] for m in response.data['modules']], ['D', 'A', 'B'])
        self.assertEqual(self.orders(), {'D': 0, 'A': 1, 'B': 2})

        # same request again leaves the same state
        self.client.post(
            '/api/modules/reorder/',
            {'courseId': self.course.pk, 'moduleIds': [self.d.pk, self.a.pk, self.b.pk]},
            format='json'
        )
        self.assertEqual(self.orders(), {'D': 0, 'A': 1, 'B': 2})

    def test_scoped_route_and_snake_case(self):
        response = self.client.patch(
            f'/api/courses/{self.course.pk}/modules/reorder/',
            {'module_ids': [self.b.pk, self.d.pk, self.a.pk]},
            format='json'
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(self.orders(), {'B': 0, 'D': 1, 'A': 2})

    def test_incomplete_set_rejected(self):
        self.client.post(
            '/api/modules/reorder/',
            {'courseId': self.course.pk, 'moduleIds': [self.d.pk, self.a.pk, self.b.pk]},
            format='json'
        )
        response = self.client.post(
            '/api/modules/reorder/', {'courseId': self.course.pk, 'moduleIds': [self.a.pk, self.b.pk]}, format='json'
        )
        self.assertError(response, 400, 'incomplete_or_mismatched_set')
        self.assertEqual(self.orders(), {'D': 0, 'A': 1, 'B': 2})

    def test_malformed_requests(self):
        cases = [
            ({'courseId': self.course.pk, 'moduleIds': []}, 'at_least_one_identifier_required'),
            ({'courseId': self.course.pk}, 'at_least_one_identifier_required'),
            ({'courseId': self.course.pk, 'moduleIds': [str(self.a.pk)]}, 'invalid_identifier'),
            ({'courseId': 'abc', 'moduleIds': [self.a.pk]}, 'invalid_identifier'),
            ({'moduleIds': [self.a.pk]}, 'invalid_identifier'),
        ]
        for body, code in cases:
            with self.subTest(body=body):
                response = self.client.post('/api/modules/reorder/', body, format='json')
                self.assertError(response, 400, code)
        self.assertEqual(self.orders(), {'A': 0, 'B': 1, 'D': 2})

    def test_unknown_course(self):
        response = self.client.post(
            '/api/modules/reorder/', {'courseId': 9999, 'moduleIds': [self.a.pk]}, format='json'
        )
        self.assertError(response, 404, 'parent_not_found')

    def test_non_admin_reorder_changes_nothing(self):
        self.authenticate(self.trainer)
        response = self.client.post(
            '/api/modules/reorder/',
            {'courseId': self.course.pk, 'moduleIds': [self.d.pk, self.a.pk, self.b.pk]},
            format='json'
        )
        self.assertError(response, 403, 'unauthorized')
        self.assertEqual(self.orders(), {'A': 0, 'B': 1, 'D': 2})
