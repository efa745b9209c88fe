"""
Authentication endpoint tests - login, logout and the current profile
"""
from rest_framework.authtoken.models import Token

from academie.testutils import PlatformAPITestCase
from accounts.models import Role


class LoginTests(PlatformAPITestCase):

    def test_login_returns_token_and_profile(self):
        response = self.client.post(
            '/api/auth/login/', {'email': 'ADMIN@test.ma', 'password': self.password}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['token'], Token.objects.get(user=self.admin).key)
        self.assertEqual(response.data['user']['role'], Role.ADMIN)

        self.admin.refresh_from_db()
        self.assertIsNotNone(self.admin.last_login)

    def test_wrong_password_is_unauthenticated(self):
        response = self.client.post(
            '/api/auth/login/', {'email': 'admin@test.ma', 'password': 'nope'}, format='json'
        )
        self.assertError(response, 401, 'unauthenticated')
        self.assertEqual(response.data['error'], 'Email ou mot de passe invalide')

    def test_unknown_email_is_unauthenticated(self):
        response = self.client.post(
            '/api/auth/login/', {'email': 'inconnu@test.ma', 'password': self.password}, format='json'
        )
        self.assertError(response, 401, 'unauthenticated')

    def test_inactive_account_is_refused(self):
        self.student.is_active = False
        self.student.save()
        response = self.client.post(
            '/api/auth/login/', {'email': 'etudiant@test.ma', 'password': self.password}, format='json'
        )
        self.assertError(response, 403, 'unauthorized')
        self.assertFalse(Token.objects.filter(user=self.student).exists())

    def test_inactive_account_with_wrong_password_reveals_nothing(self):
        self.student.is_active = False
        self.student.save()
        response = self.client.post(
            '/api/auth/login/', {'email': 'etudiant@test.ma', 'password': 'nope'}, format='json'
        )
        self.assertError(response, 401, 'unauthenticated')
        self.assertEqual(response.data['error'], 'Email ou mot de passe invalide')

    def test_missing_password_is_a_validation_error(self):
        response = self.client.post('/api/auth/login/', {'email': 'admin@test.ma'}, format='json')
        self.assertError(response, 400, 'validation_failed')
        self.assertIn('password', response.data['details'])


class SessionTests(PlatformAPITestCase):

    def test_me_requires_authentication(self):
        response = self.client.get('/api/auth/me/')
        self.assertError(response, 401, 'unauthenticated')
        self.assertEqual(response.data['error'], 'Non autorisé')

    def test_me_returns_current_user(self):
        self.authenticate(self.trainer)
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['email'], 'formateur@test.ma')
        self.assertNotIn('password', response.data)

    def test_logout_revokes_token(self):
        self.authenticate(self.student)
        response = self.client.post('/api/auth/logout/')
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Token.objects.filter(user=self.student).exists())

        response = self.client.get('/api/auth/me/')
        self.assertError(response, 401, 'unauthenticated')
