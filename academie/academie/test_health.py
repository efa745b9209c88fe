"""
Health endpoints, error body shape and request logging
"""
from academie.testutils import PlatformAPITestCase


class HealthCheckTests(PlatformAPITestCase):

    def test_health_needs_no_authentication(self):
        response = self.client.get('/api/health/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], 'healthy')
        self.assertEqual(response.data['checks']['database']['database'], 'connected')
        self.assertEqual(response.data['checks']['tables']['missing'], [])

    def test_database_status(self):
        response = self.client.get('/api/health/database/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['tables']['status'], 'healthy')

    def test_method_not_allowed_uses_error_body(self):
        response = self.client.delete('/api/health/')
        self.assertError(response, 405, 'method_not_allowed')
        self.assertIn('GET', response['Allow'])


class ErrorBodyTests(PlatformAPITestCase):

    def test_invalid_token(self):
        self.client.credentials(HTTP_AUTHORIZATION='Token inconnu')
        response = self.client.get('/api/courses/')
        self.assertError(response, 401, 'unauthenticated')
        self.assertEqual(response.data['error'], 'Token invalide')

    def test_malformed_json(self):
        self.authenticate(self.admin)
        response = self.client.post('/api/domains/', '{"name": ', content_type='application/json')
        self.assertError(response, 400, 'validation_failed')
        self.assertEqual(response.data['error'], 'Requête invalide')

    def test_client_errors_are_logged(self):
        with self.assertLogs('academie.middleware', level='WARNING') as logs:
            self.client.get('/api/courses/')
        self.assertIn('GET /api/courses/ -> 401', logs.output[0])
