"""
Health Check Views

Unauthenticated endpoints for monitoring:
- /api/health/           overall status (API, database, tables)
- /api/health/database/  database connectivity and schema tables
"""
import logging

from django.apps import apps
from django.db import DatabaseError, connection
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

logger = logging.getLogger(__name__)

PLATFORM_APPS = ('accounts', 'courses')


class HealthCheckService:
    """Checks performed by the health endpoints."""

    @staticmethod
    def check_database():
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
            return {'status': 'healthy', 'database': 'connected', 'vendor': connection.vendor}
        except DatabaseError as e:
            logger.error("Database health check failed: %s", e)
            return {'status': 'unhealthy', 'database': 'disconnected'}

    @staticmethod
    def check_tables():
        """
        Verify that the tables of the platform models exist.

        Returns:
            dict: status, counts and the missing table names
        """
        required = {
            model._meta.db_table
            for label in PLATFORM_APPS
            for model in apps.get_app_config(label).get_models()
        }
        try:
            existing = set(connection.introspection.table_names())
        except DatabaseError as e:
            logger.error("Table health check failed: %s", e)
            return {'status': 'unhealthy'}

        missing = sorted(required - existing)
        return {
            'status': 'healthy' if not missing else 'degraded',
            'total_required': len(required),
            'missing': missing,
        }

    @staticmethod
    def get_system_status():
        checks = {
            'api': {'status': 'healthy', 'api': 'responding'},
            'database': HealthCheckService.check_database(),
        }
        if checks['database']['status'] == 'healthy':
            checks['tables'] = HealthCheckService.check_tables()

        statuses = [check['status'] for check in checks.values()]
        if 'unhealthy' in statuses:
            overall = 'unhealthy'
        elif 'degraded' in statuses:
            overall = 'degraded'
        else:
            overall = 'healthy'

        return {'status': overall, 'timestamp': timezone.now().isoformat(), 'checks': checks}


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health_check(request):
    system_status = HealthCheckService.get_system_status()
    code = status.HTTP_503_SERVICE_UNAVAILABLE if system_status['status'] == 'unhealthy' else status.HTTP_200_OK
    return Response(system_status, status=code)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def database_status(request):
    db_status = HealthCheckService.check_database()
    response_data = {'database': db_status}
    if db_status['status'] != 'healthy':
        return Response(response_data, status=status.HTTP_503_SERVICE_UNAVAILABLE)

    response_data['tables'] = HealthCheckService.check_tables()
    return Response(response_data, status=status.HTTP_200_OK)
