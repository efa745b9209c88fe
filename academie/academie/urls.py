"""
URL configuration for the academie project.

Every endpoint lives under /api/: authentication (accounts), the content
hierarchy (courses), learner activity (learning) and the health checks.
"""
from django.urls import include, path

from .health import database_status, health_check

urlpatterns = [
    path('api/health/', health_check, name='health-check'),
    path('api/health/database/', database_status, name='health-database'),
    path('api/', include('accounts.urls')),
    path('api/', include('learning.urls')),
    path('api/', include('courses.urls')),
]
