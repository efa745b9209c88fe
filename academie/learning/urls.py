"""
Learning app URL configuration - enrollments, classes, progress and quiz attempts
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    ChapterCompleteView, ClassViewSet, CourseModuleProgressView, CourseModuleStatsView, EnrollmentDetailView,
    EnrollmentListView, ModuleProgressView, QuizAttemptsView
)

router = DefaultRouter()
router.include_root_view = False
router.register(r'classes', ClassViewSet, basename='class')

urlpatterns = [
    path('enrollments/', EnrollmentListView.as_view(), name='enrollment-list'),
    path('enrollments/<str:pk>/', EnrollmentDetailView.as_view(), name='enrollment-detail'),

    path('chapters/<str:chapter_id>/complete/', ChapterCompleteView.as_view(), name='chapter-complete'),
    path('modules/<str:module_id>/progress/', ModuleProgressView.as_view(), name='module-progress'),
    path('courses/<str:course_id>/module-progress/', CourseModuleProgressView.as_view(), name='course-module-progress'),
    path('courses/<str:course_id>/module-stats/', CourseModuleStatsView.as_view(), name='course-module-stats'),

    path('quiz-attempts/', QuizAttemptsView.as_view(), name='quiz-attempts'),

    path('', include(router.urls)),
]
