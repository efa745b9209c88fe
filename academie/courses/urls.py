"""
Courses app URL configuration - courses, domains and the content hierarchy

Identifiers are captured as strings so that a malformed id reaches the view
and is rejected with invalid_identifier instead of an HTML 404. Fixed routes
(reorder) are listed before the <pk> routes they would otherwise match.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    ChapterContentView, ChapterDetailView, ChapterMoveView, ChapterReorderView, ContentItemDetailView,
    ContentItemReorderView, CourseModulesView, CourseViewSet, DomainViewSet, ModuleChaptersView,
    ModuleDeletionImpactView, ModuleDetailView, ModuleReorderView
)

router = DefaultRouter()
router.include_root_view = False
router.register(r'courses', CourseViewSet, basename='course')
router.register(r'domains', DomainViewSet, basename='domain')

urlpatterns = [
    # Modules
    path('modules/reorder/', ModuleReorderView.as_view(), name='module-reorder'),
    path('courses/<str:course_id>/modules/reorder/', ModuleReorderView.as_view(), name='course-module-reorder'),
    path('courses/<str:course_id>/modules/', CourseModulesView.as_view(), name='course-modules'),
    path('courses/<str:course_id>/modules/<str:pk>/', ModuleDetailView.as_view(), name='course-module-detail'),
    path('modules/<str:pk>/deletion-impact/', ModuleDeletionImpactView.as_view(), name='module-deletion-impact'),
    path('modules/<str:pk>/', ModuleDetailView.as_view(), name='module-detail'),

    # Chapters
    path('chapters/reorder/', ChapterReorderView.as_view(), name='chapter-reorder'),
    path('modules/<str:module_id>/chapters/reorder/', ChapterReorderView.as_view(), name='module-chapter-reorder'),
    path('modules/<str:module_id>/chapters/', ModuleChaptersView.as_view(), name='module-chapters'),
    path('chapters/<str:pk>/move/', ChapterMoveView.as_view(), name='chapter-move'),
    path('chapters/<str:pk>/', ChapterDetailView.as_view(), name='chapter-detail'),

    # Content items
    path('content/reorder/', ContentItemReorderView.as_view(), name='content-reorder'),
    path('chapters/<str:chapter_id>/content/reorder/', ContentItemReorderView.as_view(), name='chapter-content-reorder'),
    path('chapters/<str:chapter_id>/content/', ChapterContentView.as_view(), name='chapter-content'),
    path('content/<str:pk>/', ContentItemDetailView.as_view(), name='content-detail'),

    path('', include(router.urls)),
]

