"""
Courses app views - courses, domains and the module / chapter / content item hierarchy

Every handler follows the same order: role check (HasCapability), identifier
and body validation, parent / target lookup, ownership check against the
resolved course, then the write.
"""
import logging

from django.db import transaction
from django.db.models import Count
from rest_framework import status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import (
    HasCapability, allowed_roles, authorize, authorize_course_read, visible_courses
)
from academie.exceptions import ValidationError
from .cascade import deletion_impact, delete_chapter, delete_content_item, delete_course, delete_module
from .hierarchy import (
    INVALID_ID_MESSAGES, check_belongs_to, get_parent, get_target, parse_identifier, parse_identifier_list
)
from .models import Chapter, ContentItem, Course, Domain, Module
from .sequence import Sequence, course_of, move_chapter
from .serializers import (
    ChapterSerializer, ChapterWithContentSerializer, ContentItemSerializer, CourseSerializer,
    DomainSerializer, ModuleSerializer, ModuleWithChaptersSerializer, ModuleWithContentSerializer
)

logger = logging.getLogger(__name__)

READ = 'content.read'
MANAGE = 'content.manage'


def capability_map(read, write):
    return {'GET': read, 'HEAD': read, 'POST': write, 'PUT': write, 'PATCH': write, 'DELETE': write}


def request_body(request):
    if not hasattr(request.data, 'get'):
        raise ValidationError('Un objet JSON est attendu')
    return request.data


def body_value(data, *keys):
    """First of keys present in data (camelCase first, then its snake_case alias)"""
    for key in keys:
        if key in data:
            return data[key]
    return None


def wants_content(request):
    return request.query_params.get('include') == 'content'


# ============ Domains ============

class DomainViewSet(viewsets.ModelViewSet):
    queryset = Domain.objects.all()
    serializer_class = DomainSerializer
    permission_classes = [HasCapability]
    capabilities = capability_map(READ, 'domain.manage')

    def get_object(self):
        return get_target(Domain, self.kwargs['pk'])

    def perform_destroy(self, instance):
        logger.info('Deleting domain %s (%s)', instance.pk, instance.name)
        instance.delete()


# ============ Courses ============

class CourseViewSet(viewsets.ModelViewSet):
    serializer_class = CourseSerializer
    permission_classes = [HasCapability]
    capabilities = {**capability_map(READ, 'course.manage'), 'DELETE': 'course.delete'}

    def get_queryset(self):
        queryset = Course.objects.select_related('domain', 'teacher')
        queryset = visible_courses(self.request.user, queryset)

        domain_id = self.request.query_params.get('domainId') or self.request.query_params.get('domain_id')
        if domain_id:
            queryset = queryset.filter(domain_id=parse_identifier(domain_id, Domain))
        active = self.request.query_params.get('active')
        if active in ('true', 'false'):
            queryset = queryset.filter(is_active=(active == 'true'))
        return queryset

    def get_object(self):
        course = get_target(Course, self.kwargs['pk'], Course.objects.select_related('domain', 'teacher'))
        if self.request.method in ('GET', 'HEAD'):
            authorize_course_read(self.request.user, course)
        else:
            authorize(self.request.user, self.capabilities[self.request.method], course)
        return course

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        extra = {}
        if request.user.role not in allowed_roles('course.manage'):
            # trainer managing their own courses: the course is theirs
            extra['teacher'] = request.user
        course = serializer.save(**extra)
        logger.info('Course %s (%s) created by user %s', course.pk, course.slug, request.user.pk)
        return Response(
            {'success': True, 'message': 'Cours créé avec succès', 'course': self.get_serializer(course).data},
            status=status.HTTP_201_CREATED
        )

    def update(self, request, *args, **kwargs):
        course = self.get_object()
        serializer = self.get_serializer(course, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        if request.user.role not in allowed_roles('course.manage') and 'teacher' in serializer.validated_data:
            serializer.validated_data.pop('teacher')
        course = serializer.save()
        return Response({'success': True, 'message': 'Cours mis à jour avec succès', 'course': serializer.data})

    def destroy(self, request, *args, **kwargs):
        course = self.get_object()
        removed = delete_course(course)
        return Response({'success': True, 'message': 'Cours supprimé avec succès', 'deleted': removed})


# ============ Modules ============

class CourseModulesView(APIView):
    """GET/POST /api/courses/<course_id>/modules/"""
    permission_classes = [HasCapability]
    capabilities = capability_map(READ, MANAGE)

    def get(self, request, course_id):
        course = get_target(Course, course_id)
        authorize_course_read(request.user, course)

        modules = Module.objects.filter(course=course).annotate(chapter_count=Count('chapters'))
        if wants_content(request):
            modules = modules.prefetch_related('chapters__content_items')
            serializer = ModuleWithContentSerializer(modules, many=True)
        else:
            modules = modules.prefetch_related('chapters')
            serializer = ModuleWithChaptersSerializer(modules, many=True)
        return Response(serializer.data)

    def post(self, request, course_id):
        course = get_parent(Course, course_id)
        authorize(request.user, MANAGE, course)

        serializer = ModuleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            Course.objects.select_for_update().get(pk=course.pk)
            module = serializer.save(course=course, order_index=Sequence.for_course(course).next_index())

        logger.info('Module %s created in course %s at position %s', module.pk, course.pk, module.order_index)
        return Response(
            {'success': True, 'message': 'Module créé avec succès', 'module': ModuleSerializer(module).data},
            status=status.HTTP_201_CREATED
        )


class ModuleDetailView(APIView):
    """GET/PATCH/DELETE /api/modules/<pk>/ (also scoped under /api/courses/<course_id>/modules/<pk>/)"""
    permission_classes = [HasCapability]
    capabilities = capability_map(READ, MANAGE)

    def get_module(self, request, pk, course_id=None):
        if course_id is not None:
            course_id = parse_identifier(course_id, Course)
        module = get_target(Module, pk, Module.objects.select_related('course'))
        if course_id is None and request.method not in ('GET', 'HEAD'):
            scoped = body_value(request_body(request), 'courseId', 'course_id')
            if scoped is not None:
                course_id = parse_identifier(scoped, Course, strict=True)
        if course_id is not None:
            check_belongs_to(module, 'course', course_id, Module)

        if request.method in ('GET', 'HEAD'):
            authorize_course_read(request.user, module.course)
        else:
            authorize(request.user, MANAGE, module.course)
        return module

    def get(self, request, pk, course_id=None):
        module = self.get_module(request, pk, course_id)
        return Response(ModuleWithChaptersSerializer(module).data)

    def patch(self, request, pk, course_id=None):
        module = self.get_module(request, pk, course_id)
        serializer = ModuleSerializer(module, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'message': 'Module mis à jour avec succès', 'module': serializer.data})

    put = patch

    def delete(self, request, pk, course_id=None):
        module = self.get_module(request, pk, course_id)
        removed = delete_module(module)
        return Response({'success': True, 'message': 'Module supprimé avec succès', 'deleted': removed})


class ModuleDeletionImpactView(APIView):
    """What deleting a module would remove, for the confirmation dialog"""
    permission_classes = [HasCapability]
    capabilities = {'GET': MANAGE}

    def get(self, request, pk):
        module = get_target(Module, pk, Module.objects.select_related('course'))
        authorize(request.user, MANAGE, module.course)
        return Response({'module': module.pk, 'title': module.title, **deletion_impact(module)})


# ============ Reorder ============

class ReorderView(APIView):
    """
    Rewrites the order of every child of one parent.

    The parent id comes from the URL (parent_kwarg) or from the body
    (parent_keys); the complete ordered child list from ids_keys.
    """
    permission_classes = [HasCapability]
    capabilities = {'POST': MANAGE, 'PATCH': MANAGE}

    parent_model = None
    parent_field = None
    child_model = None
    parent_kwarg = None
    parent_keys = ()
    ids_keys = ()
    serializer_class = None
    result_key = None
    message = None

    def post(self, request, **kwargs):
        data = request_body(request)
        parent_id = kwargs.get(self.parent_kwarg)
        if parent_id is None:
            parent_id = body_value(data, *self.parent_keys)
            if parent_id is None:
                raise ValidationError(INVALID_ID_MESSAGES[self.parent_model], code='invalid_identifier')
            parent_id = parse_identifier(parent_id, self.parent_model, strict=True)
        ids = parse_identifier_list(body_value(data, *self.ids_keys), self.child_model)

        parent = get_parent(self.parent_model, parent_id)
        authorize(request.user, MANAGE, course_of(parent))

        rows = Sequence(self.child_model, self.parent_field, parent).reorder(ids)
        return Response({
            'success': True,
            'message': self.message,
            self.result_key: self.serializer_class(rows, many=True).data,
        })

    patch = post


class ModuleReorderView(ReorderView):
    parent_model = Course
    parent_field = 'course'
    child_model = Module
    parent_kwarg = 'course_id'
    parent_keys = ('courseId', 'course_id')
    ids_keys = ('moduleIds', 'module_ids')
    serializer_class = ModuleSerializer
    result_key = 'modules'
    message = 'Modules réorganisés avec succès'


class ChapterReorderView(ReorderView):
    parent_model = Module
    parent_field = 'module'
    child_model = Chapter
    parent_kwarg = 'module_id'
    parent_keys = ('moduleId', 'module_id')
    ids_keys = ('chapterIds', 'chapter_ids')
    serializer_class = ChapterSerializer
    result_key = 'chapters'
    message = 'Chapitres réorganisés avec succès'


class ContentItemReorderView(ReorderView):
    parent_model = Chapter
    parent_field = 'chapter'
    child_model = ContentItem
    parent_kwarg = 'chapter_id'
    parent_keys = ('chapterId', 'chapter_id')
    ids_keys = ('contentItemIds', 'content_item_ids')
    serializer_class = ContentItemSerializer
    result_key = 'content_items'
    message = 'Contenus réorganisés avec succès'


# ============ Chapters ============

class ModuleChaptersView(APIView):
    """GET/POST /api/modules/<module_id>/chapters/"""
    permission_classes = [HasCapability]
    capabilities = capability_map(READ, MANAGE)

    def get(self, request, module_id):
        module = get_target(Module, module_id, Module.objects.select_related('course'))
        authorize_course_read(request.user, module.course)

        chapters = Chapter.objects.filter(module=module)
        if wants_content(request):
            serializer = ChapterWithContentSerializer(chapters.prefetch_related('content_items'), many=True)
        else:
            serializer = ChapterSerializer(chapters, many=True)
        return Response(serializer.data)

    def post(self, request, module_id):
        module = get_parent(Module, module_id, Module.objects.select_related('course'))
        authorize(request.user, MANAGE, module.course)

        serializer = ChapterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            Module.objects.select_for_update().get(pk=module.pk)
            chapter = serializer.save(module=module, order_index=Sequence.for_module(module).next_index())

        logger.info('Chapter %s created in module %s at position %s', chapter.pk, module.pk, chapter.order_index)
        return Response(
            {'success': True, 'message': 'Chapitre créé avec succès', 'chapter': ChapterSerializer(chapter).data},
            status=status.HTTP_201_CREATED
        )


class ChapterDetailView(APIView):
    permission_classes = [HasCapability]
    capabilities = capability_map(READ, MANAGE)

    def get_chapter(self, request, pk):
        chapter = get_target(Chapter, pk, Chapter.objects.select_related('module__course'))
        if request.method in ('GET', 'HEAD'):
            authorize_course_read(request.user, chapter.module.course)
            return chapter

        scoped = body_value(request_body(request), 'moduleId', 'module_id')
        if scoped is not None:
            check_belongs_to(chapter, 'module', parse_identifier(scoped, Module, strict=True), Chapter)
        authorize(request.user, MANAGE, chapter.module.course)
        return chapter

    def get(self, request, pk):
        chapter = self.get_chapter(request, pk)
        return Response(ChapterWithContentSerializer(chapter).data)

    def patch(self, request, pk):
        chapter = self.get_chapter(request, pk)
        serializer = ChapterSerializer(chapter, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'message': 'Chapitre mis à jour avec succès', 'chapter': serializer.data})

    put = patch

    def delete(self, request, pk):
        chapter = self.get_chapter(request, pk)
        removed = delete_chapter(chapter)
        return Response({'success': True, 'message': 'Chapitre supprimé avec succès', 'deleted': removed})


class ChapterMoveView(APIView):
    """POST /api/chapters/<pk>/move/ {targetModuleId, targetOrderIndex?}"""
    permission_classes = [HasCapability]
    capabilities = {'POST': MANAGE, 'PATCH': MANAGE}

    def post(self, request, pk):
        data = request_body(request)
        chapter = get_target(Chapter, pk, Chapter.objects.select_related('module__course'))
        target_id = parse_identifier(body_value(data, 'targetModuleId', 'target_module_id'), Module, strict=True)
        target_index = body_value(data, 'targetOrderIndex', 'target_order_index')

        target_module = get_parent(Module, target_id, Module.objects.select_related('course'))
        authorize(request.user, MANAGE, chapter.module.course)
        authorize(request.user, MANAGE, target_module.course)
        if target_module.course_id != chapter.module.course_id:
            raise ValidationError('Le module cible doit appartenir au même cours')

        chapter = move_chapter(chapter, target_module, target_index)
        return Response({'success': True, 'message': 'Chapitre déplacé avec succès', 'chapter': ChapterSerializer(chapter).data})

    patch = post


# ============ Content items ============

class ChapterContentView(APIView):
    """GET/POST /api/chapters/<chapter_id>/content/"""
    permission_classes = [HasCapability]
    capabilities = capability_map(READ, MANAGE)

    def get(self, request, chapter_id):
        chapter = get_target(Chapter, chapter_id, Chapter.objects.select_related('module__course'))
        authorize_course_read(request.user, chapter.module.course)
        items = ContentItem.objects.filter(chapter=chapter)
        return Response(ContentItemSerializer(items, many=True).data)

    def post(self, request, chapter_id):
        chapter = get_parent(Chapter, chapter_id, Chapter.objects.select_related('module__course'))
        authorize(request.user, MANAGE, chapter.module.course)

        serializer = ContentItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            Chapter.objects.select_for_update().get(pk=chapter.pk)
            item = serializer.save(chapter=chapter, order_index=Sequence.for_chapter(chapter).next_index())

        logger.info('Content item %s (%s) created in chapter %s', item.pk, item.content_type, chapter.pk)
        return Response(
            {'success': True, 'message': 'Contenu créé avec succès', 'content': ContentItemSerializer(item).data},
            status=status.HTTP_201_CREATED
        )


class ContentItemDetailView(APIView):
    permission_classes = [HasCapability]
    capabilities = capability_map(READ, MANAGE)

    def get_item(self, request, pk):
        item = get_target(ContentItem, pk, ContentItem.objects.select_related('chapter__module__course'))
        course = item.chapter.module.course
        if request.method in ('GET', 'HEAD'):
            authorize_course_read(request.user, course)
        else:
            authorize(request.user, MANAGE, course)
        return item

    def get(self, request, pk):
        return Response(ContentItemSerializer(self.get_item(request, pk)).data)

    def patch(self, request, pk):
        item = self.get_item(request, pk)
        serializer = ContentItemSerializer(item, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({'success': True, 'message': 'Contenu mis à jour avec succès', 'content': serializer.data})

    put = patch

    def delete(self, request, pk):
        item = self.get_item(request, pk)
        removed = delete_content_item(item)
        return Response({'success': True, 'message': 'Contenu supprimé avec succès', 'deleted': removed})
