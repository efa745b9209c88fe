"""
Courses app serializers - domains, courses and the module / chapter / content item hierarchy

order_index is read-only everywhere: new rows are appended by the views and
positions only change through the reorder and move endpoints.
"""
from django.contrib.auth import get_user_model
from rest_framework import serializers

from .content import validate_content
from .models import Chapter, ContentItem, ContentType, Course, Domain, Module
from .slugs import slug_for_course

User = get_user_model()


class AliasMixin:
    """Accept the camelCase keys the web client sends for snake_case fields"""
    aliases = {}

    def to_internal_value(self, data):
        if self.aliases and hasattr(data, 'items'):
            data = {self.aliases.get(key, key): value for key, value in data.items()}
        return super().to_internal_value(data)


class DomainSerializer(serializers.ModelSerializer):
    course_count = serializers.SerializerMethodField()

    class Meta:
        model = Domain
        fields = ['id', 'name', 'description', 'color', 'course_count', 'created_at']
        read_only_fields = ['id', 'created_at']
        extra_kwargs = {
            'name': {'min_length': 1},
        }

    def get_course_count(self, obj):
        return obj.courses.count()

    def validate_color(self, value):
        if len(value) != 7 or not value.startswith('#'):
            raise serializers.ValidationError('Couleur hexadécimale attendue (#rrggbb)')
        try:
            int(value[1:], 16)
        except ValueError:
            raise serializers.ValidationError('Couleur hexadécimale attendue (#rrggbb)')
        return value


class CourseSerializer(AliasMixin, serializers.ModelSerializer):
    aliases = {
        'domainId': 'domain',
        'teacherId': 'teacher',
        'thumbnailUrl': 'thumbnail_url',
        'isActive': 'is_active',
    }

    domain = serializers.PrimaryKeyRelatedField(queryset=Domain.objects.all(), required=False, allow_null=True)
    domain_name = serializers.CharField(source='domain.name', read_only=True, default=None)
    teacher = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), required=False, allow_null=True)
    teacher_name = serializers.CharField(source='teacher.name', read_only=True, default=None)
    thumbnail_url = serializers.URLField(required=False, allow_null=True, allow_blank=True)
    module_count = serializers.SerializerMethodField()

    class Meta:
        model = Course
        fields = [
            'id', 'title', 'slug', 'description', 'domain', 'domain_name', 'teacher', 'teacher_name',
            'thumbnail_url', 'is_active', 'module_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'slug', 'created_at', 'updated_at']
        extra_kwargs = {
            'title': {'min_length': 1, 'max_length': 255},
        }

    def get_module_count(self, obj):
        return obj.modules.count()

    def validate_teacher(self, value):
        from accounts.models import Role

        if value is not None and value.role != Role.TRAINER:
            raise serializers.ValidationError('Le formateur doit avoir le rôle TRAINER')
        return value

    def create(self, validated_data):
        validated_data['slug'] = slug_for_course(validated_data['title'])
        return super().create(validated_data)


class ModuleSerializer(serializers.ModelSerializer):
    chapter_count = serializers.SerializerMethodField()

    class Meta:
        model = Module
        fields = ['id', 'course', 'title', 'description', 'order_index', 'chapter_count', 'created_at', 'updated_at']
        read_only_fields = ['id', 'course', 'order_index', 'created_at', 'updated_at']
        extra_kwargs = {
            'title': {'min_length': 3, 'max_length': 200},
            'description': {'max_length': 1000, 'required': False, 'allow_null': True, 'allow_blank': True},
        }

    def get_chapter_count(self, obj):
        annotated = getattr(obj, 'chapter_count', None)
        return annotated if annotated is not None else obj.chapters.count()


class ContentItemSerializer(AliasMixin, serializers.ModelSerializer):
    aliases = {
        'contentType': 'content_type',
        'contentData': 'content_data',
    }

    class Meta:
        model = ContentItem
        fields = ['id', 'chapter', 'title', 'content_type', 'content_data', 'order_index', 'created_at', 'updated_at']
        read_only_fields = ['id', 'chapter', 'order_index', 'created_at', 'updated_at']
        extra_kwargs = {
            'title': {'min_length': 1, 'max_length': 200},
        }

    def validate(self, attrs):
        if self.instance is not None:
            content_type = self.instance.content_type
            if attrs.get('content_type', content_type) != content_type:
                raise serializers.ValidationError({'content_type': 'Le type d\'un contenu existant ne peut pas changer'})
            if 'content_data' in attrs:
                validate_content(content_type, attrs['content_data'])
            return attrs

        if 'content_data' not in attrs:
            raise serializers.ValidationError({'content_data': 'Ce champ est obligatoire.'})
        validate_content(attrs['content_type'], attrs['content_data'])
        return attrs


class ChapterSerializer(AliasMixin, serializers.ModelSerializer):
    aliases = {
        'contentType': 'content_type',
        'contentData': 'content_data',
    }

    content_data = serializers.JSONField(required=False)
    content_item_count = serializers.SerializerMethodField()

    class Meta:
        model = Chapter
        fields = [
            'id', 'module', 'title', 'description', 'order_index', 'content_type', 'content_data',
            'content_item_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'module', 'order_index', 'created_at', 'updated_at']
        extra_kwargs = {
            'title': {'min_length': 3, 'max_length': 200},
            'description': {'max_length': 1000, 'required': False, 'allow_null': True, 'allow_blank': True},
        }

    def get_content_item_count(self, obj):
        return obj.content_items.count()

    def validate(self, attrs):
        current_type = self.instance.content_type if self.instance is not None else ContentType.TEXT
        content_type = attrs.get('content_type', current_type)
        if 'content_data' in attrs or content_type != current_type:
            data = attrs.get('content_data', self.instance.content_data if self.instance is not None else {})
            attrs['content_data'] = validate_content(content_type, data, allow_empty=True)
        return attrs


class ChapterWithContentSerializer(ChapterSerializer):
    content_items = ContentItemSerializer(many=True, read_only=True)

    class Meta(ChapterSerializer.Meta):
        fields = ChapterSerializer.Meta.fields + ['content_items']


class ModuleWithChaptersSerializer(ModuleSerializer):
    chapters = ChapterSerializer(many=True, read_only=True)

    class Meta(ModuleSerializer.Meta):
        fields = ModuleSerializer.Meta.fields + ['chapters']


class ModuleWithContentSerializer(ModuleSerializer):
    chapters = ChapterWithContentSerializer(many=True, read_only=True)

    class Meta(ModuleSerializer.Meta):
        fields = ModuleSerializer.Meta.fields + ['chapters']
