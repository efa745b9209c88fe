"""
Content payload schemas - content_data is validated against the variant of its content_type
"""
from rest_framework import serializers

from academie.exceptions import ValidationError
from .models import ContentType


class AttachmentSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=1)
    url = serializers.URLField()
    type = serializers.CharField(min_length=1)
    size = serializers.FloatField()

    def validate_size(self, value):
        if value <= 0:
            raise serializers.ValidationError('La taille doit être positive')
        return value


class PayloadSerializer(serializers.Serializer):
    """content_data may repeat its content_type as `type`; it must then agree"""
    type = serializers.CharField(required=False)

    def validate_type(self, value):
        expected = self.context.get('content_type')
        if expected and value != expected:
            raise serializers.ValidationError(f'Type attendu : {expected}')
        return value


class VideoPayloadSerializer(PayloadSerializer):
    url = serializers.URLField()
    duration = serializers.FloatField(required=False)
    thumbnail = serializers.URLField(required=False)

    def validate_duration(self, value):
        if value <= 0:
            raise serializers.ValidationError('La durée doit être positive')
        return value


class TextPayloadSerializer(PayloadSerializer):
    content = serializers.CharField(min_length=1, trim_whitespace=False)
    attachments = AttachmentSerializer(many=True, required=False)


def _check_correct_answer(attrs):
    if attrs['correctAnswer'] >= len(attrs['options']):
        raise serializers.ValidationError({'correctAnswer': 'Index de réponse hors des options'})
    return attrs


class QuizQuestionSerializer(serializers.Serializer):
    id = serializers.CharField(min_length=1)
    question = serializers.CharField(min_length=1)
    options = serializers.ListField(child=serializers.CharField(min_length=1), min_length=2, max_length=6)
    correctAnswer = serializers.IntegerField(min_value=0)
    explanation = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        return _check_correct_answer(attrs)


class QuizPayloadSerializer(PayloadSerializer):
    questions = QuizQuestionSerializer(many=True, allow_empty=False)
    passingScore = serializers.IntegerField(min_value=0, max_value=100, required=False)
    timeLimit = serializers.IntegerField(min_value=1, required=False)
    attemptsAllowed = serializers.IntegerField(min_value=1, required=False)


class TestQuestionSerializer(serializers.Serializer):
    DIFFICULTIES = ('easy', 'medium', 'hard')

    id = serializers.CharField(min_length=1)
    question = serializers.CharField(min_length=1)
    points = serializers.FloatField()
    difficulty = serializers.ChoiceField(choices=DIFFICULTIES)
    explanation = serializers.CharField(required=False, allow_blank=True)
    expectedAnswer = serializers.CharField(required=False, allow_blank=True)

    def validate_points(self, value):
        if value <= 0:
            raise serializers.ValidationError('Les points doivent être positifs')
        return value


class TestPayloadSerializer(PayloadSerializer):
    questions = TestQuestionSerializer(many=True, allow_empty=False)
    passingScore = serializers.IntegerField(min_value=0, max_value=100)
    timeLimit = serializers.IntegerField(min_value=1)
    attemptsAllowed = serializers.IntegerField(min_value=1)


class ExamQuestionSerializer(TestQuestionSerializer):
    category = serializers.CharField(min_length=1)
    options = serializers.ListField(child=serializers.CharField(min_length=1), min_length=2, max_length=6)
    correctAnswer = serializers.IntegerField(min_value=0)

    def validate(self, attrs):
        return _check_correct_answer(attrs)


class ExamPayloadSerializer(TestPayloadSerializer):
    questions = ExamQuestionSerializer(many=True, allow_empty=False)
    proctored = serializers.BooleanField()


PAYLOAD_SERIALIZERS = {
    ContentType.VIDEO: VideoPayloadSerializer,
    ContentType.TEXT: TextPayloadSerializer,
    ContentType.QUIZ: QuizPayloadSerializer,
    ContentType.TEST: TestPayloadSerializer,
    ContentType.EXAM: ExamPayloadSerializer,
}

# Types whose answers can be checked against correctAnswer
GRADED_TYPES = frozenset({ContentType.QUIZ, ContentType.EXAM})


def validate_content(content_type, data, allow_empty=False):
    """
    Check data against the payload schema of content_type and return it.

    Raises a serializer ValidationError keyed by content_data so the error
    body carries the per-field details. The payload is stored as submitted
    (unknown keys kept), only its shape is enforced.
    """
    if content_type not in PAYLOAD_SERIALIZERS:
        raise ValidationError('Type de contenu invalide')
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise serializers.ValidationError({'content_data': ['Un objet est attendu']})
    if allow_empty and not data:
        return data

    serializer = PAYLOAD_SERIALIZERS[content_type](data=data, context={'content_type': content_type})
    if not serializer.is_valid():
        raise serializers.ValidationError({'content_data': serializer.errors})
    return data
