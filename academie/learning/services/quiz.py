"""
Quiz grading service - scores submitted answers against the content item's questions
"""
import logging

from django.db import transaction

from academie.exceptions import ConflictError, ValidationError
from courses.content import GRADED_TYPES
from courses.models import ContentItem, QuizAttempt
from .progress import percentage

logger = logging.getLogger(__name__)

DEFAULT_PASSING_SCORE = 70


def attempts_allowed(content_data):
    """attemptsAllowed as a positive int, None when unlimited"""
    allowed = content_data.get('attemptsAllowed')
    if allowed is None:
        return None
    if isinstance(allowed, str) and allowed.strip().isdigit():
        allowed = int(allowed)
    if isinstance(allowed, bool) or not isinstance(allowed, int) or allowed < 1:
        raise ValidationError('Nombre de tentatives autorisées invalide')
    return allowed


def _selected(answers, index, question):
    """Answer given for question: keyed by question id, or by position in a list"""
    if isinstance(answers, dict):
        return answers.get(str(question.get('id')), answers.get(question.get('id')))
    if index < len(answers):
        return answers[index]
    return None


def grade(content_data, answers):
    """
    Returns (correct, total, score, passed) for answers against content_data.

    answers is either {question_id: option_index} or a list of option
    indexes in question order. Unanswered questions count as wrong.
    """
    if not isinstance(answers, (dict, list)):
        raise ValidationError('Réponses invalides')

    questions = content_data.get('questions') or []
    correct = 0
    for index, question in enumerate(questions):
        selected = _selected(answers, index, question)
        if isinstance(selected, int) and not isinstance(selected, bool) and selected == question.get('correctAnswer'):
            correct += 1

    score = percentage(correct, len(questions))
    passing_score = content_data.get('passingScore', DEFAULT_PASSING_SCORE)
    return correct, len(questions), score, score >= passing_score


class QuizService:

    @staticmethod
    def attempts(student, item):
        return QuizAttempt.objects.filter(student=student, content_item=item)

    @staticmethod
    def submit(student, item, answers):
        """Grade and store an attempt. Test items are graded by the trainer, not here."""
        if item.content_type not in GRADED_TYPES:
            raise ValidationError('Ce contenu ne peut pas être corrigé automatiquement')

        with transaction.atomic():
            # serialize concurrent submissions for the same item
            ContentItem.objects.select_for_update().get(pk=item.pk)

            allowed = attempts_allowed(item.content_data)
            if allowed is not None:
                used = QuizService.attempts(student, item).count()
                if used >= allowed:
                    logger.warning('Student %s has no attempt left on content %s (%d/%d)',
                                   student.pk, item.pk, used, allowed)
                    raise ConflictError('Nombre maximal de tentatives atteint', code='attempts_exhausted')

            correct, total, score, passed = grade(item.content_data, answers)
            attempt = QuizAttempt.objects.create(
                student=student,
                content_item=item,
                answers=answers,
                score=score,
                passed=passed,
            )

        logger.info('Student %s scored %s on content %s (%d/%d correct, passed=%s)',
                    student.pk, score, item.pk, correct, total, passed)
        return attempt
