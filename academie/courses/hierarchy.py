"""
Hierarchy validation - read-only checks run before any content mutation

Identifiers must be positive integers, referenced parents must exist, and a
reorder request must name exactly the current siblings of its parent.
"""
from academie.exceptions import NotFoundError, ValidationError
from .models import Chapter, ContentItem, Course, Domain, Module

NOT_FOUND_MESSAGES = {
    Course: 'Cours introuvable',
    Module: 'Module introuvable',
    Chapter: 'Chapitre introuvable',
    ContentItem: 'Contenu introuvable',
    Domain: 'Domaine introuvable',
}

INVALID_ID_MESSAGES = {
    Course: 'ID de cours invalide',
    Module: 'ID de module invalide',
    Chapter: 'ID de chapitre invalide',
    ContentItem: 'ID de contenu invalide',
    Domain: 'ID de domaine invalide',
}


def parse_identifier(value, model=None, strict=False):
    """
    Return value as a positive int or raise ValidationError(invalid_identifier).

    Digit strings are accepted (path and query parameters) unless strict is set,
    which is used for JSON bodies where an id must already be a number.
    """
    message = INVALID_ID_MESSAGES.get(model, 'Identifiant invalide')
    if isinstance(value, bool):
        raise ValidationError(message, code='invalid_identifier')
    if isinstance(value, int):
        identifier = value
    elif not strict and isinstance(value, str) and value.strip().isdigit():
        identifier = int(value.strip())
    else:
        raise ValidationError(message, code='invalid_identifier')
    if identifier <= 0:
        raise ValidationError(message, code='invalid_identifier')
    return identifier


def parse_identifier_list(values, model=None):
    if values is None or (isinstance(values, (list, tuple)) and len(values) == 0):
        raise ValidationError('Au moins un identifiant requis', code='at_least_one_identifier_required')
    if not isinstance(values, (list, tuple)):
        raise ValidationError('Une liste d\'identifiants est attendue', code='validation_failed')
    return [parse_identifier(value, model, strict=True) for value in values]


def get_parent(model, pk, queryset=None):
    """Fetch the parent row of a mutation; missing parent -> parent_not_found"""
    pk = parse_identifier(pk, model)
    queryset = queryset if queryset is not None else model.objects.all()
    try:
        return queryset.get(pk=pk)
    except model.DoesNotExist:
        raise NotFoundError(NOT_FOUND_MESSAGES.get(model, 'Parent introuvable'), code='parent_not_found')


def get_target(model, pk, queryset=None):
    """Fetch the row an operation acts on; missing row -> not_found"""
    pk = parse_identifier(pk, model)
    queryset = queryset if queryset is not None else model.objects.all()
    try:
        return queryset.get(pk=pk)
    except model.DoesNotExist:
        raise NotFoundError(NOT_FOUND_MESSAGES.get(model, 'Ressource introuvable'), code='not_found')


def check_sibling_set(existing_ids, submitted_ids):
    """
    The submitted ordering must contain every existing sibling exactly once
    and nothing else.
    """
    if not submitted_ids:
        raise ValidationError('Au moins un identifiant requis', code='at_least_one_identifier_required')
    submitted = set(submitted_ids)
    if len(submitted) != len(submitted_ids) or submitted != set(existing_ids):
        raise ValidationError(
            'La liste doit contenir exactement les éléments existants, sans doublon',
            code='incomplete_or_mismatched_set'
        )


def check_belongs_to(child, parent_field, parent_id, model):
    """A child addressed under a parent must really be one of its children"""
    if getattr(child, f'{parent_field}_id') != parent_id:
        raise NotFoundError(NOT_FOUND_MESSAGES.get(model, 'Ressource introuvable'), code='not_found')
