"""Short course slugs built from the initials of the title"""
import re
import unicodedata

COMMON_WORDS = frozenset({
    'le', 'la', 'les', 'un', 'une', 'des', 'de', 'du', 'a', 'et', 'pour', 'avec',
    'the', 'an', 'and', 'or', 'of', 'to', 'in', 'on', 'at',
})

FALLBACK_SLUG = 'cours'


def generate_slug(text):
    """
    'Développement Web avec React' -> 'dwr', 'Python' -> 'python'.

    A single meaningful word of six characters or fewer is kept whole.
    """
    normalized = unicodedata.normalize('NFD', (text or '').strip().lower())
    normalized = ''.join(ch for ch in normalized if not unicodedata.combining(ch))
    words = [word for word in re.split(r'[^a-z0-9]+', normalized) if word and word not in COMMON_WORDS]

    if len(words) == 1 and len(words[0]) <= 6:
        return words[0]
    return ''.join(word[0] for word in words) or FALLBACK_SLUG


def unique_slug(base, taken):
    """Append -1, -2, ... to base until it is not in taken"""
    slug = base
    counter = 1
    while slug in taken:
        slug = f'{base}-{counter}'
        counter += 1
    return slug


def slug_for_course(title):
    from .models import Course

    base = generate_slug(title)
    taken = Course.objects.filter(slug__startswith=base).values_list('slug', flat=True)
    return unique_slug(base, set(taken))
