import math
import re

WORDS_PER_MINUTE = 200


def slugify(text: str) -> str:
    """Lowercase, drop punctuation, join words with single hyphens"""
    slug = (text or "").lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def count_words(text: str) -> int:
    # markup tags are not words
    plain = re.sub(r"<[^>]+>", " ", text or "")
    return len(plain.split())


def reading_time_minutes(word_count: int) -> int:
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))
