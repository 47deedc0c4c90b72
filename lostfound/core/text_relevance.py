"""Text Relevance - term-frequency score of a document against a free-text query.

Invariants:
    - Tokens are lowercase Unicode word runs
    - A field value contributes matched/total * (0.5 + 0.5 * matched/total)
    - A fully matched value contributes exactly 1.0; an unmatched value 0.0
    - Document score is the sum over its field values
"""

import re
from collections.abc import Iterable

_TOKEN = re.compile(r"\w+", re.UNICODE)


def tokenize(text: str) -> list[str]:
    return _TOKEN.findall(text.lower())


def query_terms(text_query: str) -> frozenset[str]:
    return frozenset(tokenize(text_query))


def score_value(value: str, terms: frozenset[str]) -> float:
    tokens = tokenize(value)
    if not tokens or not terms:
        return 0.0
    matched = sum(1 for token in tokens if token in terms)
    coverage = matched / len(tokens)
    return coverage * (0.5 + 0.5 * coverage)


def score_document(values: Iterable[str], text_query: str) -> float:
    terms = query_terms(text_query)
    return sum(score_value(value, terms) for value in values)
