"""
Keyword extraction for knowledge-base search.

Turns a free-text user query into the bounded list of search terms used by
the primary search, plus the broader word list used by the fallback search.
"""

import re
from typing import List, Optional

from rag.config import RAG_CONFIG

STOP_WORDS = frozenset({
    'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with',
    'by', 'from', 'up', 'about', 'into', 'through', 'during', 'before', 'after',
    'above', 'below', 'between', 'among', 'is', 'am', 'are', 'was', 'were', 'be',
    'been', 'being', 'have', 'has', 'had', 'do', 'does', 'did', 'will', 'would',
    'could', 'should', 'may', 'might', 'must', 'shall', 'can', 'what', 'when',
    'where', 'why', 'how', 'who', 'which', 'that', 'this', 'these', 'those', 'i',
    'you', 'he', 'she', 'it', 'we', 'they', 'me', 'him', 'her', 'us', 'them',
})

# Anything that is not a letter, digit or whitespace (underscore included)
_NON_WORD = re.compile(r'[^\w\s]|_')


def extract_keywords(query: str, max_keywords: Optional[int] = None) -> List[str]:
    """
    Extract meaningful search keywords from a user query.

    Args:
        query: Raw user query
        max_keywords: Upper bound on returned keywords (defaults to config)

    Returns:
        Lowercase keywords in query order, stop words and short tokens removed
    """
    if max_keywords is None:
        max_keywords = RAG_CONFIG['max_keywords']
    min_length = RAG_CONFIG['min_keyword_length']

    tokens = _NON_WORD.sub(' ', query.lower()).split()
    keywords = [
        token for token in tokens
        if len(token) >= min_length and token not in STOP_WORDS
    ]
    return keywords[:max_keywords]


def fallback_terms(query: str) -> List[str]:
    """Words of the raw query long enough for the broader fallback search.

    No stop-word filtering and no punctuation stripping.
    """
    min_length = RAG_CONFIG['min_fallback_word_length']
    return [word for word in query.lower().split() if len(word) >= min_length]
