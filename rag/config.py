"""
Retrieval Configuration
Environment-driven settings for keyword extraction, scoring and context assembly
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Retrieval pipeline configuration
RAG_CONFIG = {
    'default_limit': int(os.getenv('RAG_DEFAULT_LIMIT', '5')),
    'search_limit': int(os.getenv('RAG_SEARCH_LIMIT', '10')),
    'max_keywords': int(os.getenv('RAG_MAX_KEYWORDS', '10')),
    'min_keyword_length': int(os.getenv('RAG_MIN_KEYWORD_LENGTH', '3')),
    'min_fallback_word_length': int(os.getenv('RAG_MIN_FALLBACK_WORD_LENGTH', '4')),
    # Over-fetch factor so the scorer has more candidates than it returns
    'candidate_multiplier': int(os.getenv('RAG_CANDIDATE_MULTIPLIER', '2')),
    'max_document_chars': int(os.getenv('RAG_MAX_DOCUMENT_CHARS', '1500')),
}

# Relevance scoring weights
SCORING_CONFIG = {
    'title_exact_match': int(os.getenv('RAG_SCORE_TITLE_EXACT', '100')),
    'content_exact_match': int(os.getenv('RAG_SCORE_CONTENT_EXACT', '50')),
    'title_keyword': int(os.getenv('RAG_SCORE_TITLE_KEYWORD', '10')),
    'content_keyword': int(os.getenv('RAG_SCORE_CONTENT_KEYWORD', '3')),
    'tag_keyword': int(os.getenv('RAG_SCORE_TAG_KEYWORD', '15')),
    'brevity_bonus': int(os.getenv('RAG_SCORE_BREVITY_BONUS', '5')),
    'brevity_threshold': int(os.getenv('RAG_SCORE_BREVITY_THRESHOLD', '1000')),
}

# Logging configuration
LOGGING_CONFIG = {
    'log_level': os.getenv('RAG_LOG_LEVEL', 'INFO'),
    'enable_file_logging': os.getenv('RAG_ENABLE_FILE_LOGGING', 'false').lower() == 'true',
    'enable_console_logging': os.getenv('RAG_ENABLE_CONSOLE_LOGGING', 'true').lower() == 'true',
    'enable_structured_logging': os.getenv('RAG_ENABLE_STRUCTURED_LOGGING', 'true').lower() == 'true',
    'logs_dir': os.getenv('RAG_LOGS_DIR', 'logs'),
}

if os.getenv('ENVIRONMENT') == 'development':
    LOGGING_CONFIG['log_level'] = os.getenv('RAG_LOG_LEVEL', 'DEBUG')
