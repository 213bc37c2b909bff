"""
Tokenizer for the Folio RAG token index and keyword search.

Index tokens are whitespace-delimited so that markup such as "\\section*{title"
stays intact as one key; keywords for relevance scoring use regex word splits.
"""

import re
from typing import List, Optional, Set

from folio_rag.ingestion.normalizer import normalize_key

# Tokens made only of these characters carry no lookup value
PUNCTUATION_ONLY = re.compile(r"""^[\\{}\[\](),.;:!?'"]+$""")

DEFAULT_STOPWORDS = {
    "the",
    "a",
    "an",
    "and",
    "or",
    "but",
    "in",
    "on",
    "at",
    "to",
    "for",
    "of",
    "with",
    "by",
    "is",
    "are",
    "was",
    "were",
    "be",
    "been",
    "being",
    "have",
    "has",
    "had",
    "do",
    "does",
    "did",
    "will",
    "would",
    "should",
    "could",
    "may",
    "might",
    "must",
    "can",
    "this",
    "that",
    "these",
    "those",
    "from",
    "into",
    "it",
    "its",
    "all",
    "not",
    "you",
    "your",
    "please",
    "make",
}


class IndexTokenizer:
    """
    Whitespace tokenizer for the inverted index.

    Index tokens: length > min_index_length, not punctuation-only, first
    max_tokens per line. Query tokens: length > min_query_length.
    """

    def __init__(
        self,
        max_tokens: int = 10,
        min_index_length: int = 3,
        min_query_length: int = 2,
        stopwords: Optional[Set[str]] = None,
    ):
        """
        Initialize tokenizer.

        Args:
            max_tokens: Tokens kept per indexed line
            min_index_length: Index tokens must be longer than this
            min_query_length: Query tokens must be longer than this
            stopwords: Words ignored by keyword extraction (default set if None)
        """
        self.max_tokens = max_tokens
        self.min_index_length = min_index_length
        self.min_query_length = min_query_length
        self.stopwords = DEFAULT_STOPWORDS if stopwords is None else stopwords

    def normalize(self, text: str) -> str:
        """Normalize a line or fragment (trim, lowercase)."""
        return normalize_key(text)

    def index_tokens(self, normalized: str) -> List[str]:
        """
        Tokens under which a normalized line is indexed.

        Args:
            normalized: Normalized line text

        Returns:
            Up to max_tokens tokens, in line order (may repeat)
        """
        tokens = [
            t
            for t in normalized.split()
            if len(t) > self.min_index_length and not PUNCTUATION_ONLY.match(t)
        ]
        return tokens[: self.max_tokens]

    def query_tokens(self, normalized: str) -> List[str]:
        """Tokens looked up for a normalized query fragment."""
        return [t for t in normalized.split() if len(t) > self.min_query_length]

    def keywords(self, text: str, max_keywords: int = 10) -> List[str]:
        """
        Extract meaningful keywords from free text.

        - Lowercase
        - Regex word splits (\\w+)
        - Length >= 3, stopwords removed, duplicates removed (first wins)

        Args:
            text: Instruction or query text
            max_keywords: Maximum number of keywords returned

        Returns:
            List of keywords in order of first appearance
        """
        seen = set()
        keywords = []
        for word in re.findall(r"\w+", text.lower()):
            if len(word) < 3 or word in self.stopwords or word in seen:
                continue
            seen.add(word)
            keywords.append(word)
            if len(keywords) >= max_keywords:
                break
        return keywords
