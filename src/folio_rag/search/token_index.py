"""
Inverted token index for Folio RAG.

Two key spaces over the line store:
- exact keys: the whole normalized line (2 < length < max_exact_key_length)
- word keys: index tokens of each line

Posting lists are capped so that pathological repetition cannot grow memory
without bound. Once built, postings are stored as tuples.
"""

from typing import Dict, List, Optional, Tuple

from folio_rag.core.contracts import Config
from folio_rag.search.tokenizer import IndexTokenizer
from folio_rag.storage.line_store import LineStore


class TokenIndex:
    """Inverted index from normalized line text and word tokens to line indices."""

    def __init__(self, config: Config, tokenizer: Optional[IndexTokenizer] = None):
        """
        Initialize token index.

        Args:
            config: Configuration with posting caps
            tokenizer: Tokenizer (defaults to one built from config)
        """
        self.config = config
        self.tokenizer = tokenizer or IndexTokenizer(max_tokens=config.max_tokens_per_line)
        self._exact: Dict[str, Tuple[int, ...]] = {}
        self._words: Dict[str, Tuple[int, ...]] = {}

    def build(self, store: LineStore):
        """
        Build postings from a line store.

        Args:
            store: Line store to index
        """
        exact: Dict[str, List[int]] = {}
        words: Dict[str, List[int]] = {}
        exact_cap = self.config.exact_key_cap
        word_cap = self.config.word_key_cap

        for line in store:
            normalized = self.tokenizer.normalize(line.text)
            if len(normalized) <= 2:
                continue

            if len(normalized) < self.config.max_exact_key_length:
                postings = exact.setdefault(normalized, [])
                if len(postings) < exact_cap:
                    postings.append(line.index)

            for token in self.tokenizer.index_tokens(normalized):
                postings = words.setdefault(token, [])
                # Lines arrive in index order, so a repeat can only be the tail
                if postings and postings[-1] == line.index:
                    continue
                if len(postings) < word_cap:
                    postings.append(line.index)

        self._exact = {key: tuple(value) for key, value in exact.items()}
        self._words = {key: tuple(value) for key, value in words.items()}

    def lookup_exact(self, normalized: str) -> Tuple[int, ...]:
        """Line indices whose whole normalized text equals the key."""
        return self._exact.get(normalized, ())

    def lookup_token(self, token: str) -> Tuple[int, ...]:
        """Line indices indexed under a word token."""
        return self._words.get(token, ())

    @property
    def exact_key_count(self) -> int:
        return len(self._exact)

    @property
    def word_key_count(self) -> int:
        return len(self._words)
