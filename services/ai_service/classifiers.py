"""
Keyword classifiers for the query resolution pipeline.

Both classifiers are plain keyword lookups over lowercased text. How a term
is found inside the text is delegated to a TermMatcher so the matching rule
can be switched from configuration:

- ``substring``: raw containment. Catches stems ("diagnos" matches
  "diagnosis") but also fires inside unrelated words.
- ``word_boundary``: the term must start and end on a word boundary. Fewer
  false positives, but stem-style terms stop matching inflected words.
"""

import re
from functools import lru_cache
from typing import Iterable, Optional, Sequence

from services.ai_service import domain_content


def normalize_text(text: str) -> str:
    """Lowercase and trim, folding typographic apostrophes to ASCII"""
    return text.replace("’", "'").replace("‘", "'").lower().strip()


class TermMatcher:
    """Decides whether any of a set of lowercase terms occurs in a text"""

    name = "base"

    def contains(self, text: str, term: str) -> bool:
        raise NotImplementedError

    def contains_any(self, text: str, terms: Iterable[str]) -> bool:
        return any(self.contains(text, term) for term in terms)

    def first_match(self, text: str, terms: Iterable[str]) -> Optional[str]:
        for term in terms:
            if self.contains(text, term):
                return term
        return None


class SubstringMatcher(TermMatcher):
    name = "substring"

    def contains(self, text: str, term: str) -> bool:
        return term in text


@lru_cache(maxsize=1024)
def _word_pattern(term: str) -> "re.Pattern[str]":
    return re.compile(r"\b" + re.escape(term.strip()) + r"\b")


class WordBoundaryMatcher(TermMatcher):
    name = "word_boundary"

    def contains(self, text: str, term: str) -> bool:
        return _word_pattern(term).search(text) is not None


_MATCHERS = {
    SubstringMatcher.name: SubstringMatcher,
    WordBoundaryMatcher.name: WordBoundaryMatcher,
}


def get_term_matcher(name: str = "substring") -> TermMatcher:
    """Build the matcher registered under ``name``"""
    try:
        return _MATCHERS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown term matching strategy '{name}', expected one of {sorted(_MATCHERS)}"
        ) from None


class PolicyFilter:
    """Flags messages touching topics the assistant must never answer"""

    def __init__(self,
                 restricted_terms: Sequence[str] = domain_content.RESTRICTED_TOPICS,
                 matcher: Optional[TermMatcher] = None):
        self.restricted_terms = tuple(term.lower() for term in restricted_terms)
        self.matcher = matcher or SubstringMatcher()

    def matched_term(self, text: str) -> Optional[str]:
        return self.matcher.first_match(normalize_text(text), self.restricted_terms)

    def is_restricted(self, text: str) -> bool:
        return self.matched_term(text) is not None


class DomainRelevanceClassifier:
    """Checks that a message plausibly concerns the storefront"""

    def __init__(self,
                 domain_keywords: Sequence[str] = domain_content.DOMAIN_KEYWORDS,
                 short_message_length: int = 10,
                 matcher: Optional[TermMatcher] = None):
        self.domain_keywords = tuple(keyword.lower() for keyword in domain_keywords)
        self.short_message_length = short_message_length
        self.matcher = matcher or SubstringMatcher()

    def is_short(self, text: str) -> bool:
        return len(text) <= self.short_message_length

    def is_on_topic(self, text: str) -> bool:
        # Greetings like "hi" carry no keywords but must not be turned away
        if self.is_short(text):
            return True
        return self.matcher.contains_any(normalize_text(text), self.domain_keywords)
