"""
Curated knowledge base and the matcher that answers from it directly.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from services.ai_service import domain_content
from services.ai_service.classifiers import normalize_text
from infrastructure.monitoring.logging_service import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class KnowledgeEntry:
    id: str
    question: str
    answer: str


@dataclass(frozen=True)
class KnowledgeCategory:
    id: str
    name: str
    entries: Tuple[KnowledgeEntry, ...]


@dataclass(frozen=True)
class KnowledgeMatch:
    """Best entry found for a query, with the category it was picked from"""
    category: KnowledgeCategory
    entry: KnowledgeEntry
    score: int


class KnowledgeBase:
    """
    Read-only set of categories plus the keyword index used to pre-select one.

    The index is kept in insertion order; that order decides which category
    wins when several match. Every indexed id must name a known category.
    """

    def __init__(self,
                 categories: Iterable[KnowledgeCategory],
                 keyword_index: Sequence[Tuple[str, Iterable[str]]]):
        self._categories: Dict[str, KnowledgeCategory] = {}
        for category in categories:
            if category.id in self._categories:
                raise ValueError(f"Duplicate knowledge category id '{category.id}'")
            self._categories[category.id] = category

        index: List[Tuple[str, Tuple[str, ...]]] = []
        for category_id, keywords in keyword_index:
            if category_id not in self._categories:
                raise ValueError(f"Keyword index refers to unknown category '{category_id}'")
            index.append((category_id, tuple(keyword.lower() for keyword in keywords)))
        self._keyword_index = tuple(index)

    @property
    def categories(self) -> Tuple[KnowledgeCategory, ...]:
        return tuple(self._categories.values())

    @property
    def keyword_index(self) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
        return self._keyword_index

    def get_category(self, category_id: str) -> KnowledgeCategory:
        return self._categories[category_id]

    @classmethod
    def from_tables(cls, faq_categories=domain_content.FAQ_CATEGORIES,
                    category_keywords=domain_content.CATEGORY_KEYWORDS) -> 'KnowledgeBase':
        """Build from the nested tuple layout used in domain_content"""
        categories = [
            KnowledgeCategory(
                id=category_id,
                name=name,
                entries=tuple(KnowledgeEntry(id=entry_id, question=question, answer=answer)
                              for entry_id, question, answer in entries)
            )
            for category_id, name, entries in faq_categories
        ]
        return cls(categories, category_keywords)


def _overlaps(token: str, other: str) -> bool:
    return token in other or other in token


def _count_overlapping(query_tokens: Sequence[str], target_tokens: Sequence[str]) -> int:
    return sum(1 for token in query_tokens
               if any(_overlaps(token, target) for target in target_tokens))


class KnowledgeBaseMatcher:
    """
    Two-phase matcher: the first category whose keywords appear in the query
    is selected, then the best entry inside that category only is scored.

    Score of an entry = 2 x (query tokens overlapping a question token)
                        + (query tokens overlapping an answer token).
    Ties keep the earliest entry. Answers below ``min_score`` are discarded.
    """

    def __init__(self, knowledge_base: KnowledgeBase, min_score: int = 2):
        self.knowledge_base = knowledge_base
        self.min_score = min_score

    def select_category(self, normalized_text: str) -> Optional[KnowledgeCategory]:
        for category_id, keywords in self.knowledge_base.keyword_index:
            if any(keyword in normalized_text for keyword in keywords):
                return self.knowledge_base.get_category(category_id)
        return None

    def score_entry(self, query_tokens: Sequence[str], entry: KnowledgeEntry) -> int:
        question_tokens = entry.question.lower().split()
        answer_tokens = entry.answer.lower().split()
        return (2 * _count_overlapping(query_tokens, question_tokens)
                + _count_overlapping(query_tokens, answer_tokens))

    def find_best_entry(self, text: str) -> Optional[KnowledgeMatch]:
        """Best-scoring entry of the pre-selected category, ignoring the cutoff"""
        normalized = normalize_text(text)
        if not normalized:
            return None

        category = self.select_category(normalized)
        if category is None:
            return None

        query_tokens = normalized.split()
        best: Optional[KnowledgeMatch] = None
        for entry in category.entries:
            score = self.score_entry(query_tokens, entry)
            if best is None or score > best.score:
                best = KnowledgeMatch(category=category, entry=entry, score=score)

        return best

    def match(self, text: str) -> Optional[str]:
        """Answer from the knowledge base, or None when nothing is confident enough"""
        best = self.find_best_entry(text)
        if best is None:
            return None

        if best.score < self.min_score:
            logger.debug(
                f"Knowledge base match '{best.entry.id}' below cutoff "
                f"({best.score} < {self.min_score})"
            )
            return None

        logger.debug(f"Knowledge base match '{best.entry.id}' in '{best.category.id}' (score {best.score})")
        return best.entry.answer
