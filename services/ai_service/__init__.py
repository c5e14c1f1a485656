"""
AI service - query resolution pipeline, its classifiers and the generation client.
"""

from .fallback_service import FallbackService
from .knowledge_base import KnowledgeBase, KnowledgeBaseMatcher, KnowledgeCategory, KnowledgeEntry
from .classifiers import PolicyFilter, DomainRelevanceClassifier, get_term_matcher
from .escalation import EscalationDetector
from .uncertainty import UncertaintyDetector
from .llm_client import LLMClient, GenerationError, get_llm_client
from .pipeline import QueryResolutionPipeline, RESOLUTION_STAGES, POLICY_FIRST_STAGES

__all__ = [
    'FallbackService',
    'KnowledgeBase',
    'KnowledgeBaseMatcher',
    'KnowledgeCategory',
    'KnowledgeEntry',
    'PolicyFilter',
    'DomainRelevanceClassifier',
    'get_term_matcher',
    'EscalationDetector',
    'UncertaintyDetector',
    'LLMClient',
    'GenerationError',
    'get_llm_client',
    'QueryResolutionPipeline',
    'RESOLUTION_STAGES',
    'POLICY_FIRST_STAGES'
]
