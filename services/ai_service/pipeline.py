"""
Query resolution pipeline for the support chatbot.

Stages run in the order given by ``RESOLUTION_STAGES``; the first stage that
terminates decides the reply. Generation is always the last stage and always
terminates. Once a reply comes from the generation stage (answered, hedged
or failed), the escalation detector gets a final say and may replace it with
the escalation message.

A knowledge base hit is answered before the explicit-escalation, policy and
domain checks. ``POLICY_FIRST_STAGES`` is the alternative order where those
checks can veto a knowledge base answer.
"""

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

from config.app_config import AppConfig, ChatbotConfig, GenerationConfig, get_config
from infrastructure.monitoring.logging_service import ErrorTracker, get_error_tracker, get_logger
from services.ai_service.classifiers import DomainRelevanceClassifier, PolicyFilter, get_term_matcher
from services.ai_service.escalation import EscalationDetector
from services.ai_service.fallback_service import FallbackService
from services.ai_service.knowledge_base import KnowledgeBase, KnowledgeBaseMatcher
from services.ai_service.llm_client import GenerationError, GenerationTimeoutError, get_llm_client
from services.ai_service.uncertainty import UncertaintyDetector
from services.chat_service.models import Message, Resolution, Route

logger = get_logger(__name__)

KNOWLEDGE_BASE = "knowledge_base"
EXPLICIT_ESCALATION = "explicit_escalation"
POLICY = "policy"
DOMAIN = "domain"
GENERATION = "generation"

RESOLUTION_STAGES = (KNOWLEDGE_BASE, EXPLICIT_ESCALATION, POLICY, DOMAIN, GENERATION)
POLICY_FIRST_STAGES = (EXPLICIT_ESCALATION, POLICY, DOMAIN, KNOWLEDGE_BASE, GENERATION)

GENERATION_ROUTES = frozenset({Route.GENERATED, Route.UNCERTAIN, Route.GENERATION_FAILED})


@dataclass(frozen=True)
class ResolutionContext:
    """The message being resolved and the messages that came before it"""
    text: str
    history: Tuple[Message, ...]


@dataclass(frozen=True)
class StageResult:
    """Either continue to the next stage or terminate with a resolution"""
    resolution: Optional[Resolution] = None

    @property
    def terminated(self) -> bool:
        return self.resolution is not None


CONTINUE = StageResult()


def terminate(text: str, route: Route) -> StageResult:
    return StageResult(Resolution(text=text, route=route))


class QueryResolutionPipeline:
    """
    Routes one user message to a single bot reply.

    The generator is any object with
    ``generate(user_message, history, generation_config) -> str``;
    it may raise anything, which is reported and answered with the apology
    message. ``resolve`` itself never raises for generation problems.
    """

    def __init__(self,
                 knowledge_matcher: KnowledgeBaseMatcher,
                 policy_filter: PolicyFilter,
                 domain_classifier: DomainRelevanceClassifier,
                 escalation_detector: EscalationDetector,
                 uncertainty_detector: UncertaintyDetector,
                 generator,
                 fallback_service: FallbackService,
                 chatbot_config: Optional[ChatbotConfig] = None,
                 generation_config: Optional[GenerationConfig] = None,
                 stages: Sequence[str] = RESOLUTION_STAGES,
                 executor: Optional[ThreadPoolExecutor] = None,
                 error_tracker: Optional[ErrorTracker] = None):
        self.knowledge_matcher = knowledge_matcher
        self.policy_filter = policy_filter
        self.domain_classifier = domain_classifier
        self.escalation_detector = escalation_detector
        self.uncertainty_detector = uncertainty_detector
        self.generator = generator
        self.fallback_service = fallback_service
        self.chatbot_config = chatbot_config or ChatbotConfig()
        self.generation_config = generation_config or GenerationConfig()
        self.error_tracker = error_tracker or get_error_tracker()

        self._handlers: Dict[str, Callable[[ResolutionContext], StageResult]] = {
            KNOWLEDGE_BASE: self._check_knowledge_base,
            EXPLICIT_ESCALATION: self._check_explicit_escalation,
            POLICY: self._check_policy,
            DOMAIN: self._check_domain,
            GENERATION: self._generate,
        }
        self.stages = self._validate_stages(stages)
        self._executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="generation")

    def _validate_stages(self, stages: Sequence[str]) -> Tuple[str, ...]:
        stages = tuple(stages)
        unknown = [stage for stage in stages if stage not in self._handlers]
        if unknown:
            raise ValueError(f"Unknown pipeline stages: {unknown}")
        if len(set(stages)) != len(stages):
            raise ValueError(f"Duplicate pipeline stages: {stages}")
        if not stages or stages[-1] != GENERATION:
            raise ValueError("The generation stage must be the last pipeline stage")
        return stages

    @classmethod
    def from_config(cls, config: Optional[AppConfig] = None, generator=None,
                    knowledge_base: Optional[KnowledgeBase] = None,
                    stages: Sequence[str] = RESOLUTION_STAGES) -> 'QueryResolutionPipeline':
        """Assemble the pipeline from configuration and the static domain tables"""
        config = config or get_config()
        chatbot = config.chatbot
        matcher = get_term_matcher(chatbot.term_matching)

        return cls(
            knowledge_matcher=KnowledgeBaseMatcher(
                knowledge_base or KnowledgeBase.from_tables(),
                min_score=chatbot.kb_min_score
            ),
            policy_filter=PolicyFilter(matcher=matcher),
            domain_classifier=DomainRelevanceClassifier(
                short_message_length=chatbot.short_message_length,
                matcher=matcher
            ),
            escalation_detector=EscalationDetector(
                repetition_window=chatbot.repetition_window,
                distance_threshold=chatbot.repetition_distance_threshold,
                max_history=chatbot.max_history_before_escalation
            ),
            uncertainty_detector=UncertaintyDetector(),
            generator=generator if generator is not None else get_llm_client(),
            fallback_service=FallbackService(config),
            chatbot_config=chatbot,
            generation_config=config.llm.generation,
            stages=stages
        )

    def resolve(self, text: str, history: Sequence[Message] = ()) -> Resolution:
        """
        Pick the reply for ``text``

        Args:
            text: The user's message
            history: Messages before this one, oldest first

        Returns:
            Resolution with the reply text and the route that produced it
        """
        context = ResolutionContext(text=text, history=tuple(history))

        for stage in self.stages:
            result = self._handlers[stage](context)
            if result.terminated:
                logger.debug(f"Stage '{stage}' terminated with route '{result.resolution.route.value}'")
                resolution = result.resolution
                break
        else:
            # Unreachable while generation is validated as the last stage
            raise RuntimeError("No pipeline stage produced a reply")

        if resolution.route in GENERATION_ROUTES:
            resolution = self._apply_escalation_override(context, resolution)

        return resolution

    def _check_knowledge_base(self, context: ResolutionContext) -> StageResult:
        answer = self.knowledge_matcher.match(context.text)
        if answer is None:
            return CONTINUE
        return terminate(answer, Route.KNOWLEDGE_BASE)

    def _check_explicit_escalation(self, context: ResolutionContext) -> StageResult:
        if self.escalation_detector.is_explicit_request(context.text):
            return terminate(self.fallback_service.escalation(), Route.ESCALATION_REQUESTED)
        return CONTINUE

    def _check_policy(self, context: ResolutionContext) -> StageResult:
        term = self.policy_filter.matched_term(context.text)
        if term is None:
            return CONTINUE
        logger.info(f"Restricted topic detected: '{term}'")
        return terminate(self.fallback_service.refusal(), Route.POLICY_REFUSAL)

    def _check_domain(self, context: ResolutionContext) -> StageResult:
        if self.domain_classifier.is_short(context.text):
            return CONTINUE
        if self.domain_classifier.is_on_topic(context.text):
            return CONTINUE
        return terminate(self.fallback_service.off_topic(), Route.OFF_TOPIC)

    def _generate(self, context: ResolutionContext) -> StageResult:
        history = context.history[-self.chatbot_config.history_window:]
        timeout = self.chatbot_config.generation_timeout_seconds

        future = self._executor.submit(self.generator.generate, context.text, history, self.generation_config)
        try:
            answer = future.result(timeout=timeout)
            if not isinstance(answer, str) or not answer.strip():
                raise GenerationError(f"Generator returned no text: {answer!r}")
        except FutureTimeoutError:
            future.cancel()
            self.error_tracker.track_error(
                GenerationTimeoutError(f"No answer within {timeout:.1f}s"), "generation",
                history_length=len(history)
            )
            return terminate(self.fallback_service.generation_failure(), Route.GENERATION_FAILED)
        except Exception as e:
            self.error_tracker.track_error(e, "generation", history_length=len(history))
            return terminate(self.fallback_service.generation_failure(), Route.GENERATION_FAILED)

        if self.uncertainty_detector.seems_unable(answer):
            topic = self.uncertainty_detector.topic_label(context.text)
            logger.info(f"Generated answer hedges, pointing to support for '{topic}'")
            return terminate(self.fallback_service.support_message(topic), Route.UNCERTAIN)

        return terminate(answer.strip(), Route.GENERATED)

    def _apply_escalation_override(self, context: ResolutionContext, resolution: Resolution) -> Resolution:
        detector = self.escalation_detector
        if detector.is_repetition(context.text, context.history):
            logger.info(f"Repeated question detected, escalating instead of '{resolution.route.value}'")
            return Resolution(self.fallback_service.escalation(), Route.ESCALATION_REPETITION)
        if detector.is_long_conversation(context.history):
            logger.info(f"Conversation exceeded {detector.max_history} messages, escalating")
            return Resolution(self.fallback_service.escalation(), Route.ESCALATION_LONG_CONVERSATION)
        return resolution

    def close(self):
        """Release the generation worker threads without waiting for late answers"""
        self._executor.shutdown(wait=False)


# Global pipeline instance shared by every conversation session
_pipeline: Optional[QueryResolutionPipeline] = None


def get_pipeline() -> QueryResolutionPipeline:
    """Get the global pipeline instance; it keeps no per-conversation state"""
    global _pipeline
    if _pipeline is None:
        _pipeline = QueryResolutionPipeline.from_config()
    return _pipeline
