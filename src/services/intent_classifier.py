"""
Intent & fact classification for chat questions.

Decides whether a question introduces or asks about a personal fact, and
which answer pipeline it belongs to. Everything except ``extract_fact`` is
pure and regex-driven.
"""

import json
import re

from src.core.llm.base import LLMProvider
from src.models.intent import (
    ClassificationResult,
    FactCandidate,
    FactIntent,
    HighLevelIntent,
    IntentVocabulary,
)
from src.utils.logger import get_logger, log_event

logger = get_logger(__name__)

DEFAULT_VOCABULARY = IntentVocabulary()

NAME_INTRODUCTION = re.compile(r"\bmy name is\s+(.+)", re.IGNORECASE)
PREFERENCE_INTRODUCTION = re.compile(r"^i\s+(now\s+)?like\s+(.+)", re.IGNORECASE)
TRAILING_PUNCTUATION = re.compile(r"[.!?,]+$")

FACT_EXTRACTION_PROMPT = """You extract personal facts and classify what the user is doing with them.

Reply with STRICT JSON only, in this shape:
{{
  "key": "string",
  "value": "string",
  "intent": "introducing" | "updating" | "asking" | "neutral"
}}

Intents:
- introducing: the user states a new fact about themselves
- updating: the user changes a fact they stated before
- asking: the user asks about a fact they stored
- neutral: no personal fact is involved

Examples:
"My name is Aditia" -> {{ "key": "name", "value": "Aditia", "intent": "introducing" }}
"My name is now Budi" -> {{ "key": "name", "value": "Budi", "intent": "updating" }}
"Who am I?" -> {{ "key": "name", "value": "", "intent": "asking" }}
"Hello there" -> null

User message: "{question}"
"""


def strip_trailing_punctuation(value: str) -> str:
    return TRAILING_PUNCTUATION.sub("", value.strip())


def _tokens(text: str) -> list[str]:
    tokens = (re.sub(r"[^a-z]", "", t) for t in text.lower().split())
    return [t for t in tokens if t]


def is_garbage_question(text: str, vocabulary: IntentVocabulary = DEFAULT_VOCABULARY) -> bool:
    """
    Heuristic noise filter, no network.

    Garbage when, after trimming, the text is empty, shorter than four
    characters, or has no meaningful token while containing a digit or two
    or more ``?``/``!`` and fewer than 20 ASCII letters.

    Examples:
        >>> is_garbage_question("??")
        True
        >>> is_garbage_question("123 ?? !!")
        True
        >>> is_garbage_question("What is the coffee policy?")
        False
    """
    cleaned = text.strip()
    if len(cleaned) < 4:
        return True

    letters = len(re.findall(r"[a-zA-Z]", cleaned))
    has_digit = re.search(r"\d", cleaned) is not None
    many_punctuation = len(re.findall(r"[?!]", cleaned)) >= 2
    meaningful = any(t in vocabulary.meaningful_tokens for t in _tokens(cleaned))

    return not meaningful and (has_digit or many_punctuation) and letters < 20


def match_name_introduction(text: str) -> str | None:
    """Return the name from "... my name is X", or None."""
    match = NAME_INTRODUCTION.search(text.strip())
    if not match:
        return None
    return strip_trailing_punctuation(match.group(1)) or None


def match_preference(text: str) -> str | None:
    """Return the liked thing from "I like X" / "I now like X", or None."""
    match = PREFERENCE_INTRODUCTION.search(text.strip())
    if not match:
        return None
    return strip_trailing_punctuation(match.group(2)) or None


def parse_fact_response(response: str) -> FactCandidate | None:
    """
    Parse the extraction reply.

    JSON is read from the first ``{``. Anything unparseable, lacking a key or
    intent, or naming an unknown intent yields None.
    """
    brace = response.find("{")
    text = response[brace:] if brace >= 0 else response.strip()

    try:
        data, _ = json.JSONDecoder().raw_decode(text)
    except (json.JSONDecodeError, ValueError):
        return None

    if not isinstance(data, dict) or not data.get("key") or not isinstance(data.get("intent"), str):
        return None

    try:
        intent = FactIntent(data["intent"])
    except ValueError:
        return None

    return FactCandidate(
        key=str(data["key"]).lower(),
        value=str(data.get("value") or ""),
        intent=intent,
    )


def detect_high_level_intent(
    question: str,
    fact: FactCandidate | None,
    has_policy_keyword: bool,
    is_direct_personal_question: bool,
) -> HighLevelIntent:
    """
    Pick the answer pipeline.

    Order: asking fact (merged if policy words, else memory), then a direct
    personal question without a fact, then policy words, else UNKNOWN.
    """
    if fact is not None and fact.intent == FactIntent.ASKING:
        if has_policy_keyword:
            return HighLevelIntent.MERGED_MEMORY_POLICY_QUERY
        return HighLevelIntent.PURE_MEMORY_QUERY

    if fact is None and is_direct_personal_question:
        return HighLevelIntent.PURE_MEMORY_QUERY

    if has_policy_keyword:
        return HighLevelIntent.PURE_POLICY_QUERY

    return HighLevelIntent.UNKNOWN


class IntentClassifier:
    """
    Classifies questions with one LLM extraction call plus regex signals.
    """

    def __init__(self, llm: LLMProvider, vocabulary: IntentVocabulary | None = None):
        """
        Initialize classifier.

        Args:
            llm: Completion provider used for fact extraction
            vocabulary: Word lists and patterns; defaults to the built-in set
        """
        self.llm = llm
        self.vocabulary = vocabulary or DEFAULT_VOCABULARY

    def is_garbage(self, text: str) -> bool:
        return is_garbage_question(text, self.vocabulary)

    async def extract_fact(self, question: str) -> FactCandidate | None:
        """
        Ask the LLM for a structured fact.

        Returns:
            FactCandidate, or None when the reply is not a usable fact

        Raises:
            LLMError: If the completion call itself fails
        """
        response = await self.llm.complete(FACT_EXTRACTION_PROMPT.format(question=question))
        fact = parse_fact_response(response)

        if fact is None:
            logger.debug("No fact extracted from question")
        return fact

    async def classify(self, question: str) -> ClassificationResult:
        """
        Classify a non-empty, non-garbage question.

        A direct personal question with no extracted fact gets a synthetic
        ``unknown`` asking fact, so memory pipelines still see an asking intent.
        """
        trimmed = question.strip()
        has_policy_keyword = self.vocabulary.has_policy_keyword(question)
        is_direct_personal_question = self.vocabulary.is_direct_personal_question(trimmed)

        fact = await self.extract_fact(question)
        if fact is None and is_direct_personal_question:
            fact = FactCandidate(key="unknown", value="", intent=FactIntent.ASKING)

        intent = detect_high_level_intent(
            trimmed, fact, has_policy_keyword, is_direct_personal_question
        )

        log_event(
            "INTENT_RESOLVED",
            level="DEBUG",
            intent=intent.value,
            fact_key=fact.key if fact else None,
            fact_intent=fact.intent.value if fact else None,
            has_policy_keyword=has_policy_keyword,
            is_direct_personal_question=is_direct_personal_question,
        )

        return ClassificationResult(
            fact_candidate=fact,
            intent=intent,
            has_policy_keyword=has_policy_keyword,
            is_direct_personal_question=is_direct_personal_question,
        )
