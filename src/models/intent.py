"""
Intent classification models and the fixed classifier vocabulary.
"""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

IDENTITY_KEYS: tuple[str, ...] = ("name", "full_name", "nickname", "preferred_name")


class FactIntent(str, Enum):
    """What the user is doing with a personal fact."""

    INTRODUCING = "introducing"
    UPDATING = "updating"
    ASKING = "asking"
    NEUTRAL = "neutral"


class HighLevelIntent(str, Enum):
    """Pipeline selected for a question."""

    PURE_MEMORY_QUERY = "PURE_MEMORY_QUERY"
    PURE_POLICY_QUERY = "PURE_POLICY_QUERY"
    MERGED_MEMORY_POLICY_QUERY = "MERGED_MEMORY_POLICY_QUERY"
    UNKNOWN = "UNKNOWN"


class FactCandidate(BaseModel):
    """Structured fact extracted from a user message."""

    key: str
    value: str = ""
    intent: FactIntent


class ClassificationResult(BaseModel):
    """Classifier output consumed by the chat orchestrator."""

    fact_candidate: FactCandidate | None = None
    intent: HighLevelIntent = HighLevelIntent.UNKNOWN
    has_policy_keyword: bool = False
    is_direct_personal_question: bool = False


class IntentVocabulary(BaseModel):
    """
    Immutable word lists and patterns used by the classifier.

    Patterns are matched case-insensitively.
    """

    model_config = ConfigDict(frozen=True)

    meaningful_tokens: frozenset[str] = Field(
        default=frozenset(
            {
                # question words
                "what",
                "why",
                "how",
                "when",
                "where",
                "who",
                # modal verbs
                "can",
                "should",
                "could",
                "would",
                "is",
                "are",
                "do",
                "does",
                "did",
                "may",
                "might",
                # document domain
                "policy",
                "office",
                "coffee",
                "tea",
                "break",
                "name",
                # memory verbs
                "own",
                "have",
                "like",
                "prefer",
                "work",
            }
        )
    )
    policy_pattern: str = (
        r"policy|company|work|acceptable|allowed|forbidden|break|rule|regulation"
    )
    personal_question_pattern: str = r"^do i (own|have|like|prefer|remember|know)|^am i\b"
    identity_keys: frozenset[str] = Field(default=frozenset(IDENTITY_KEYS))

    def has_policy_keyword(self, text: str) -> bool:
        return re.search(self.policy_pattern, text, re.IGNORECASE) is not None

    def is_direct_personal_question(self, text: str) -> bool:
        return re.search(self.personal_question_pattern, text, re.IGNORECASE) is not None

    def is_identity_key(self, key: str) -> bool:
        return key in self.identity_keys
