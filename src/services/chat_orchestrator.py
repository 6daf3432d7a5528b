"""
Chat orchestrator: per-request dispatch between memory, RAG and the LLM.

Order of evaluation (first match answers):
1. empty question
2. garbage input
3. fast paths (name / preference capture, preference recall), no LLM call
4. classified fact capture (identity greeting or acknowledgment)
5. pipeline by intent: pure memory, merged memory + policy, pure policy,
   unknown (an early retrieval hit upgrades it to pure policy)

Every answer except the empty-question one is persisted as an assistant
chat memory.
"""

import asyncio
import re
import time
from collections.abc import Awaitable, Callable
from typing import Any, NamedTuple

from pydantic import BaseModel, Field

from src.core.embeddings.base import Embedder
from src.core.llm.base import LLMProvider
from src.models.chat import ChatMeta, ChatRequest, ChatResponse, ChatTurn, MemoryMeta, RagMeta
from src.models.document import ChunkRow, RetrievalMeta, RetrievalResult
from src.models.intent import FactCandidate, FactIntent, HighLevelIntent
from src.models.memory import MemoryRole, MemoryRoleFilter, MemoryType, UserFact
from src.services.intent_classifier import (
    IntentClassifier,
    match_name_introduction,
    match_preference,
    strip_trailing_punctuation,
)
from src.services.memory_manager import MemoryManager
from src.services.rag_engine import RAGEngine, build_context
from src.utils.id_generator import generate_request_id
from src.utils.logger import get_logger, log_event, request_scope

logger = get_logger(__name__)

EMPTY_QUESTION_ANSWER = "question required"
GARBAGE_ANSWER = (
    "It looks like your message might be incomplete or unclear. "
    "Could you please rephrase your question?"
)
NO_PREFERENCES_ANSWER = "I don't have any stored preferences yet."
NO_MEMORY_ANSWER = "I don't have any stored memory about that yet."
MERGED_NO_CONTEXT_ANSWER = (
    "Based on the available company policy, there is no explicit rule about that behavior. "
    "However, employees are expected to follow standard working hours, break rules, "
    "and maintain professionalism."
)
MERGED_DISCLAIMER_ANSWER = (
    "Based on the company policy, there is no explicit rule about coffee or break habits, "
    "but employees are expected to follow standard working hours, agreed break times, "
    "and maintain professionalism. Frequent breaks should be discussed with your manager."
)
POLICY_NO_CONTEXT_ANSWER = (
    "Based on the policy information I have, there is no explicit rule about that. "
    "You may need to confirm with HR or your manager."
)
POLICY_DISCLAIMER_ANSWER = (
    "The company policy does not explicitly mention that scenario, but employees are "
    "expected to follow standard working hours, break rules, and maintain professionalism."
)
UNCLEAR_ANSWER = (
    "It seems like your question isn't clear. Could you rephrase or provide more detail?"
)
EMPTY_COMPLETION_ANSWER = "I'm not sure I understood that. Could you clarify?"

MERGED_POLICY_PROMPT = """You are answering ONLY the company policy part of a compound question.

Full user question:
"{question}"

Instructions:
- Do not repeat the user's name or any other personal fact.
- Use only the policy context to say whether the described behavior is acceptable.
- If the policy does not mention it explicitly, say so, then reason from working hours,
  attendance, breaks or professionalism.
- Do not answer "I don't know from the document." even when the policy is silent.
"""

POLICY_PROMPT = """You answer questions from the company policy and, where useful, the user's stored preferences.

- Answer from the provided policy context.
- If the policy does not state something explicitly, say so, but reason from the closest
  rules (working hours, breaks, conduct).
- Do not use the phrase "I don't know from the document." while policy context is provided.

Question:
{question}
"""

UNKNOWN_PROMPT = """You are a helpful assistant.

You may use:
- the company policy context, if relevant
- the user's stored memories, if relevant

If the question clearly relates to neither, politely ask the user to clarify instead of
forcing an answer.

Question:
{question}
"""

DISCLAIMER_ANYWHERE = re.compile(r"i don't know from the document", re.IGNORECASE)
DISCLAIMER_PREFIX = re.compile(r"i don't know\b", re.IGNORECASE)
LEADING_I = re.compile(r"^i\s+", re.IGNORECASE)
PREFERENCE_RECALL_QUESTIONS = frozenset({"what do i like", "what do i like?"})

UNKNOWN_FACT_KEY = "unknown"
DEFAULT_MERGED_KEY = "name"
NAME_KEY = "name"
PREFERENCE_KEY = "preference"


def is_disclaimer(response: str) -> bool:
    """True for an empty reply or an "I don't know" style non-answer."""
    cleaned = response.strip()
    return (
        not cleaned
        or DISCLAIMER_ANYWHERE.search(cleaned) is not None
        or DISCLAIMER_PREFIX.match(cleaned) is not None
    )


def is_preference_recall(question: str) -> bool:
    return question.lower() in PREFERENCE_RECALL_QUESTIONS


def join_values(values: list[str]) -> str:
    return " and ".join(values)


def acknowledgment_for(question: str) -> str:
    """Echo a stated fact back, e.g. "I own a bike." -> "...that you own a bike." """
    statement = strip_trailing_punctuation(LEADING_I.sub("", question.strip()))
    return f"Got it! I'll remember that you {statement}."


def greeting_for(name: str) -> str:
    return f"Hello, {name}! How can I assist you today?"


class ChatTurnContext(BaseModel):
    """Request fields threaded through handlers."""

    user_id: str
    question: str
    history: list[ChatTurn] = Field(default_factory=list)
    conversation_id: int | None = None


class PipelineInput(BaseModel):
    """Everything a pipeline needs after classification."""

    turn: ChatTurnContext
    fact: FactCandidate | None = None
    latest_facts: list[UserFact] = Field(default_factory=list)
    query_embedding: list[float] | None = None
    early_retrieval: RetrievalResult | None = None


class FastPath(NamedTuple):
    """Pure predicate over the trimmed question plus the handler it unlocks."""

    name: str
    match: Callable[[str], Any]
    handle: Callable[[ChatTurnContext, Any], Awaitable[ChatResponse]]


class ChatOrchestrator:
    """
    Answers chat requests from user memory, document context and the LLM.
    """

    def __init__(
        self,
        classifier: IntentClassifier,
        memory: MemoryManager,
        rag: RAGEngine,
        embedder: Embedder,
        llm: LLMProvider,
        similar_top_k: int = 5,
    ):
        """
        Initialize ChatOrchestrator.

        Args:
            classifier: Intent & fact classifier
            memory: Memory subsystem
            rag: RAG retrieval engine
            embedder: Embedder for questions
            llm: Completion provider
            similar_top_k: Memories recalled per question
        """
        self.classifier = classifier
        self.memory = memory
        self.rag = rag
        self.embedder = embedder
        self.llm = llm
        self.similar_top_k = similar_top_k

        self.fast_paths: list[FastPath] = [
            FastPath("name_introduction", match_name_introduction, self._handle_name),
            FastPath("preference_introduction", match_preference, self._handle_preference),
            FastPath("preference_recall", is_preference_recall, self._handle_recall),
        ]
        self.pipelines: dict[
            HighLevelIntent, Callable[[PipelineInput], Awaitable[ChatResponse]]
        ] = {
            HighLevelIntent.PURE_MEMORY_QUERY: self._pure_memory,
            HighLevelIntent.MERGED_MEMORY_POLICY_QUERY: self._merged_memory_policy,
            HighLevelIntent.PURE_POLICY_QUERY: self._pure_policy,
            HighLevelIntent.UNKNOWN: self._unknown,
        }

    async def handle_chat(self, request: ChatRequest) -> ChatResponse:
        """
        Answer one chat request.

        Raises:
            EmbeddingError, LLMError, VectorStoreError: Provider or store
                failures propagate unchanged
        """
        with request_scope(generate_request_id()):
            started = time.perf_counter()
            log_event("CHAT_REQUEST", user_id=request.user_id, question=request.question)

            response = await self._dispatch(request)

            log_event(
                "CHAT_RESPONSE",
                user_id=request.user_id,
                answer_length=len(response.answer),
                duration_ms=int((time.perf_counter() - started) * 1000),
            )
            return response

    async def _dispatch(self, request: ChatRequest) -> ChatResponse:
        turn = ChatTurnContext(
            user_id=request.user_id,
            question=request.question,
            history=list(request.history),
            conversation_id=request.conversation_id,
        )
        trimmed = request.question.strip()

        if not trimmed:
            return await self._respond(turn, EMPTY_QUESTION_ANSWER, persist=False)
        if self.classifier.is_garbage(trimmed):
            return await self._respond(turn, GARBAGE_ANSWER)

        response = await self._fast_path(turn, trimmed)
        if response is None:
            response = await self._classified(turn, trimmed)
        return response

    async def _fast_path(self, turn: ChatTurnContext, trimmed: str) -> ChatResponse | None:
        for fast_path in self.fast_paths:
            value = fast_path.match(trimmed)
            if value:
                logger.debug(f"Fast path matched: {fast_path.name}")
                return await fast_path.handle(turn, value)
        return None

    async def _classified(self, turn: ChatTurnContext, trimmed: str) -> ChatResponse:
        classification = await self.classifier.classify(turn.question)
        fact = classification.fact_candidate

        if fact is not None and fact.value and fact.intent in (
            FactIntent.INTRODUCING,
            FactIntent.UPDATING,
        ):
            await self._save_fact(turn, fact.key, fact.value)
            if self.classifier.vocabulary.is_identity_key(fact.key):
                answer = greeting_for(fact.value)
            else:
                answer = acknowledgment_for(turn.question)
            return await self._respond(turn, answer, memory_used=True, facts_count=1)

        latest_facts = await self.memory.latest_facts_by_key(turn.user_id, turn.conversation_id)
        intent = classification.intent
        query_embedding = None
        early_retrieval = None

        if intent == HighLevelIntent.UNKNOWN:
            query_embedding = await self.embedder.embed(trimmed)
            early_retrieval = await self.rag.retrieve(query_embedding)
            if early_retrieval.final_chunks:
                intent = HighLevelIntent.PURE_POLICY_QUERY

        logger.debug(f"Dispatching pipeline: {intent.value}")
        return await self.pipelines[intent](
            PipelineInput(
                turn=turn,
                fact=fact,
                latest_facts=latest_facts,
                query_embedding=query_embedding,
                early_retrieval=early_retrieval,
            )
        )

    # Fast paths

    async def _handle_name(self, turn: ChatTurnContext, name: str) -> ChatResponse:
        await self._save_fact(turn, NAME_KEY, name)
        return await self._respond(turn, greeting_for(name), memory_used=True, facts_count=1)

    async def _handle_preference(self, turn: ChatTurnContext, preference: str) -> ChatResponse:
        await self._save_fact(turn, PREFERENCE_KEY, preference)
        answer = f"Got it! I'll remember that you like {preference}."
        return await self._respond(turn, answer, memory_used=True, facts_count=1)

    async def _handle_recall(self, turn: ChatTurnContext, _: Any) -> ChatResponse:
        latest_facts = await self.memory.latest_facts_by_key(turn.user_id, turn.conversation_id)
        preferences = [
            f.content
            for f in latest_facts
            if not self.classifier.vocabulary.is_identity_key(f.memory_key)
        ]

        if preferences:
            answer = f"Your preferences include {join_values(preferences)}."
            return await self._respond(
                turn, answer, memory_used=True, facts_count=len(latest_facts)
            )

        return await self._respond(turn, NO_PREFERENCES_ANSWER)

    # Pipelines

    async def _pure_memory(self, inp: PipelineInput) -> ChatResponse:
        key = self._effective_key(inp.fact)
        values = [f.content for f in inp.latest_facts if key and f.memory_key == key]

        if not values:
            return await self._respond(
                inp.turn, NO_MEMORY_ANSWER, facts_count=len(inp.latest_facts)
            )

        if self.classifier.vocabulary.is_identity_key(key):
            answer = f"Your {key} is {join_values(values)}."
        else:
            answer = f"Your preferences include {join_values(values)}."

        return await self._respond(
            inp.turn, answer, memory_used=True, facts_count=len(inp.latest_facts)
        )

    async def _merged_memory_policy(self, inp: PipelineInput) -> ChatResponse:
        key = self._effective_key(inp.fact) or DEFAULT_MERGED_KEY
        values = [f.content for f in inp.latest_facts if f.memory_key == key]

        if not values:
            memory_sentence = f"I don't have your {key} stored yet."
        elif self.classifier.vocabulary.is_identity_key(key):
            memory_sentence = f"Your {key} is {join_values(values)}."
        else:
            memory_sentence = f"Your {key} includes {join_values(values)}."

        retrieval, memory_text = await self._gather_context(inp)

        if not retrieval.final_chunks:
            policy_answer = MERGED_NO_CONTEXT_ANSWER
        else:
            raw = await self.llm.complete(
                MERGED_POLICY_PROMPT.format(question=inp.turn.question),
                build_context(retrieval.final_chunks),
                inp.turn.history,
                memory_text,
            )
            policy_answer = MERGED_DISCLAIMER_ANSWER if is_disclaimer(raw) else raw.strip()

        return await self._respond(
            inp.turn,
            f"{memory_sentence} {policy_answer}".strip(),
            context_used=retrieval.final_chunks,
            memory_used=bool(values) or bool(memory_text),
            rag_meta=retrieval.meta,
            facts_count=len(inp.latest_facts),
        )

    async def _pure_policy(self, inp: PipelineInput) -> ChatResponse:
        retrieval, memory_text = await self._gather_context(inp)

        if not retrieval.final_chunks:
            answer = POLICY_NO_CONTEXT_ANSWER
        else:
            raw = await self.llm.complete(
                POLICY_PROMPT.format(question=inp.turn.question),
                build_context(retrieval.final_chunks),
                inp.turn.history,
                memory_text,
            )
            answer = POLICY_DISCLAIMER_ANSWER if is_disclaimer(raw) else raw.strip()

        return await self._respond(
            inp.turn,
            answer,
            context_used=retrieval.final_chunks,
            memory_used=bool(memory_text),
            rag_meta=retrieval.meta,
            facts_count=len(inp.latest_facts),
        )

    async def _unknown(self, inp: PipelineInput) -> ChatResponse:
        retrieval, memory_text = await self._gather_context(inp)
        has_rag = bool(retrieval.final_chunks)
        has_memory = bool(memory_text)

        if not has_rag and not has_memory:
            return await self._respond(
                inp.turn, UNCLEAR_ANSWER, facts_count=len(inp.latest_facts)
            )

        raw = await self.llm.complete(
            UNKNOWN_PROMPT.format(question=inp.turn.question),
            build_context(retrieval.final_chunks) if has_rag else "",
            inp.turn.history,
            memory_text,
        )

        return await self._respond(
            inp.turn,
            raw.strip() or EMPTY_COMPLETION_ANSWER,
            context_used=retrieval.final_chunks,
            memory_used=has_memory,
            rag_meta=retrieval.meta if has_rag else None,
            facts_count=len(inp.latest_facts),
        )

    # Helpers

    @staticmethod
    def _effective_key(fact: FactCandidate | None) -> str | None:
        if fact is None or not fact.key or fact.key == UNKNOWN_FACT_KEY:
            return None
        return fact.key

    async def _gather_context(self, inp: PipelineInput) -> tuple[RetrievalResult, str]:
        """
        RAG retrieval plus memory text for a completion.

        Reuses the embedding and retrieval already done for an UNKNOWN question;
        otherwise chunk and memory lookups run concurrently.
        """
        turn = inp.turn
        embedding = inp.query_embedding
        if embedding is None:
            embedding = await self.embedder.embed(turn.question)

        recall = self.memory.retrieve(
            turn.user_id,
            embedding,
            self.similar_top_k,
            MemoryRoleFilter.USER,
            turn.conversation_id,
        )
        if inp.early_retrieval is not None:
            retrieval = inp.early_retrieval
            other_memories = await recall
        else:
            retrieval, other_memories = await asyncio.gather(
                self.rag.retrieve(embedding), recall
            )

        parts = [f.content for f in inp.latest_facts] + list(other_memories)
        memory_text = "\n".join(p for p in parts if p)
        return retrieval, memory_text

    async def _save_fact(self, turn: ChatTurnContext, key: str, value: str) -> None:
        await self.memory.save(
            turn.user_id,
            MemoryRole.USER,
            value,
            memory_key=key,
            memory_type=MemoryType.FACT,
            conversation_id=turn.conversation_id,
        )

    async def _respond(
        self,
        turn: ChatTurnContext,
        answer: str,
        *,
        context_used: list[ChunkRow] | None = None,
        memory_used: bool = False,
        rag_meta: RetrievalMeta | None = None,
        facts_count: int = 0,
        persist: bool = True,
    ) -> ChatResponse:
        """Persist the answer (unless told not to) and build the response."""
        if persist:
            await self.memory.save(
                turn.user_id,
                MemoryRole.ASSISTANT,
                answer,
                memory_type=MemoryType.CHAT,
                conversation_id=turn.conversation_id,
            )

        rag = RagMeta()
        if rag_meta is not None:
            rag = RagMeta(
                top_k=rag_meta.top_k,
                distance_threshold=rag_meta.distance_threshold,
                chunks_returned=rag_meta.chunks_returned,
            )

        return ChatResponse(
            answer=answer,
            history=[
                *turn.history,
                ChatTurn(role="user", content=turn.question),
                ChatTurn(role="assistant", content=answer),
            ],
            context_used=context_used or [],
            memory_used=memory_used,
            meta=ChatMeta(
                rag=rag,
                memory=MemoryMeta(similar_top_k=self.similar_top_k, facts_count=facts_count),
            ),
        )
