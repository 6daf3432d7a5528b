"""
Abstract base class for LLM providers.
Produces grounded answers from user memory and document context.
"""

from abc import ABC, abstractmethod

from src.models.chat import ChatTurn

NO_ANSWER = "I don't know from the document."

SYSTEM_INSTRUCTIONS = f"""You are a personalized retrieval assistant.

CONTEXT INPUTS:
- MEMORY: facts about this user (name, preferences, earlier answers).
- DOCUMENT CONTEXT: chunks taken from the ingested documents.

RULES:
1. Personal questions (name, identity, preferences, "who am I"):
   - Answer from MEMORY only.
   - If MEMORY holds a name, reply "Hello, {{name}}! How can I assist you today?"
   - Never say you don't know when the answer is in MEMORY.
2. Document questions (policy, rules, working hours, procedures):
   - Answer from DOCUMENT CONTEXT only, quoting or paraphrasing it.
   - Do not use outside knowledge.
3. When neither MEMORY nor DOCUMENT CONTEXT holds the answer, reply exactly:
   "{NO_ANSWER}"
4. Never invent facts about the user. Keep answers short.
"""


class LLMProvider(ABC):
    """
    Abstract base for completion providers.

    Every call sends the fixed system instructions, then the user's memory,
    then the document context, then prior turns, then the question.
    """

    def build_messages(
        self,
        question: str,
        context: str = "",
        history: list[ChatTurn] | None = None,
        memory_text: str = "",
    ) -> list[dict[str, str]]:
        """
        Assemble the chat message list for one completion.

        Args:
            question: Final user message (may be a full instruction prompt)
            context: Joined document chunks, empty when none
            history: Prior conversation turns, oldest first
            memory_text: Newline-joined user memories, empty when none

        Returns:
            Messages in provider-neutral ``{"role", "content"}`` form
        """
        messages = [
            {"role": "system", "content": SYSTEM_INSTRUCTIONS},
            {"role": "system", "content": f"MEMORY:\n{memory_text or 'No memory.'}"},
            {"role": "system", "content": f"DOCUMENT CONTEXT:\n{context or 'No documents.'}"},
        ]
        for turn in history or []:
            messages.append({"role": turn.role, "content": turn.content})
        messages.append({"role": "user", "content": question})
        return messages

    @abstractmethod
    async def complete(
        self,
        question: str,
        context: str = "",
        history: list[ChatTurn] | None = None,
        memory_text: str = "",
    ) -> str:
        """
        Generate an answer grounded in memory and document context.

        Args:
            question: User question or instruction prompt
            context: Document context, may be empty
            history: Prior turns
            memory_text: User memory text, may be empty

        Returns:
            Raw completion text (possibly empty)

        Raises:
            LLMError: If the provider call fails after retries
        """
        pass

    @abstractmethod
    async def close(self):
        """Close any open connections."""
