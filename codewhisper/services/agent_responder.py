"""Agentic responder - bounded tool-calling loop over a chat model.

States: START -> PROMPTING -> (TOOL_CALL -> PROMPTING)* -> FINAL | LIMIT_REACHED.
A model or tool exception, including a per-call timeout, ends the loop in
ABORTED with a fixed apology. Nothing is retried within one user turn.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from loguru import logger

from codewhisper.core.config.agent_config import AgentConfig
from codewhisper.core.models import ConversationMessage, FocusContext, RetrievalContext
from codewhisper.interfaces.llm_provider import LLMProvider

from .agent_tools import Tool, build_retrieval_tools
from .retrieval_service import RetrievalService, format_context_for_prompt
from .tool_protocol import ToolCall, format_tool_result, parse_tool_call, render_tool_instructions

APOLOGY_MESSAGE = "Sorry, I encountered an error processing your request."
STEP_LIMIT_MESSAGE = (
    "I couldn't finish looking that up within my step limit. "
    "Could you ask about a more specific file or function?"
)
ECHO_PREFIX = "echo "
PROMPT_CHUNK_MAX_CHARS = 1500

SYSTEM_PREAMBLE = (
    "You are CodeWhisper, a voice pair-programming assistant with access to the "
    "user's project. Your replies are spoken aloud, so keep them short and "
    "conversational. Refer to files and symbols by name instead of reading code "
    "verbatim."
)


class ResponderState(str, Enum):
    START = "start"
    PROMPTING = "prompting"
    TOOL_CALL = "tool_call"
    FINAL = "final"
    LIMIT_REACHED = "limit_reached"
    ABORTED = "aborted"


@dataclass
class AgentResult:
    answer: str
    state: ResponderState
    turns: int = 0
    tool_calls: list[ToolCall] = field(default_factory=list)


class ConversationLog(Protocol):
    def add_conversation_message(
        self, session_id: str, role: str, content: str, metadata: dict | None = None
    ) -> ConversationMessage:
        ...

    def get_conversation_history(
        self, session_id: str, limit: int | None = None
    ) -> list[ConversationMessage]:
        ...


class AgenticResponder:
    """Answers one user utterance, calling retrieval tools as the model asks."""

    def __init__(
        self,
        llm: LLMProvider,
        retrieval: RetrievalService,
        config: AgentConfig | None = None,
        conversation_log: ConversationLog | None = None,
        tools: dict[str, Tool] | None = None,
    ):
        self._llm = llm
        self._retrieval = retrieval
        self._config = config or AgentConfig()
        self._conversation_log = conversation_log
        self._tools = tools if tools is not None else build_retrieval_tools(retrieval)

    async def generate_response(
        self,
        user_message: str,
        context: RetrievalContext | None,
        session_id: str,
        focus: FocusContext | None = None,
    ) -> str:
        """Return the answer text; never raises for model or tool failures.

        When ``context`` is None it is retrieved for ``user_message`` first.
        """
        result = await self.run(user_message, context, session_id, focus)
        return result.answer

    async def run(
        self,
        user_message: str,
        context: RetrievalContext | None,
        session_id: str,
        focus: FocusContext | None = None,
    ) -> AgentResult:
        if user_message.lower().startswith(ECHO_PREFIX):
            answer = user_message[len(ECHO_PREFIX) :]
            self._log_exchange(session_id, user_message, answer, turns=0)
            return AgentResult(answer=answer, state=ResponderState.FINAL)

        if context is None:
            context = await self._retrieval.retrieve(user_message, session_id, focus)

        messages = [{"role": "system", "content": self.build_system_prompt(context, focus)}]
        messages.extend(self._history(session_id))
        messages.append({"role": "user", "content": user_message})

        tool_calls: list[ToolCall] = []
        for turn in range(1, self._config.max_turns + 1):
            try:
                response = await asyncio.wait_for(
                    self._llm.complete(
                        messages,
                        max_completion_tokens=self._config.max_completion_tokens,
                        timeout=self._config.model_timeout_seconds,
                    ),
                    timeout=self._config.model_timeout_seconds,
                )
            except asyncio.TimeoutError:
                logger.error(
                    f"[Agent] Model call timed out after {self._config.model_timeout_seconds}s "
                    f"(turn {turn}, session {session_id})"
                )
                return AgentResult(APOLOGY_MESSAGE, ResponderState.ABORTED, turn, tool_calls)
            except Exception as e:
                logger.error(f"[Agent] Model call failed (turn {turn}, session {session_id}): {e}")
                return AgentResult(APOLOGY_MESSAGE, ResponderState.ABORTED, turn, tool_calls)

            text = response.content.strip()
            call = parse_tool_call(text)

            if call is None:
                if not text:
                    logger.error(f"[Agent] Model returned an empty reply (turn {turn})")
                    return AgentResult(APOLOGY_MESSAGE, ResponderState.ABORTED, turn, tool_calls)
                self._log_exchange(session_id, user_message, text, turns=turn)
                return AgentResult(text, ResponderState.FINAL, turn, tool_calls)

            tool_calls.append(call)
            logger.debug(f"[Agent] Turn {turn}: {call.name} {call.argument!r}")
            try:
                output = await self._execute_tool(call, session_id)
            except Exception as e:
                logger.error(f"[Agent] Tool {call.name} raised: {e}")
                return AgentResult(APOLOGY_MESSAGE, ResponderState.ABORTED, turn, tool_calls)

            messages.append({"role": "assistant", "content": text})
            messages.append({"role": "user", "content": format_tool_result(call, output)})

        logger.warning(
            f"[Agent] Step limit of {self._config.max_turns} turns reached for session {session_id}"
        )
        return AgentResult(
            STEP_LIMIT_MESSAGE, ResponderState.LIMIT_REACHED, self._config.max_turns, tool_calls
        )

    async def _execute_tool(self, call: ToolCall, session_id: str) -> str:
        tool = self._tools.get(call.name)
        if tool is None:
            return f"Unknown tool: {call.name}"
        return await tool.implementation(session_id, call.argument)

    def build_system_prompt(
        self, context: RetrievalContext, focus: FocusContext | None = None
    ) -> str:
        sections = [
            SYSTEM_PREAMBLE,
            render_tool_instructions(
                {f'{name} "{tool.argument}"': tool.description for name, tool in self._tools.items()}
            ),
        ]

        summary = format_context_for_prompt(context, file_limit=self._config.prompt_file_limit)
        if summary:
            sections.append(summary)

        with_content = [c for c in context.chunks if c.content][: self._config.prompt_chunk_limit]
        if with_content:
            bodies = [
                f"--- {c.file_path}:{c.line_start}-{c.line_end} ({c.symbol_name or 'module'}) ---\n"
                f"{c.content[:PROMPT_CHUNK_MAX_CHARS]}"
                for c in with_content
            ]
            sections.append("Relevant code:\n" + "\n\n".join(bodies))

        if focus and not focus.is_empty():
            where = focus.file_path or "an unsaved buffer"
            if focus.line_start is not None:
                where += f" lines {focus.line_start}-{focus.line_end or focus.line_start}"
            focus_text = f"The user is currently looking at {where}."
            if focus.selection:
                focus_text += f" Selected text:\n{focus.selection}"
            sections.append(focus_text)

        return "\n\n".join(sections)

    def _history(self, session_id: str) -> list[dict[str, str]]:
        if self._conversation_log is None or self._config.history_limit == 0:
            return []
        history = self._conversation_log.get_conversation_history(
            session_id, limit=self._config.history_limit
        )
        return [{"role": m.role, "content": m.content} for m in history]

    def _log_exchange(self, session_id: str, question: str, answer: str, turns: int) -> None:
        if self._conversation_log is None:
            return
        self._conversation_log.add_conversation_message(session_id, "user", question)
        self._conversation_log.add_conversation_message(
            session_id, "assistant", answer, metadata={"turns": turns}
        )
