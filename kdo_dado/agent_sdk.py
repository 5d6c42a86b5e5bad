"""Claude Agent SDK collaborator.

Runs each request as one `query()` session. Sub-roles become SDK agent
definitions, a ToolBinding becomes a stdio MCP server launched with
``python -m <binding.module>``, and SDK messages are mapped onto the
collaborator event union:

    AssistantMessage → AssistantEvent (TextBlock → TextContent, others → OtherContent)
    SystemMessage    → SystemEvent (subtype, session id)
    ResultMessage    → ResultEvent

The SDK reads ANTHROPIC_API_KEY / ANTHROPIC_AUTH_TOKEN / ANTHROPIC_BASE_URL
from the environment itself.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncIterator
from typing import Any

from claude_agent_sdk import (
    AgentDefinition,
    AssistantMessage,
    ClaudeAgentOptions,
    ClaudeSDKError,
    ResultMessage,
    SystemMessage,
    TextBlock,
    query,
)

from kdo_dado.llm import (
    AssistantEvent,
    CollaboratorError,
    CollaboratorEvent,
    CollaboratorRequest,
    ContentSegment,
    OtherContent,
    ResultEvent,
    SystemEvent,
    TextContent,
)

logger = logging.getLogger(__name__)


class AgentSdkCollaborator:
    """Collaborator backed by the Claude Agent SDK.

    Args:
        model:     Model for the top-level agent, e.g. "claude-sonnet-4-5".
        max_turns: Optional cap on agent turns per request.
    """

    def __init__(self, model: str = "claude-sonnet-4-5", max_turns: int | None = None) -> None:
        self._model = model
        self._max_turns = max_turns

    def build_options(self, request: CollaboratorRequest) -> ClaudeAgentOptions:
        agents = {
            name: AgentDefinition(
                description=role.description,
                prompt=role.behavior_profile,
                model=role.capability_tier,
            )
            for name, role in request.sub_roles.items()
        }
        mcp_servers: dict[str, Any] = {}
        allowed_tools: list[str] = []
        if request.tools is not None:
            mcp_servers[request.tools.name] = {
                "type": "stdio",
                "command": sys.executable,
                "args": ["-m", request.tools.module],
            }
            allowed_tools = request.tools.allowed_tools

        return ClaudeAgentOptions(
            model=self._model,
            system_prompt=request.behavior_profile,
            agents=agents or None,
            mcp_servers=mcp_servers,
            allowed_tools=allowed_tools,
            permission_mode=request.permission_mode,
            max_turns=self._max_turns,
        )

    async def invoke(self, request: CollaboratorRequest) -> AsyncIterator[CollaboratorEvent]:
        options = self.build_options(request)
        try:
            async for message in query(prompt=request.instructions, options=options):
                event = _to_event(message)
                if event is not None:
                    yield event
        except ClaudeSDKError as e:
            raise CollaboratorError(f"Agent SDK failed during stage {request.stage!r}: {e}") from e


def _to_event(message: Any) -> CollaboratorEvent | None:
    if isinstance(message, AssistantMessage):
        if isinstance(message.content, str):
            return AssistantEvent(content=message.content)
        return AssistantEvent(content=[_to_segment(block) for block in message.content])
    if isinstance(message, SystemMessage):
        return SystemEvent(subtype=message.subtype, session_id=message.data.get("session_id"))
    if isinstance(message, ResultMessage):
        detail = message.result or message.subtype
        return ResultEvent(is_error=message.is_error, detail=detail or "")
    # User echoes and partial stream events carry nothing the pipeline needs
    return None


def _to_segment(block: Any) -> ContentSegment:
    if isinstance(block, TextBlock):
        return TextContent(text=block.text)
    return OtherContent(type=type(block).__name__)
