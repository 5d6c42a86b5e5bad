"""Tests for kdo_dado.agent_sdk — option building and SDK message mapping.

query() is patched with a scripted async generator, so no CLI process starts.
"""

import sys

import pytest
from unittest.mock import patch

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeSDKError,
    ResultMessage,
    SystemMessage,
    TextBlock,
    ToolUseBlock,
    UserMessage,
)

from kdo_dado.agent_sdk import AgentSdkCollaborator
from kdo_dado.llm import (
    AssistantEvent,
    CollaboratorError,
    CollaboratorRequest,
    OtherContent,
    ResultEvent,
    SubRole,
    SystemEvent,
    TextContent,
    run_stage,
)
from kdo_dado.tools import GAME_DESIGN_TOOLS


def _request(**overrides) -> CollaboratorRequest:
    fields = {"stage": "concept", "instructions": "Write a concept.", "behavior_profile": "You write."}
    fields.update(overrides)
    return CollaboratorRequest(**fields)


def _result(is_error: bool = False, result: str | None = "done") -> ResultMessage:
    return ResultMessage(
        subtype="error_during_execution" if is_error else "success",
        duration_ms=10,
        duration_api_ms=8,
        is_error=is_error,
        num_turns=1,
        session_id="sess-1",
        result=result,
    )


class _ScriptedQuery:
    """Stand-in for claude_agent_sdk.query that replays messages."""

    def __init__(self, *messages, error: Exception | None = None) -> None:
        self._messages = messages
        self._error = error
        self.calls: list[dict] = []

    async def __call__(self, *, prompt, options):
        self.calls.append({"prompt": prompt, "options": options})
        for message in self._messages:
            yield message
        if self._error is not None:
            raise self._error


# ---------------------------------------------------------------------------
# build_options
# ---------------------------------------------------------------------------

class TestBuildOptions:
    def test_plain_request(self) -> None:
        options = AgentSdkCollaborator(model="claude-test").build_options(_request())
        assert options.model == "claude-test"
        assert options.system_prompt == "You write."
        assert options.agents is None
        assert options.mcp_servers == {}
        assert options.allowed_tools == []
        assert options.permission_mode is None

    def test_sub_roles_become_agent_definitions(self) -> None:
        roles = {
            "editor": SubRole(description="Final editor", behavior_profile="Tighten prose.", capability_tier="sonnet"),
            "proofreader": SubRole(description="Proofreader", behavior_profile="Fix typos.", capability_tier="haiku"),
        }
        options = AgentSdkCollaborator().build_options(_request(sub_roles=roles))
        assert set(options.agents) == {"editor", "proofreader"}
        assert options.agents["proofreader"].description == "Proofreader"
        assert options.agents["proofreader"].prompt == "Fix typos."
        assert options.agents["proofreader"].model == "haiku"

    def test_tool_binding_becomes_stdio_server(self) -> None:
        options = AgentSdkCollaborator().build_options(_request(tools=GAME_DESIGN_TOOLS))
        server = options.mcp_servers["game-design-tools"]
        assert server["type"] == "stdio"
        assert server["command"] == sys.executable
        assert server["args"] == ["-m", "kdo_dado.tools"]
        assert options.allowed_tools == GAME_DESIGN_TOOLS.allowed_tools

    def test_permission_mode_and_turn_cap(self) -> None:
        options = AgentSdkCollaborator(max_turns=5).build_options(_request(permission_mode="acceptEdits"))
        assert options.permission_mode == "acceptEdits"
        assert options.max_turns == 5


# ---------------------------------------------------------------------------
# invoke
# ---------------------------------------------------------------------------

class TestInvoke:
    async def _events(self, collaborator: AgentSdkCollaborator, request: CollaboratorRequest) -> list:
        return [event async for event in collaborator.invoke(request)]

    async def test_messages_mapped_to_events(self) -> None:
        scripted = _ScriptedQuery(
            SystemMessage(subtype="init", data={"session_id": "sess-1"}),
            AssistantMessage(
                content=[
                    TextBlock(text="Calling a tool. "),
                    ToolUseBlock(id="tu_1", name="mcp__game-design-tools__validate_balance", input={}),
                    TextBlock(text="Done."),
                ],
                model="claude-test",
            ),
            _result(),
        )
        with patch("kdo_dado.agent_sdk.query", scripted):
            events = await self._events(AgentSdkCollaborator(), _request())

        assert events[0] == SystemEvent(subtype="init", session_id="sess-1")
        assert events[1] == AssistantEvent(content=[
            TextContent(text="Calling a tool. "),
            OtherContent(type="ToolUseBlock"),
            TextContent(text="Done."),
        ])
        assert events[2] == ResultEvent(is_error=False, detail="done")

    async def test_prompt_passed_through(self) -> None:
        scripted = _ScriptedQuery(AssistantMessage(content=[TextBlock(text="ok")], model="m"))
        with patch("kdo_dado.agent_sdk.query", scripted):
            await self._events(AgentSdkCollaborator(), _request(instructions="Make it dark."))
        assert scripted.calls[0]["prompt"] == "Make it dark."
        assert scripted.calls[0]["options"].system_prompt == "You write."

    async def test_user_messages_skipped(self) -> None:
        scripted = _ScriptedQuery(
            UserMessage(content="tool output"),
            AssistantMessage(content=[TextBlock(text="hi")], model="m"),
        )
        with patch("kdo_dado.agent_sdk.query", scripted):
            events = await self._events(AgentSdkCollaborator(), _request())
        assert len(events) == 1

    async def test_run_stage_accumulates_text(self) -> None:
        scripted = _ScriptedQuery(
            AssistantMessage(content=[TextBlock(text="A dentist ")], model="m"),
            AssistantMessage(content=[TextBlock(text="sets off.")], model="m"),
            _result(),
        )
        with patch("kdo_dado.agent_sdk.query", scripted):
            assert await run_stage(AgentSdkCollaborator(), _request()) == "A dentist sets off."

    async def test_error_result_fails_the_stage(self) -> None:
        scripted = _ScriptedQuery(
            AssistantMessage(content=[TextBlock(text="partial")], model="m"),
            _result(is_error=True, result=None),
        )
        with patch("kdo_dado.agent_sdk.query", scripted):
            with pytest.raises(CollaboratorError, match="error_during_execution"):
                await run_stage(AgentSdkCollaborator(), _request())

    async def test_sdk_error_becomes_collaborator_error(self) -> None:
        scripted = _ScriptedQuery(error=ClaudeSDKError("CLI not found"))
        with patch("kdo_dado.agent_sdk.query", scripted):
            with pytest.raises(CollaboratorError, match="stage 'polish'.*CLI not found"):
                await run_stage(AgentSdkCollaborator(), _request(stage="polish"))
