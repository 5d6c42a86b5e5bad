"""Generative collaborators — the text-producing side of every pipeline stage.

Each stage hands a collaborator a CollaboratorRequest and gets back a finite
stream of events:

    def invoke(self, request: CollaboratorRequest) -> AsyncIterator[CollaboratorEvent]: ...

Only assistant events carry result text, either as one string or as an ordered
list of typed segments. accumulate() folds the stream into a single string;
run_stage() is the invoke-then-accumulate step every stage performs.

Implementations:

    EchoCollaborator     — yields the instructions back unchanged. Useful for
                           smoke-testing the pipeline wiring without a model.
    HttpCollaborator     — Anthropic Messages API over httpx, with an
                           in-process MCP tool loop.
    AgentSdkCollaborator — Claude Agent SDK transport (see kdo_dado.agent_sdk).

Tests use a scripted StubCollaborator (see conftest.py) instead.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

import httpx
from mcp import types as mcp_types
from mcp.client.session import ClientSession
from mcp.shared.memory import create_connected_server_and_client_session
from pydantic import BaseModel, Field

from kdo_dado.tools import ToolBinding

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

CapabilityTier = Literal["haiku", "sonnet", "opus"]
PermissionMode = Literal["default", "acceptEdits", "bypassPermissions", "plan"]


@dataclass(frozen=True)
class SubRole:
    """A specialist the collaborator may delegate part of its task to."""

    description: str
    behavior_profile: str
    capability_tier: CapabilityTier = "sonnet"


@dataclass(frozen=True)
class CollaboratorRequest:
    """Everything a collaborator needs for one stage.

    Args:
        stage:            Pipeline stage name, used for logging only.
        instructions:     The task prompt.
        behavior_profile: Persona / system instructions.
        sub_roles:        Named specialists available for delegation.
        tools:            Deterministic tools the collaborator may call.
        permission_mode:  Whether side effects (file writes) are allowed.
    """

    stage: str
    instructions: str
    behavior_profile: str
    sub_roles: dict[str, SubRole] = field(default_factory=dict)
    tools: ToolBinding | None = None
    permission_mode: PermissionMode | None = None


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class OtherContent(BaseModel):
    """Any non-text segment (tool use, thinking, ...). Ignored by accumulation."""

    type: str
    data: dict[str, Any] = Field(default_factory=dict)


ContentSegment = TextContent | OtherContent


class AssistantEvent(BaseModel):
    kind: Literal["assistant"] = "assistant"
    content: str | list[ContentSegment]


class SystemEvent(BaseModel):
    kind: Literal["system"] = "system"
    subtype: str = ""
    session_id: str | None = None


class ResultEvent(BaseModel):
    """End-of-run marker. `is_error` means the transport gave up on the request."""

    kind: Literal["result"] = "result"
    is_error: bool = False
    detail: str = ""


CollaboratorEvent = AssistantEvent | SystemEvent | ResultEvent


# ---------------------------------------------------------------------------
# Protocol — every collaborator implementation must match this signature
# ---------------------------------------------------------------------------

class Collaborator(Protocol):
    def invoke(self, request: CollaboratorRequest) -> AsyncIterator[CollaboratorEvent]: ...


# ---------------------------------------------------------------------------
# CollaboratorError — raised for every transport and protocol failure
# ---------------------------------------------------------------------------

class CollaboratorError(RuntimeError):
    """Raised when a collaborator cannot produce a response."""


# ---------------------------------------------------------------------------
# Accumulation
# ---------------------------------------------------------------------------

async def accumulate(events: AsyncIterator[CollaboratorEvent]) -> str:
    """Concatenate the text of every assistant event, in arrival order."""
    parts: list[str] = []
    seen = 0

    async for event in events:
        seen += 1
        match event:
            case AssistantEvent(content=str() as text):
                parts.append(text)
            case AssistantEvent(content=segments):
                for segment in segments:
                    match segment:
                        case TextContent(text=text):
                            parts.append(text)
            case SystemEvent(subtype=subtype, session_id=session_id):
                logger.debug("collaborator system event subtype=%s session=%s", subtype, session_id)
            case ResultEvent(is_error=True, detail=detail):
                raise CollaboratorError(f"Collaborator reported an error: {detail or 'no detail'}")

    if seen == 0:
        raise CollaboratorError("Collaborator returned an empty response stream")
    return "".join(parts)


async def run_stage(collaborator: Collaborator, request: CollaboratorRequest) -> str:
    """Invoke `collaborator` and return its accumulated text."""
    logger.debug(
        "stage=%s invoke instructions_len=%d tools=%s sub_roles=%s",
        request.stage, len(request.instructions),
        request.tools.name if request.tools else None,
        ",".join(request.sub_roles) or None,
    )
    text = await accumulate(collaborator.invoke(request))
    logger.debug("stage=%s response_len=%d", request.stage, len(text))
    return text


# ---------------------------------------------------------------------------
# EchoCollaborator — returns the instructions unchanged; no network calls
# ---------------------------------------------------------------------------

class EchoCollaborator:
    """Yields the instructions as-is.

    Lets you verify that the pipeline wiring (stage order, data threading,
    persistence) works end-to-end without a running model. The validate stage
    will fall back to the optimistic default since the echo is not JSON.
    """

    async def invoke(self, request: CollaboratorRequest) -> AsyncIterator[CollaboratorEvent]:
        logger.debug("EchoCollaborator stage=%s instructions_len=%d", request.stage, len(request.instructions))
        yield AssistantEvent(content=request.instructions)


# ---------------------------------------------------------------------------
# HttpCollaborator — Anthropic Messages API
# ---------------------------------------------------------------------------

ANTHROPIC_VERSION = "2023-06-01"


class HttpCollaborator:
    """Async HTTP client for the Anthropic Messages API.

    POST {base_url}/v1/messages
      {"model", "max_tokens", "system", "messages", "tools"?}
    Response: {"content": [{"type": "text", "text": ...}, ...], "stop_reason": ...}

    Sub-roles are described in the system prompt, since plain HTTP has no
    delegation. When the request binds tools, their MCP schemas are sent and
    every tool_use block is executed through an in-process MCP session; tool
    failures go back to the model as error results.

    Args:
        base_url:        API root, e.g. "https://api.anthropic.com".
        api_key:         Sent as x-api-key.
        auth_token:      Sent as a Bearer token; takes precedence over api_key.
        model:           Model identifier.
        max_tokens:      Completion budget per model turn.
        timeout:         HTTP timeout in seconds. Defaults to 120.
        max_tool_rounds: Upper bound on tool_use round trips per request.
    """

    def __init__(
        self,
        base_url: str = "https://api.anthropic.com",
        api_key: str = "",
        auth_token: str = "",
        model: str = "claude-sonnet-4-5",
        max_tokens: int = 4096,
        timeout: float = 120.0,
        max_tool_rounds: int = 8,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._auth_token = auth_token
        self._model = model
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._max_tool_rounds = max_tool_rounds

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Content-Type": "application/json",
            "anthropic-version": ANTHROPIC_VERSION,
        }
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        elif self._api_key:
            headers["x-api-key"] = self._api_key
        return headers

    def _system_prompt(self, request: CollaboratorRequest) -> str:
        if not request.sub_roles:
            return request.behavior_profile
        lines = [request.behavior_profile, "", "Specialists whose perspective you should bring in:"]
        for name, role in request.sub_roles.items():
            lines.append(f"- {name}: {role.description} {role.behavior_profile}")
        return "\n".join(lines)

    def _build_body(
        self, request: CollaboratorRequest, messages: list[dict], tools: list[dict]
    ) -> dict:
        body: dict = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "system": self._system_prompt(request),
            "messages": messages,
        }
        if tools:
            body["tools"] = tools
        return body

    async def _post(self, client: httpx.AsyncClient, body: dict) -> dict:
        url = f"{self._base_url}/v1/messages"
        try:
            resp = await client.post(url, json=body, headers=self._headers())
            resp.raise_for_status()
        except httpx.ConnectError as e:
            raise CollaboratorError(f"Cannot connect to collaborator backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise CollaboratorError(
                f"Collaborator backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise CollaboratorError(f"Collaborator backend timed out after {self._timeout}s") from e
        except httpx.RequestError as e:
            raise CollaboratorError(f"Request to collaborator backend failed: {e!r}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise CollaboratorError("Collaborator backend returned a non-JSON body") from e
        if not isinstance(data, dict) or not isinstance(data.get("content"), list):
            raise CollaboratorError("Unexpected response format from Messages API")
        return data

    async def _list_tools(self, session: ClientSession) -> list[dict]:
        listed = await session.list_tools()
        return [
            {"name": t.name, "description": t.description or "", "input_schema": t.inputSchema}
            for t in listed.tools
        ]

    async def _call_tool(self, session: ClientSession, block: dict) -> dict:
        result = await session.call_tool(block["name"], block.get("input") or {})
        text = "".join(c.text for c in result.content if isinstance(c, mcp_types.TextContent))
        if result.isError:
            logger.info("tool %s rejected input: %s", block["name"], text)
        return {
            "type": "tool_result",
            "tool_use_id": block["id"],
            "content": text,
            "is_error": bool(result.isError),
        }

    async def _exchange(
        self,
        client: httpx.AsyncClient,
        request: CollaboratorRequest,
        session: ClientSession | None,
    ) -> list[CollaboratorEvent]:
        tools = await self._list_tools(session) if session is not None else []
        messages: list[dict] = [{"role": "user", "content": request.instructions}]
        events: list[CollaboratorEvent] = []

        for _ in range(self._max_tool_rounds + 1):
            data = await self._post(client, self._build_body(request, messages, tools))
            blocks: list[dict] = data["content"]
            events.append(AssistantEvent(content=[_segment(b) for b in blocks]))

            tool_uses = [b for b in blocks if b.get("type") == "tool_use"]
            if data.get("stop_reason") != "tool_use" or not tool_uses or session is None:
                events.append(ResultEvent(detail=str(data.get("stop_reason", ""))))
                return events

            messages.append({"role": "assistant", "content": blocks})
            messages.append({
                "role": "user",
                "content": [await self._call_tool(session, b) for b in tool_uses],
            })

        raise CollaboratorError(
            f"Stage {request.stage!r} exceeded {self._max_tool_rounds} tool rounds"
        )

    async def invoke(self, request: CollaboratorRequest) -> AsyncIterator[CollaboratorEvent]:
        if request.permission_mode:
            logger.debug("HttpCollaborator ignores permission_mode=%s", request.permission_mode)

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            if request.tools is None:
                events = await self._exchange(client, request, None)
            else:
                # The session runs in a task group; errors escaping it arrive as an ExceptionGroup.
                failure: CollaboratorError | None = None
                async with create_connected_server_and_client_session(request.tools.server) as session:
                    try:
                        events = await self._exchange(client, request, session)
                    except CollaboratorError as e:
                        failure = e
                if failure is not None:
                    raise failure

        for event in events:
            yield event


def _segment(block: dict) -> ContentSegment:
    if block.get("type") == "text":
        return TextContent(text=block.get("text", ""))
    return OtherContent(type=str(block.get("type", "unknown")), data=block)
