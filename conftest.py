from collections import Counter
from collections.abc import Callable

import pytest

from kdo_dado.llm import AssistantEvent, CollaboratorError, CollaboratorRequest

Response = str | Callable[[CollaboratorRequest], str]


class StubCollaborator:
    """Answers each stage from a script and records every request.

    Unscripted stages answer "<stage>-<n>", n counting calls to that stage,
    so every rewrite is distinguishable. `fail_on(request)` returning True
    makes that call raise CollaboratorError.
    """

    def __init__(
        self,
        responses: dict[str, Response] | None = None,
        fail_on: Callable[[CollaboratorRequest], bool] | None = None,
    ) -> None:
        self._responses = responses or {}
        self._fail_on = fail_on
        self._calls: Counter[str] = Counter()
        self.requests: list[CollaboratorRequest] = []

    @property
    def stages(self) -> list[str]:
        return [r.stage for r in self.requests]

    async def invoke(self, request: CollaboratorRequest):
        self.requests.append(request)
        self._calls[request.stage] += 1
        if self._fail_on is not None and self._fail_on(request):
            raise CollaboratorError(f"scripted failure in {request.stage}")
        response = self._responses.get(request.stage, f"{request.stage}-{self._calls[request.stage]}")
        if callable(response):
            response = response(request)
        yield AssistantEvent(content=response)


@pytest.fixture
def stub_factory() -> type[StubCollaborator]:
    return StubCollaborator


@pytest.fixture
def stub() -> StubCollaborator:
    """One stub playing both the creative and the design role."""
    return StubCollaborator()
