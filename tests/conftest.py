from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest


def completion_response(text: Optional[str]) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


class FakeCompletions:
    """Stand-in for ``OpenAI().chat.completions`` that records each request."""

    def __init__(self, outcomes: List[Any]) -> None:
        self._outcomes = list(outcomes)
        self.calls: List[Dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeOpenAI:
    def __init__(self, *outcomes: Any) -> None:
        self.chat = SimpleNamespace(completions=FakeCompletions(list(outcomes)))

    @property
    def calls(self) -> List[Dict[str, Any]]:
        return self.chat.completions.calls


class ScriptedInput:
    """Feed canned lines to the chat loop, returning None once exhausted."""

    def __init__(self, *lines: str) -> None:
        self._lines = list(lines)

    def read(self) -> Optional[str]:
        if not self._lines:
            return None
        return self._lines.pop(0)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("GITHUB_TOKEN", "CODECHAT_MODEL", "CODECHAT_BASE_URL"):
        monkeypatch.delenv(name, raising=False)
