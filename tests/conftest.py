"""Shared fixtures: recording tools and a fresh repository per test."""

import pytest

import toolflow.persistence as persistence
from toolflow.persistence import InMemoryRepository
from toolflow.registry import FunctionTool


class RecordingTool(FunctionTool):
    """Tool that returns a fixed output and remembers every payload it saw."""

    def __init__(self, name, output=None, error=None):
        self.calls = []
        self._output = output if output is not None else {}
        self._error = error

        async def run(payload):
            self.calls.append(dict(payload))
            if self._error is not None:
                raise self._error
            return dict(self._output)

        super().__init__(name, run)


@pytest.fixture
def make_tool():
    return RecordingTool


@pytest.fixture
def repo():
    repository = InMemoryRepository()
    persistence._repository_instance = repository
    yield repository
    persistence._repository_instance = None
