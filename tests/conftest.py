"""
Shared pytest fixtures.

- build_config / ecosystem: the build used throughout the executor tests
- FakeBreaker: records every JenkinsCommand and answers from a table
- jenkins_server: MagicMock standing in for jenkins.Jenkins
"""
from typing import Any, Dict, List
from unittest.mock import MagicMock, patch

import jenkins
import pytest

from executor.command import JenkinsCommand

TEST_XML = "<project><description>test job</description></project>"


@pytest.fixture
def ecosystem():
    return {"api": "api", "ui": "ui", "store": "store"}


@pytest.fixture
def build_config():
    return {
        "buildId": 1993,
        "container": "node:4",
        "apiUri": "http://localhost:8080",
        "token": "abcdefg",
    }


@pytest.fixture
def template_path(tmp_path):
    path = tmp_path / "job.xml"
    path.write_text(TEST_XML, encoding="utf-8")
    return path


class FakeBreaker:
    """
    Stand-in for CircuitBreaker. Answers each command from `responses`
    keyed by "module.action"; an Exception value is raised instead.
    """

    def __init__(self, responses: Dict[str, Any] = None):
        self.responses = dict(responses or {})
        self.calls: List[JenkinsCommand] = []

    async def run_command(self, command: JenkinsCommand):
        self.calls.append(command)
        result = self.responses.get(str(command))
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def actions(self) -> List[str]:
        return [str(call) for call in self.calls]

    def stats(self):
        return MagicMock(to_dict=MagicMock(return_value={"state": "closed"}))


@pytest.fixture
def fake_breaker():
    return FakeBreaker()


@pytest.fixture
def jenkins_server():
    """Patch jenkins.Jenkins inside the client module and yield the instance."""
    server = MagicMock(spec=jenkins.Jenkins)
    with patch("jenkins_client.client.jenkins.Jenkins", return_value=server) as factory:
        server.factory = factory
        yield server
