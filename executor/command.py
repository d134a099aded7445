"""
executor/command.py
Descriptor for a single remote Jenkins call.
"""
from dataclasses import dataclass, field


@dataclass(frozen=True)
class JenkinsCommand:
    """
    One call against the Jenkins client, e.g.
    JenkinsCommand("job", "exists", {"name": "SD-42"})
    resolves to `await client.job.exists(name="SD-42")`.
    """
    module: str
    action: str
    params: dict = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.module}.{self.action}"
