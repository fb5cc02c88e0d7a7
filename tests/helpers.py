"""
Helpers shared by the vibe-sync tests.
"""

import json
from pathlib import Path
from typing import List, Sequence

from vibesync.core.plugins import RunResult


class FakePluginTool:
    """Records every invocation instead of running the claude CLI."""

    def __init__(self, available: bool = True, fail: Sequence[str] = (),
                 timeout: Sequence[str] = ()):
        self.available = available
        self.fail = set(fail)
        self.timeout = set(timeout)
        self.availability_checks = 0
        self.calls: List[List[str]] = []

    def is_available(self) -> bool:
        self.availability_checks += 1
        return self.available

    def run(self, args: Sequence[str]) -> RunResult:
        args = list(args)
        self.calls.append(args)
        subject = args[-1]
        if subject in self.timeout:
            return RunResult(succeeded=False, timed_out=True)
        return RunResult(succeeded=subject not in self.fail)


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + '\n', encoding='utf-8')
    return path


def read_json(path: Path):
    return json.loads(path.read_text(encoding='utf-8'))
