"""Version-control engines.

The orchestration core delegates every storage operation to an engine.

Classes:
    VersionControlEngine: Runtime-checkable protocol the core depends on.
    DulwichEngine: Engine backed by dulwich, a pure-Python git implementation.
    FakeEngine: In-memory engine for tests.
    FakeRepositoryState: Mutable state of one FakeEngine repository.
"""

from gitdesk.engine._dulwich import DulwichEngine
from gitdesk.engine._fake import FakeEngine, FakeRepositoryState
from gitdesk.engine._protocol import VersionControlEngine

__all__ = [
    "DulwichEngine",
    "FakeEngine",
    "FakeRepositoryState",
    "VersionControlEngine",
]
