import os
import tempfile

os.environ.setdefault("DATABASE_URL", f"sqlite:///{tempfile.mkdtemp()}/workplace_dna_test.db")
os.environ.setdefault("HEALTH_REPORT_INTERVAL_SECONDS", "3600")

import pytest


class RecordingHandle:
    """In-memory stand-in for a client stream."""

    def __init__(self, fail: bool = False) -> None:
        self.frames: list[str] = []
        self.closed = False
        self.fail = fail
        self.writes = 0

    async def write(self, chunk: bytes) -> None:
        self.writes += 1
        if self.fail:
            raise ConnectionResetError("client went away")
        self.frames.append(chunk.decode("utf-8"))

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def handle_factory():
    return RecordingHandle
