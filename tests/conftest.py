"""Pytest configuration and fixtures for fitsorter tests."""

import json
from datetime import datetime
from pathlib import Path

import pytest

from fitsorter.config import SorterConfig
from fitsorter.errors import IntegrityError, MultipleRecordGroupsError, SchemaMismatchError
from fitsorter.models import DecodedActivity


class FakeDecoder:
    """RecordDecoder reading a JSON description instead of FIT bytes.

    ``{"corrupt": true}`` fails validation, ``{"schema": "course"}`` is not an
    activity, ``{"groups": 2}`` has a second record group. Anything else is
    decoded from the keys ``type``, ``timestamp``, ``timer`` and ``sports``.
    """

    def __init__(self):
        self.validated = []
        self.decoded = []

    def validate(self, stream):
        data = json.loads(stream.read())
        self.validated.append(stream.name)
        if data.get("corrupt"):
            raise IntegrityError("checksum mismatch")

    def decode(self, stream):
        data = json.loads(stream.read())
        self.decoded.append(stream.name)
        if data.get("schema", "activity") != "activity":
            raise SchemaMismatchError(f"not an activity file (file type {data['schema']})")
        if data.get("groups", 1) > 1:
            raise MultipleRecordGroupsError(f"found {data['groups']} record groups, expected 1")
        return DecodedActivity(
            activity_type=data.get("type", "manual"),
            timestamp=datetime.fromisoformat(data.get("timestamp", "2023-06-01T08:00:00+00:00")),
            total_timer_millis=data.get("timer", 5_400_000),
            sports=tuple(data.get("sports", ["running"])),
        )

    @property
    def calls(self):
        return len(self.validated) + len(self.decoded)


def write_record(path: Path, **fields) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(fields), encoding="utf-8")
    return path


@pytest.fixture
def decoder() -> FakeDecoder:
    return FakeDecoder()


@pytest.fixture
def inbox(tmp_path: Path) -> Path:
    root = tmp_path / "inbox"
    root.mkdir()
    return root


@pytest.fixture
def config(tmp_path: Path, inbox: Path) -> SorterConfig:
    return SorterConfig(input_root=inbox, output_root=tmp_path / "archive")
