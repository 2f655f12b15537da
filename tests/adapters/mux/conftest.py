"""Shared fixtures for Mux adapter tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

MuxPayload = dict[str, object]
FIXTURES = Path(__file__).resolve().parents[2] / "data" / "mux"


@pytest.fixture
def webhook_payloads() -> list[MuxPayload]:
    path = FIXTURES / "webhook_events.jsonl"
    payloads: list[MuxPayload] = []
    for line in path.read_text().splitlines():
        if not line.strip():
            continue
        payloads.append(json.loads(line))
    return payloads
