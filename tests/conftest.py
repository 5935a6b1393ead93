from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Callable

import httpx
import pytest
from typer.testing import CliRunner

from vm_storage_adapter.adapters.api.victoria import VMStorageAdapter
from vm_storage_adapter.cli.main import app

FIXED_NOW = datetime(2026, 10, 17, 8, 30, tzinfo=UTC)
FIXED_TIMESTAMP = "2026-10-17T08:30:00Z"


def vector_payload(*values: object) -> dict:
    """Instant-vector envelope with one series per supplied value pair."""

    return {
        "status": "success",
        "data": {
            "resultType": "vector",
            "result": [{"metric": {"instance": f"node-{index}"}, "value": value} for index, value in enumerate(values)],
        },
    }


@pytest.fixture()
def make_adapter() -> Callable[..., VMStorageAdapter]:
    created: list[httpx.Client] = []

    def factory(handler, *, is_prometheus: bool = True, server_address: str = "http://vm:8428") -> VMStorageAdapter:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        created.append(client)
        return VMStorageAdapter(
            server_address,
            is_prometheus,
            client,
            logging.getLogger("tests.vm_storage_adapter"),
            clock=lambda: FIXED_NOW,
        )

    yield factory
    for client in created:
        client.close()


@pytest.fixture()
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def cli_app():
    return app
