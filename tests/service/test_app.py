"""Tests for the FastAPI service mode."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from shimcheck.config import CheckConfig
from shimcheck.orchestrator import CheckReport, PreconditionError, ShimChecker
from shimcheck.service import create_app
from tests._fixtures.layer_builder import LayerBuilder


class _FailingChecker(ShimChecker):
    def run(self, config: CheckConfig, layers=None) -> CheckReport:  # type: ignore[no-untyped-def]
        raise PreconditionError("Shim directory stubs overlaps layer directory stubs/generated")


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_check_endpoint_returns_duplicates_and_warnings(
    client: TestClient, layers: LayerBuilder
) -> None:
    layers.write(
        {
            "stubs/generated/foo.pyi": "class Foo:\n    def foo(self): ...\n",
            "stubs/shims/foo.pyi": "class Foo:\n    def foo(self): ...\n",
            "stubs/shims/broken.pyi": "class Foo:\n    foo(bar)\n",
        }
    )

    response = client.post("/check", json={"path": str(layers.root)})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "duplicates"
    assert data["exit_code"] == 1
    assert data["duplicates"] == [
        {
            "key": "foo.Foo#foo",
            "locations": [
                "stubs/shims/foo.pyi:2:4-2:22",
                "stubs/generated/foo.pyi:2:4-2:22",
            ],
        }
    ]
    assert data["warnings"] == [
        {"message": "Unsupported expression `call`", "location": "stubs/shims/broken.pyi:2:4-2:12"}
    ]


def test_check_endpoint_reports_missing_shims(client: TestClient, layers: LayerBuilder) -> None:
    response = client.post("/check", json={"path": str(layers.root), "shim_dir": "nothing"})

    assert response.status_code == 200
    assert response.json()["status"] == "no_shims"
    assert response.json()["exit_code"] == 0


def test_check_endpoint_maps_precondition_errors(layers: LayerBuilder) -> None:
    client = TestClient(create_app(_FailingChecker))

    response = client.post("/check", json={"path": str(layers.root)})

    assert response.status_code == 400
    assert "overlaps" in response.json()["detail"]
