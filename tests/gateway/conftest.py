"""Shared pytest fixtures/helpers for workspace gateway tests.

This file is auto-loaded by pytest for the entire `tests/gateway/` folder.
"""

from __future__ import annotations

import pytest

from workspace_gateway.app import create_app
from workspace_gateway.config import AuthSettings, Settings
from workspace_gateway.workspace import Workspace

TEST_TOKEN = "unit-test-token"


def build_multipart(boundary: str, parts: list[tuple[dict[str, str], bytes]]) -> bytes:
    """Assemble a multipart body by hand.

    Each part is (content-disposition params, payload); a `filename` key
    makes it a file part.
    """
    chunks = []
    for params, payload in parts:
        disposition = "; ".join(f'{k}="{v}"' for k, v in params.items())
        header = (
            f"--{boundary}\r\n"
            f"Content-Disposition: form-data; {disposition}\r\n"
            "Content-Type: application/octet-stream\r\n"
            "\r\n"
        )
        chunks.append(header.encode("latin-1") + payload + b"\r\n")
    chunks.append(f"--{boundary}--\r\n".encode("latin-1"))
    return b"".join(chunks)


@pytest.fixture
def workspace(tmp_path):
    ws = Workspace(tmp_path / "ws")
    ws.ensure_root()
    return ws


@pytest.fixture
def gateway_settings(tmp_path):
    return Settings(
        workspace_base=tmp_path / "workspaces",
        default_agent_id="main",
        auth=AuthSettings(mode="token", token=TEST_TOKEN),
    )


@pytest.fixture
def workspace_root(gateway_settings):
    return gateway_settings.workspace_base / "main"


@pytest.fixture
def auth_params():
    return {"token": TEST_TOKEN}


@pytest.fixture
def gateway_client(gateway_settings):
    app = create_app({"TESTING": True}, settings=gateway_settings)
    with app.test_client() as client:
        yield client


@pytest.fixture
def multipart_body():
    return build_multipart
