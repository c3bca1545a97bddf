from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from scan_rewards.api.routes import internal_scan
from scan_rewards.main import app

USER_ID = "7f6c1a2e-3b4d-4e5f-8a9b-0c1d2e3f4a5b"


def _patch_settings(monkeypatch, *, allowlist: str) -> None:
    monkeypatch.setattr(
        internal_scan,
        "get_settings",
        lambda: SimpleNamespace(
            internal_api_token="internal-secret",
            internal_api_allowlist=allowlist,
        ),
    )


async def _post_from_localhost(headers: dict[str, str]) -> object:
    async with AsyncClient(
        transport=ASGITransport(app=app, client=("127.0.0.1", 8080)),
        base_url="http://testserver",
    ) as client:
        return await client.post(
            "/internal/scan/redeem",
            json={"user_id": USER_ID, "code": "CODE-1"},
            headers=headers,
        )


@pytest.mark.asyncio
async def test_internal_scan_rejects_missing_token(monkeypatch) -> None:
    _patch_settings(monkeypatch, allowlist="127.0.0.1/32")

    response = await _post_from_localhost({})

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


@pytest.mark.asyncio
async def test_internal_scan_rejects_wrong_token(monkeypatch) -> None:
    _patch_settings(monkeypatch, allowlist="127.0.0.1/32")

    response = await _post_from_localhost({"X-Internal-Token": "guess"})

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_internal_scan_rejects_disallowed_ip(monkeypatch) -> None:
    _patch_settings(monkeypatch, allowlist="192.168.0.0/16")

    client = TestClient(app)
    response = client.post(
        "/internal/scan/redeem",
        json={"user_id": USER_ID, "code": "CODE-1"},
        headers={
            "X-Internal-Token": "internal-secret",
            "X-Forwarded-For": "10.0.0.25",
        },
    )

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}
