from __future__ import annotations

import asyncio
from typing import List, Optional

import httpx
import pytest

from logostudio.api.deps import get_image_provider
from logostudio.api.server import create_app
from logostudio.errors import TransientError

from conftest import make_png, signup


class FakeProvider:
    def __init__(self, fail: bool = False, delay: float = 0.0) -> None:
        self.fail = fail
        self.delay = delay
        self.prompts: List[str] = []
        self.references: List[Optional[bytes]] = []

    async def generate(self, prompt: str, size: str = "1024x1024", reference_image: Optional[bytes] = None) -> str:
        self.prompts.append(prompt)
        self.references.append(reference_image)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise TransientError("Failed to generate image")
        return "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture
def provider(client) -> FakeProvider:
    fake = FakeProvider()
    client.app.dependency_overrides[get_image_provider] = lambda: fake
    return fake


PARAMS = {"companyName": "Acme Bakery", "overallStyle": "vintage", "industry": "Food", "customColors": ["#aa0000"]}


def test_generation_requires_login(client, provider) -> None:
    resp = client.post("/api/logos/generate", json={"parameters": PARAMS})
    assert resp.status_code == 401
    assert provider.prompts == []


def test_originals_count_against_quota(client, provider) -> None:
    signup(client)
    client.patch("/api/user", json={"logosLimit": 1})

    resp = client.post("/api/logos/generate", json={"parameters": PARAMS})
    assert resp.status_code == 200
    data = resp.json()
    assert data["isRevision"] is False
    assert (data["logosCreated"], data["logosLimit"]) == (1, 1)
    assert "Company Name: Acme Bakery" in provider.prompts[0]
    assert "Colors: Use these specific colors - #aa0000" in provider.prompts[0]

    resp = client.post("/api/logos/generate", json={"parameters": PARAMS})
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "quota_exceeded"
    assert len(provider.prompts) == 1

    # revisions are not counted
    resp = client.post("/api/logos/generate", json={
        "parameters": PARAMS,
        "originalLogoId": "local-1",
        "referenceImageDataUri": "data:image/png;base64,iVBORw0KGgo=",
    })
    assert resp.status_code == 200
    assert resp.json()["isRevision"] is True
    assert resp.json()["logosCreated"] == 1
    assert client.get("/api/user").json()["remainingLogos"] == 0


def test_missing_company_is_rejected(client, provider) -> None:
    signup(client)
    resp = client.post("/api/logos/generate", json={"parameters": {"companyName": "   "}})
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Company name is required"
    resp = client.post("/api/logos/generate", json={"parameters": {}})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"


def test_provider_failure_costs_nothing(client) -> None:
    client.app.dependency_overrides[get_image_provider] = lambda: FakeProvider(fail=True)
    signup(client)
    resp = client.post("/api/logos/generate", json={"parameters": PARAMS})
    assert resp.status_code == 502
    assert resp.json()["error"]["code"] == "transient_error"
    assert client.get("/api/user").json()["logosCreated"] == 0


def test_revision_edits_the_original_image(client, provider, logo_data_uri: str) -> None:
    signup(client)
    original = client.post("/api/logos/generate", json={"parameters": PARAMS})
    assert original.status_code == 200
    assert provider.references == [None]

    resp = client.post("/api/logos/generate", json={
        "parameters": PARAMS,
        "originalLogoId": "local-1",
        "referenceImageDataUri": logo_data_uri,
    })
    assert resp.status_code == 200
    assert provider.references[-1] == make_png()


def test_revision_needs_a_usable_reference(client, provider) -> None:
    signup(client)
    resp = client.post("/api/logos/generate", json={"parameters": PARAMS, "originalLogoId": "local-1"})
    assert resp.status_code == 400
    resp = client.post("/api/logos/generate", json={
        "parameters": PARAMS,
        "originalLogoId": "local-1",
        "referenceImageDataUri": "https://example.com/logo.png",
    })
    assert resp.status_code == 400
    assert provider.prompts == []


def test_concurrent_originals_cannot_exceed_quota(out_dir) -> None:
    app = create_app()
    slow = FakeProvider(delay=0.05)
    app.dependency_overrides[get_image_provider] = lambda: slow

    async def scenario() -> None:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
            resp = await http.post("/api/auth/signup", json={"email": "race@example.com", "password": "correct-horse"})
            assert resp.status_code == 201
            resp = await http.patch("/api/user", json={"logosLimit": 1})
            assert resp.status_code == 200

            results = await asyncio.gather(
                *(http.post("/api/logos/generate", json={"parameters": PARAMS}) for _ in range(3))
            )
            assert sorted(r.status_code for r in results) == [200, 403, 403]
            assert len(slow.prompts) == 1

            user = (await http.get("/api/user")).json()
            assert (user["logosCreated"], user["logosLimit"]) == (1, 1)

    asyncio.run(scenario())


def test_failed_generation_returns_the_slot(client) -> None:
    client.app.dependency_overrides[get_image_provider] = lambda: FakeProvider(fail=True)
    signup(client)
    client.patch("/api/user", json={"logosLimit": 1})
    assert client.post("/api/logos/generate", json={"parameters": PARAMS}).status_code == 502

    working = FakeProvider()
    client.app.dependency_overrides[get_image_provider] = lambda: working
    resp = client.post("/api/logos/generate", json={"parameters": PARAMS})
    assert resp.status_code == 200
    assert resp.json()["logosCreated"] == 1


def test_openai_provider_uses_edits_for_reference() -> None:
    from logostudio.logos.generate import OpenAIImageProvider

    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": [{"b64_json": "iVBORw0KGgo="}]})

    provider = OpenAIImageProvider(
        api_key="sk-test", base_url="https://images.test/v1", transport=httpx.MockTransport(handler)
    )
    reference = make_png()

    async def scenario() -> None:
        assert await provider.generate("draw a logo") == "data:image/png;base64,iVBORw0KGgo="
        assert await provider.generate("tweak it", reference_image=reference)

    asyncio.run(scenario())
    assert seen[0].url.path == "/v1/images/generations"
    assert seen[0].headers["content-type"] == "application/json"
    assert seen[1].url.path == "/v1/images/edits"
    assert seen[1].headers["content-type"].startswith("multipart/form-data")
    assert reference in seen[1].content
