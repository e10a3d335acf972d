"""Integration tests for the studio API endpoints.

Drives the FastAPI app through httpx with an injected studio backed by the
fake image service:
- Logo upload and batch start (including ignored starts)
- Retry, drafts, snippets and editor edits with error mapping
- Local view transforms
- Zip and single PNG export
- Theme preference
"""

import asyncio
import io
import zipfile

import pytest

from conftest import LOGO, png_data_uri
from merchmagic.models.catalog import PRODUCT_TEMPLATES
from merchmagic.models.presets import PROMPT_CATEGORIES
from merchmagic.services.exceptions import RateLimitError, SafetyBlockedError


async def wait_for_batch(studio):
    while studio.pipeline.is_running:
        await asyncio.sleep(0)


async def generate_suite(test_client, studio):
    response = await test_client.put("/api/studio/logo", json={"image": LOGO})
    assert response.status_code == 200
    response = await test_client.post("/api/studio/batch")
    assert response.status_code == 202
    await wait_for_batch(studio)
    return (await test_client.get("/api/studio")).json()


class TestBatch:
    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "generating": False}

    @pytest.mark.asyncio
    async def test_catalog(self, test_client):
        response = await test_client.get("/api/studio/catalog")

        assert response.status_code == 200
        data = response.json()
        assert [p["name"] for p in data["products"]] == [t.name.value for t in PRODUCT_TEMPLATES]
        assert {p["id"] for p in data["rotation_presets"]} >= {"top", "back"}
        assert data["filters"][0]["name"] == "None"
        assert data["quick_styles"] == PROMPT_CATEGORIES

    @pytest.mark.asyncio
    async def test_batch_without_logo_is_ignored(self, test_client):
        response = await test_client.post("/api/studio/batch")

        assert response.status_code == 202
        data = response.json()
        assert data["started"] is False
        assert data["mockups"] == []
        assert data["summary"]["has_logo"] is False

    @pytest.mark.asyncio
    async def test_empty_logo_upload_is_ignored(self, test_client):
        response = await test_client.put("/api/studio/logo", json={"image": ""})

        assert response.status_code == 200
        assert response.json()["has_logo"] is False

    @pytest.mark.asyncio
    async def test_full_batch(self, test_client, studio, image_service):
        await test_client.put("/api/studio/logo", json={"image": LOGO})

        response = await test_client.post("/api/studio/batch")

        data = response.json()
        assert data["started"] is True
        assert data["summary"]["is_generating"] is True
        assert len(data["mockups"]) == len(PRODUCT_TEMPLATES)
        assert all(m["status"] == "queued" for m in data["mockups"])

        second = await test_client.post("/api/studio/batch")
        assert second.json()["started"] is False

        await wait_for_batch(studio)
        state = (await test_client.get("/api/studio")).json()
        assert state["summary"]["progress"] == 100
        assert state["summary"]["ready"] == len(PRODUCT_TEMPLATES)
        assert state["summary"]["is_generating"] is False
        assert len(image_service.generate_calls) == len(PRODUCT_TEMPLATES)

    @pytest.mark.asyncio
    async def test_retry_failed_mockup(self, test_client, studio, image_service):
        cap_prompt = PRODUCT_TEMPLATES[-2].prompt
        image_service.failures[cap_prompt] = RateLimitError("Rate limit exceeded.", 429)
        state = await generate_suite(test_client, studio)
        failed = next(m for m in state["mockups"] if m["status"] == "error")
        assert state["summary"]["errors"] == 1
        assert state["summary"]["progress"] == 100

        image_service.failures.clear()
        response = await test_client.post(f"/api/studio/mockups/{failed['id']}/retry")

        assert response.status_code == 202
        assert response.json()["started"] is True
        assert response.json()["mockup"]["status"] == "generating"

        conflict = await test_client.post(f"/api/studio/mockups/{failed['id']}/retry")
        assert conflict.status_code == 409

        await asyncio.sleep(0.01)
        retried = (await test_client.get(f"/api/studio/mockups/{failed['id']}")).json()
        assert retried["status"] == "ready"
        assert image_service.generate_calls[-1][1] == cap_prompt

    @pytest.mark.asyncio
    async def test_unknown_mockup(self, test_client):
        assert (await test_client.get("/api/studio/mockups/m-nope")).status_code == 404
        assert (await test_client.post("/api/studio/mockups/m-nope/retry")).status_code == 404
        response = await test_client.post(
            "/api/studio/mockups/m-nope/edits/preset", json={"kind": "rotation", "preset_id": "top"}
        )
        assert response.status_code == 404


class TestEditing:
    @pytest.mark.asyncio
    async def test_draft_round_trip(self, test_client, studio, image_service):
        state = await generate_suite(test_client, studio)
        mockup_id = state["mockups"][0]["id"]

        response = await test_client.put(
            f"/api/studio/mockups/{mockup_id}/draft", json={"text": "Make it gold"}
        )
        assert response.json()["draft_instruction"] == "Make it gold"

        response = await test_client.post(f"/api/studio/mockups/{mockup_id}/edits/draft")

        assert response.status_code == 200
        data = response.json()
        assert data["mockup"]["draft_instruction"] is None
        assert data["mockup"]["image_url"] != state["mockups"][0]["image_url"]
        assert data["error"] is None
        assert image_service.edit_calls[-1][1] == "Make it gold"

    @pytest.mark.asyncio
    async def test_snippet_fills_draft(self, test_client, studio, image_service):
        state = await generate_suite(test_client, studio)
        mockup_id = state["mockups"][1]["id"]
        snippet = PROMPT_CATEGORIES["Atmosphere"][0]

        response = await test_client.post(
            f"/api/studio/mockups/{mockup_id}/draft/snippet", json={"snippet": snippet}
        )

        assert response.status_code == 200
        assert response.json()["draft_instruction"] == snippet
        assert image_service.edit_calls == []

        bad = await test_client.post(
            f"/api/studio/mockups/{mockup_id}/draft/snippet", json={"snippet": "Anything"}
        )
        assert bad.status_code == 400

    @pytest.mark.asyncio
    async def test_preset_edit(self, test_client, studio):
        state = await generate_suite(test_client, studio)
        mockup_id = state["mockups"][0]["id"]

        response = await test_client.post(
            f"/api/studio/mockups/{mockup_id}/edits/preset",
            json={"kind": "background", "preset_id": "vivid-blue"},
        )

        assert response.status_code == 200
        assert response.json()["busy"] is False
        assert response.json()["mockup"]["status"] == "ready"

    @pytest.mark.asyncio
    async def test_unknown_preset_is_bad_request(self, test_client, studio):
        state = await generate_suite(test_client, studio)

        response = await test_client.post(
            f"/api/studio/mockups/{state['mockups'][0]['id']}/edits/preset",
            json={"kind": "lighting", "preset_id": "moonlight"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_safety_refusal(self, test_client, studio, image_service):
        state = await generate_suite(test_client, studio)
        mockup = state["mockups"][0]
        image_service.failures["battle"] = SafetyBlockedError(
            "Blocked due to potential issues: Violence.", categories=["Violence"]
        )
        await test_client.put(
            f"/api/studio/mockups/{mockup['id']}/draft", json={"text": "Add a battle scene"}
        )

        response = await test_client.post(f"/api/studio/mockups/{mockup['id']}/edits/draft")

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert detail["is_safety"] is True
        assert detail["categories"] == ["Violence"]
        assert detail["title"] == "Content Blocked"
        assert detail["retryable"] is False

        editor = (await test_client.get(f"/api/studio/mockups/{mockup['id']}/editor")).json()
        assert editor["error"]["is_safety"] is True
        assert editor["mockup"]["image_url"] == mockup["image_url"]
        assert editor["mockup"]["draft_instruction"] == "Add a battle scene"

        dismissed = await test_client.delete(f"/api/studio/mockups/{mockup['id']}/editor/error")
        assert dismissed.json()["error"] is None

    @pytest.mark.asyncio
    async def test_background_upload(self, test_client, studio, image_service):
        state = await generate_suite(test_client, studio)
        mockup_id = state["mockups"][0]["id"]
        backdrop = png_data_uri((0, 255, 0, 255))

        response = await test_client.post(
            f"/api/studio/mockups/{mockup_id}/edits/background", json={"image": backdrop}
        )

        assert response.status_code == 200
        assert image_service.edit_calls[-1][2] == backdrop

        empty = await test_client.post(
            f"/api/studio/mockups/{mockup_id}/edits/background", json={}
        )
        assert empty.status_code == 200
        assert len(image_service.edit_calls) == 1

    @pytest.mark.asyncio
    async def test_view_transforms(self, test_client, studio, image_service):
        state = await generate_suite(test_client, studio)
        url = f"/api/studio/mockups/{state['mockups'][0]['id']}/view"

        await test_client.post(url, json={"action": "zoom_in"})
        view = (await test_client.post(url, json={"action": "pan", "x": 10, "y": -4})).json()
        assert view["scale"] == 1.25
        assert (view["pan_x"], view["pan_y"]) == (10, -4)

        view = (await test_client.post(url, json={"action": "flip"})).json()
        assert view["flipped"] is True

        view = (
            await test_client.post(url, json={"action": "filter", "filter_name": "Warm"})
        ).json()
        assert view["filter_name"] == "Warm"

        bad = await test_client.post(url, json={"action": "filter", "filter_name": "Infrared"})
        assert bad.status_code == 400

        view = (await test_client.post(url, json={"action": "reset"})).json()
        assert view["scale"] == 1.0
        assert image_service.edit_calls == []


class TestExport:
    @pytest.mark.asyncio
    async def test_zip_export(self, test_client, studio):
        state = await generate_suite(test_client, studio)

        response = await test_client.get("/api/studio/export")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert "merchmagic-suite-" in response.headers["content-disposition"]
        with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
            assert len(zf.namelist()) == len(state["mockups"])

    @pytest.mark.asyncio
    async def test_zip_export_without_ready_mockups(self, test_client):
        response = await test_client.get("/api/studio/export")

        assert response.status_code == 204
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_single_export_before_render_is_conflict(
        self, test_client, studio, image_service
    ):
        image_service.gate = asyncio.Event()
        await test_client.put("/api/studio/logo", json={"image": LOGO})
        started = (await test_client.post("/api/studio/batch")).json()
        queued_id = started["mockups"][-1]["id"]

        response = await test_client.get(f"/api/studio/mockups/{queued_id}/export")

        assert response.status_code == 409
        assert "has no image" in response.json()["detail"]

        image_service.gate.set()
        await wait_for_batch(studio)

    @pytest.mark.asyncio
    async def test_single_export(self, test_client, studio):
        state = await generate_suite(test_client, studio)
        mockup_id = state["mockups"][3]["id"]
        await test_client.post(
            f"/api/studio/mockups/{mockup_id}/view",
            json={"action": "filter", "filter_name": "Grayscale"},
        )

        response = await test_client.get(f"/api/studio/mockups/{mockup_id}/export")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert "merchmagic-coffee-mug-" in response.headers["content-disposition"]
        assert response.content.startswith(b"\x89PNG")


class TestTheme:
    @pytest.mark.asyncio
    async def test_theme_preference(self, test_client):
        assert (await test_client.get("/api/studio/preferences/theme")).json() == {
            "theme": "light"
        }

        toggled = await test_client.post("/api/studio/preferences/theme/toggle")
        assert toggled.json() == {"theme": "dark"}

        response = await test_client.put("/api/studio/preferences/theme", json={"theme": "light"})
        assert response.json() == {"theme": "light"}

        invalid = await test_client.put("/api/studio/preferences/theme", json={"theme": "blue"})
        assert invalid.status_code == 422
