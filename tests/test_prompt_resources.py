"""Tests for the resource catalog."""

import pytest

from dingdong.resources import ResourceCatalog, ResourceDescriptor
from dingdong.resources import prompt_resources


class TestResourceCatalog:

    def test_lists_welcome_prompt(self, catalog):
        resources = catalog.list_resources()

        assert len(resources) == 1
        assert resources[0].to_listing() == {
            "uri": "prompt://welcome",
            "name": "Welcome",
            "description": "Welcome message and usage instructions for the MCP server",
            "mimeType": "text/plain",
        }

    def test_has_resource(self, catalog):
        assert catalog.has_resource("prompt://welcome")
        assert not catalog.has_resource("prompt://missing")

    @pytest.mark.asyncio
    async def test_read_welcome(self, catalog):
        content = await catalog.read_resource("prompt://welcome")

        assert content.uri == "prompt://welcome"
        assert content.mime_type == "text/plain"
        assert "Welcome" in content.text

    @pytest.mark.asyncio
    async def test_read_unknown_returns_none(self, catalog):
        assert await catalog.read_resource("prompt://missing") is None

    @pytest.mark.asyncio
    async def test_welcome_fallback_when_file_missing(self, monkeypatch, tmp_path):
        monkeypatch.setattr(prompt_resources, "PROMPTS_DIR", tmp_path)

        text = await prompt_resources.load_welcome_prompt()

        assert text == "Welcome to the DingDong Notification Server!"

    @pytest.mark.asyncio
    async def test_content_is_loaded_on_every_read(self):
        calls = []

        async def loader():
            calls.append(1)
            return f"read {len(calls)}"

        catalog = ResourceCatalog([
            ResourceDescriptor(uri="doc://counter", name="Counter", description="Counts", loader=loader)
        ])

        first = await catalog.read_resource("doc://counter")
        second = await catalog.read_resource("doc://counter")

        assert first.text == "read 1"
        assert second.text == "read 2"

    def test_mime_type_defaults_to_text_plain(self):
        async def loader():
            return ""

        descriptor = ResourceDescriptor(
            uri="doc://x", name="X", description="X", loader=loader, mime_type=None
        )
        assert descriptor.to_listing()["mimeType"] == "text/plain"
