"""Tests for the CurseForge and Modrinth API clients."""

import asyncio
import urllib.parse

import pytest

from common.errors import MalformedInputError
from constants import Constants
from registry.curseforge import CurseForgeClient, files_cache_key, parse_project_id
from registry.modrinth import ModrinthClient, versions_cache_key
from versioning.cache import TTLCache

CF_MOD = "https://api.curseforge.com/v1/mods/238222"
CF_FILES = "https://api.curseforge.com/v1/mods/238222/files"
MR_PROJECT = "https://api.modrinth.com/v2/project/sodium"
MR_VERSIONS = "https://api.modrinth.com/v2/project/sodium/version"


def _query(url):
    return dict(urllib.parse.parse_qsl(urllib.parse.urlsplit(url).query))


def _page_server(total):
    """Serve ``total`` files in pages honouring pageSize/index."""
    def serve(url):
        params = _query(url)
        start, size = int(params["index"]), int(params["pageSize"])
        return {"data": [{"id": i} for i in range(start, min(start + size, total))]}
    return serve


class TestParseProjectId:
    """Tests for parse_project_id."""

    def test_numeric(self):
        assert parse_project_id(" 238222 ") == 238222
        assert parse_project_id(42) == 42

    def test_non_numeric(self):
        with pytest.raises(MalformedInputError, match="Selected ID must be a number"):
            parse_project_id("abc", what="Selected ID")


class TestCurseForgeClient:
    """Tests for CurseForgeClient."""

    def test_sends_api_key(self, fake_http):
        http = fake_http({CF_MOD: {"data": {"id": 238222, "slug": "jei"}}})
        client = CurseForgeClient(http, "secret")

        assert asyncio.run(client.get_project_meta(238222)) == ("jei", 238222)
        assert http.calls[0][1] == {"x-api-key": "secret"}

    def test_missing_data_object(self, fake_http):
        client = CurseForgeClient(fake_http({CF_MOD: {"error": "x"}}), "k")

        with pytest.raises(MalformedInputError):
            asyncio.run(client.get_mod(238222))

    def test_mod_brief_prefers_thumbnail(self, fake_http):
        http = fake_http({CF_MOD: {"data": {"name": "Just Enough Items", "slug": "jei",
                                            "logo": {"thumbnailUrl": "https://t/jei.png", "url": "https://f/jei.png"}}}})
        client = CurseForgeClient(http, "k")

        assert asyncio.run(client.get_mod_brief(238222)) == ("Just Enough Items", "https://t/jei.png")

    def test_mod_brief_without_logo(self, fake_http):
        client = CurseForgeClient(fake_http({CF_MOD: {"data": {"name": "JEI"}}}), "k")

        assert asyncio.run(client.get_mod_brief(238222)) == ("JEI", None)

    def test_pagination_stops_on_short_page(self, fake_http):
        http = fake_http({CF_FILES: _page_server(60)})
        client = CurseForgeClient(http, "k")

        files = asyncio.run(client.get_files(238222, "1.20.1", 1))

        assert len(files) == 60
        assert [_query(url)["index"] for url, _ in http.calls] == ["0", "50"]
        first = _query(http.calls[0][0])
        assert first["gameVersion"] == "1.20.1"
        assert first["modLoaderType"] == "1"
        assert first["pageSize"] == str(Constants.CF_FILES_PAGE_SIZE)

    def test_pagination_capped(self, fake_http):
        http = fake_http({CF_FILES: _page_server(10_000)})
        client = CurseForgeClient(http, "k")

        files = asyncio.run(client.get_files(238222, "1.20.1", 1))

        assert len(files) == Constants.CF_FILES_MAX
        assert len(http.calls) == Constants.CF_FILES_MAX // Constants.CF_FILES_PAGE_SIZE

    def test_files_not_a_list(self, fake_http):
        client = CurseForgeClient(fake_http({CF_FILES: {"data": {}}}), "k")

        with pytest.raises(MalformedInputError):
            asyncio.run(client.get_files(238222, "1.20.1", 1))

    def test_files_served_from_cache(self, fake_http):
        http = fake_http({CF_FILES: _page_server(3)})
        cache = TTLCache()
        client = CurseForgeClient(http, "k", cache=cache)

        first = asyncio.run(client.get_files(238222, "1.20.1", 4, use_cache=True))
        second = asyncio.run(client.get_files(238222, "1.20.1", 4, use_cache=True))

        assert first == second
        assert len(http.calls) == 1
        assert cache.get(files_cache_key(238222, "1.20.1", 4)) == first


class TestModrinthClient:
    """Tests for ModrinthClient."""

    versions = [
        {"id": "a", "game_versions": ["1.20.1"], "loaders": ["fabric"]},
        {"id": "b", "game_versions": ["1.20.1"], "loaders": ["forge"]},
        {"id": "c", "game_versions": ["1.19.4"], "loaders": ["Fabric"]},
    ]

    def test_project_brief(self, fake_http):
        http = fake_http({MR_PROJECT: {"title": "Sodium", "icon_url": "https://cdn/sodium.png"}})

        assert asyncio.run(ModrinthClient(http).get_project_brief("sodium")) == (
            "Sodium", "https://cdn/sodium.png"
        )

    def test_project_brief_without_title(self, fake_http):
        http = fake_http({MR_PROJECT: {"slug": "sodium"}})

        with pytest.raises(MalformedInputError):
            asyncio.run(ModrinthClient(http).get_project_brief("sodium"))

    def test_version_listing_must_be_list(self, fake_http):
        http = fake_http({MR_VERSIONS: {"error": "not_found"}})

        with pytest.raises(MalformedInputError):
            asyncio.run(ModrinthClient(http).get_versions("sodium"))

    def test_fetch_refreshes_cache(self, fake_http):
        cache = TTLCache()
        client = ModrinthClient(fake_http({MR_VERSIONS: self.versions}), cache=cache)

        asyncio.run(client.get_versions("sodium"))

        assert cache.get(versions_cache_key("sodium")) == self.versions

    def test_filtered_server_side(self, fake_http):
        http = fake_http({MR_VERSIONS: self.versions[:1]})

        result = asyncio.run(ModrinthClient(http).get_versions_filtered("sodium", "1.20.1", "Fabric"))

        assert result == self.versions[:1]
        params = _query(http.calls[0][0])
        assert params == {"game_versions": '["1.20.1"]', "loaders": '["fabric"]'}

    def test_filtered_from_cache(self, fake_http):
        cache = TTLCache()
        cache.set(versions_cache_key("sodium"), self.versions)
        http = fake_http({})

        result = asyncio.run(
            ModrinthClient(http, cache=cache).get_versions_filtered("sodium", "1.20.1", "fabric", use_cache=True)
        )

        assert [v["id"] for v in result] == ["a"]
        assert http.calls == []
