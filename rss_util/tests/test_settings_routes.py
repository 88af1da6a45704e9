"""
Tests for settings routes: API key, feature flags, data mirror.
"""

import json


class TestSecretRoutes:
    """Tests for /secret."""

    def test_unset_secret_is_null(self, client):
        body = client.get("/secret").json()
        assert body["success"] is True
        assert body["data"] is None

    def test_round_trip(self, client, app_state):
        response = client.put("/secret", json={"api_key": "sk-test-123"})
        assert response.json()["success"] is True

        assert client.get("/secret").json()["data"] == "sk-test-123"

        # Only the sealed blob is stored
        raw = (app_state.store.data_dir / "settings.json").read_text()
        assert "sk-test-123" not in raw
        assert json.loads(raw)["encryptedApiKey"]

    def test_empty_key_clears(self, client, app_state):
        client.put("/secret", json={"api_key": "sk-test-123"})
        client.put("/secret", json={"api_key": ""})

        assert client.get("/secret").json()["data"] is None
        raw = json.loads((app_state.store.data_dir / "settings.json").read_text())
        assert "encryptedApiKey" not in raw

    def test_undecryptable_secret_is_null(self, client):
        client.put("/settings", json={"encryptedApiKey": "garbage"})
        body = client.get("/secret").json()
        assert body["success"] is True
        assert body["data"] is None


class TestFeatureFlagRoutes:
    """Tests for /feature-flags."""

    def test_defaults_false_and_persisted(self, client, app_state):
        body = client.get("/feature-flags").json()
        assert body["data"] == {
            "aiArticleSummary": False,
            "dataMirror": False,
            "calendarExtraction": False,
        }
        raw = json.loads((app_state.store.data_dir / "settings.json").read_text())
        assert raw["featureFlags"]["dataMirror"] is False

    def test_set_flag(self, client):
        client.put("/feature-flags/dataMirror", json={"enabled": True})
        flags = client.get("/feature-flags").json()["data"]
        assert flags["dataMirror"] is True
        assert flags["aiArticleSummary"] is False

    def test_unknown_flag_kept(self, client):
        client.put("/feature-flags/experimental", json={"enabled": True})
        assert client.get("/feature-flags").json()["data"]["experimental"] is True

    def test_other_settings_preserved(self, client):
        client.put("/settings", json={"theme": "dark"})
        client.put("/feature-flags/dataMirror", json={"enabled": True})
        assert client.get("/settings").json()["data"]["theme"] == "dark"


class TestMirrorRoutes:
    """Tests for /mirror/*."""

    def test_defaults(self, client):
        assert client.get("/mirror/directory").json()["data"] is None
        assert client.get("/mirror/structured").json()["data"] is False

    def test_set_and_clear_directory(self, client, temp_mirror_dir):
        client.put("/mirror/directory", json={"directory": str(temp_mirror_dir)})
        assert client.get("/mirror/directory").json()["data"] == str(temp_mirror_dir)

        client.put("/mirror/directory", json={"directory": ""})
        assert client.get("/mirror/directory").json()["data"] is None

    def test_sync_disabled_is_skipped(self, client):
        body = client.post("/mirror/sync").json()
        assert body["success"] is True
        assert body["data"]["skipped"] is True

    def test_structured_sync_end_to_end(self, client, temp_mirror_dir):
        client.put("/feeds", json=[{"id": "f1", "title": "Demo", "url": "https://example.com/rss"}])
        client.put("/feature-flags/dataMirror", json={"enabled": True})
        client.put("/mirror/directory", json={"directory": str(temp_mirror_dir)})
        client.put("/mirror/structured", json={"structured": True})

        body = client.post("/mirror/sync").json()

        assert body["success"] is True
        assert body["data"]["mode"] == "structured"
        assert body["data"]["written"] >= 1
        text = (temp_mirror_dir / "feeds" / "Demo.md").read_text(encoding="utf-8")
        assert 'title: "Demo"' in text
        assert "type: feed" in text

    def test_raw_sync(self, client, temp_mirror_dir):
        client.put("/feeds", json=[{"id": "f1", "title": "Demo"}])
        client.put("/feature-flags/dataMirror", json={"enabled": True})
        client.put("/mirror/directory", json={"directory": str(temp_mirror_dir)})

        body = client.post("/mirror/sync").json()

        assert body["data"]["mode"] == "raw"
        assert json.loads((temp_mirror_dir / "feeds.json").read_text()) == [{"id": "f1", "title": "Demo"}]

    def test_sync_into_data_dir_fails(self, client, app_state):
        client.put("/feature-flags/dataMirror", json={"enabled": True})
        client.put("/mirror/directory", json={"directory": str(app_state.store.data_dir / "m")})

        body = client.post("/mirror/sync").json()

        assert body["success"] is False
        assert "outside the data directory" in body["error"]

    def test_sync_with_unhashable_category_id(self, client, temp_mirror_dir):
        client.put("/feeds", json=[{"id": "f1", "title": "Demo"}])
        client.put("/json/categories.json", json=[{"id": ["c1"], "name": "Tech"}])
        client.put("/feature-flags/dataMirror", json={"enabled": True})
        client.put("/mirror/directory", json={"directory": str(temp_mirror_dir)})
        client.put("/mirror/structured", json={"structured": True})

        response = client.post("/mirror/sync")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert (temp_mirror_dir / "feeds" / "Demo.md").exists()
