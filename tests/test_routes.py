"""HTTP tests against the in-memory roster store."""
from __future__ import annotations

import uuid

import pytest
from fastapi.testclient import TestClient

import legacylink.app as app_module
from legacylink.app import RequestTracker, app
from legacylink.family.db import InMemoryRosterStore, get_store

API = "/api/v1/trees"


@pytest.fixture
def store():
    return InMemoryRosterStore()


@pytest.fixture
def client(store, monkeypatch):
    monkeypatch.delenv("LL_OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("LL_ANTHROPIC_API_KEY", raising=False)
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def tree_id(client) -> str:
    resp = client.post(API, json={"title": "Byrne family"})
    assert resp.status_code == 201
    return resp.json()["id"]


def add_member(client, tree_id: str, name: str, **fields) -> str:
    resp = client.post(f"{API}/{tree_id}/members", json={"name": name, **fields})
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def link(client, tree_id: str, from_id: str, to_id: str, kind: str):
    return client.post(
        f"{API}/{tree_id}/relationships",
        json={"from_id": from_id, "to_id": to_id, "kind": kind},
    )


@pytest.fixture
def small_family(client, tree_id) -> dict[str, str]:
    """Alice and Ben are married with a son, Carl."""
    ids = {
        "alice": add_member(client, tree_id, "Alice Byrne", gender="female", date_of_birth="1950-02-03"),
        "ben": add_member(client, tree_id, "Ben Byrne", gender="male", date_of_birth="1948-06-07"),
        "carl": add_member(client, tree_id, "Carl Byrne", gender="male", date_of_birth="1978-11-30"),
    }
    assert link(client, tree_id, ids["alice"], ids["ben"], "spouse").status_code == 201
    assert link(client, tree_id, ids["alice"], ids["carl"], "parent").status_code == 201
    assert link(client, tree_id, ids["ben"], ids["carl"], "parent").status_code == 201
    return ids


class TestTrees:
    """Tree CRUD."""

    def test_create_list_get_delete(self, client, tree_id):
        assert [t["id"] for t in client.get(API).json()] == [tree_id]

        detail = client.get(f"{API}/{tree_id}").json()
        assert detail["tree"]["title"] == "Byrne family"
        assert detail["members"] == []

        assert client.delete(f"{API}/{tree_id}").json() == {"deleted": True}
        assert client.get(f"{API}/{tree_id}").status_code == 404
        assert client.delete(f"{API}/{tree_id}").status_code == 404

    def test_unknown_tree(self, client):
        resp = client.get(f"{API}/{uuid.uuid4()}/layout")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Tree not found"

    def test_invalid_tree_id(self, client):
        assert client.get(f"{API}/not-a-uuid").status_code == 422


class TestMembers:
    """Member CRUD."""

    def test_create_defaults(self, client, tree_id):
        member_id = add_member(client, tree_id, "Dora")
        member = client.get(f"{API}/{tree_id}").json()["members"][0]
        assert member["id"] == member_id
        assert member["gender"] == "other"
        assert member["relationships"] == {"parents": [], "children": [], "siblings": [], "spouses": []}

    def test_blank_name_rejected(self, client, tree_id):
        resp = client.post(f"{API}/{tree_id}/members", json={"name": ""})
        assert resp.status_code == 422

    def test_update(self, client, tree_id):
        member_id = add_member(client, tree_id, "Dora", occupation="Nurse")
        resp = client.patch(
            f"{API}/{tree_id}/members/{member_id}",
            json={"date_of_birth": "1931-05-06", "occupation": None},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["date_of_birth"] == "1931-05-06"
        assert body["occupation"] is None
        assert body["name"] == "Dora"

    def test_update_null_name_rejected(self, client, tree_id):
        member_id = add_member(client, tree_id, "Dora")
        resp = client.patch(f"{API}/{tree_id}/members/{member_id}", json={"name": None})
        assert resp.status_code == 400

    def test_update_unknown_member(self, client, tree_id):
        resp = client.patch(f"{API}/{tree_id}/members/ghost", json={"name": "X"})
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Member not found: ghost"

    def test_delete_cascades(self, client, tree_id, small_family):
        resp = client.delete(f"{API}/{tree_id}/members/{small_family['carl']}")
        assert resp.status_code == 200
        members = client.get(f"{API}/{tree_id}").json()["members"]
        assert len(members) == 2
        assert all(m["relationships"]["children"] == [] for m in members)


class TestRelationships:
    """Linking and kinship labels."""

    def test_link_writes_both_sides(self, client, tree_id, small_family):
        members = {m["id"]: m for m in client.get(f"{API}/{tree_id}").json()["members"]}
        carl = members[small_family["carl"]]
        assert carl["relationships"]["parents"] == [small_family["alice"], small_family["ben"]]
        assert members[small_family["ben"]]["relationships"]["spouses"] == [small_family["alice"]]

    def test_link_returns_both_members(self, client, tree_id):
        a = add_member(client, tree_id, "A")
        b = add_member(client, tree_id, "B")
        resp = link(client, tree_id, a, b, "sibling")
        assert resp.status_code == 201
        assert sorted(m["id"] for m in resp.json()) == sorted([a, b])

    def test_link_errors(self, client, tree_id):
        a = add_member(client, tree_id, "A")
        assert link(client, tree_id, a, a, "spouse").status_code == 400
        assert link(client, tree_id, a, "ghost", "spouse").status_code == 404
        assert link(client, tree_id, a, "ghost", "cousin").status_code == 422

    def test_unlink(self, client, tree_id, small_family):
        resp = client.post(
            f"{API}/{tree_id}/relationships/remove",
            json={"a_id": small_family["alice"], "b_id": small_family["ben"]},
        )
        assert resp.status_code == 200
        assert all(m["relationships"]["spouses"] == [] for m in resp.json())

    def test_kinship(self, client, tree_id, small_family):
        resp = client.get(
            f"{API}/{tree_id}/kinship",
            params={"person": small_family["alice"], "relative_to": small_family["carl"]},
        )
        assert resp.json()["relationship"] == "Mother"
        assert resp.json()["description"] == "Parent"

    def test_member_relationships(self, client, tree_id, small_family):
        resp = client.get(f"{API}/{tree_id}/members/{small_family['alice']}/relationships")
        labels = {r["name"]: r["relationship"] for r in resp.json()}
        assert labels == {"Ben Byrne": "Husband", "Carl Byrne": "Son"}

    def test_suggestions(self, client, tree_id, small_family):
        dora = add_member(client, tree_id, "Dora Byrne", date_of_birth="1951-01-01")
        resp = client.get(f"{API}/{tree_id}/members/{dora}/suggestions")
        pairs = {(s["name"], s["suggested_relationship"], s["confidence"]) for s in resp.json()}
        assert ("Alice Byrne", "sibling", "low") in pairs
        assert ("Carl Byrne", "parent", "medium") in pairs


class TestViews:
    """Layout, search, timeline and insights."""

    def test_layout(self, client, tree_id, small_family):
        resp = client.get(f"{API}/{tree_id}/layout", params={"focus": small_family["carl"], "style": "tree"})
        body = resp.json()
        gens = {n["name"]: n["generation"] for n in body["nodes"]}
        assert gens == {"Alice Byrne": 1, "Ben Byrne": 1, "Carl Byrne": 0}
        types = sorted(c["type"] for c in body["connections"])
        assert types == ["parent", "parent", "spouse"]

    def test_layout_width_centres_rows(self, client, tree_id, small_family):
        resp = client.get(f"{API}/{tree_id}/layout", params={"width": 600})
        carl = next(n for n in resp.json()["nodes"] if n["name"] == "Carl Byrne")
        assert carl["x"] == 300.0

    def test_search(self, client, tree_id, small_family):
        resp = client.post(f"{API}/{tree_id}/search", json={"query": "carl"})
        assert [r["member"]["name"] for r in resp.json()] == ["Carl Byrne"]

    def test_timeline(self, client, tree_id, small_family):
        events = client.get(f"{API}/{tree_id}/timeline").json()
        assert [e["type"] for e in events] == ["birth", "marriage", "birth", "birth"]
        years = client.get(f"{API}/{tree_id}/timeline/years").json()
        assert [y["year"] for y in years] == [1978, 1975, 1950, 1948]

    def test_insights(self, client, tree_id, small_family):
        types = {i["type"] for i in client.get(f"{API}/{tree_id}/insights").json()}
        assert "missing_info" in types
        assert "connection_suggestion" not in types


class TestExportAndBiography:

    def test_html_export(self, client, tree_id, small_family):
        resp = client.post(
            f"{API}/{tree_id}/export/html",
            json={"title": "Byrnes", "paper_size": "Letter", "orientation": "landscape"},
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert resp.headers["x-page-width"] == "792"
        assert "<h1>Byrnes</h1>" in resp.text

    def test_json_export(self, client, tree_id, small_family):
        body = client.post(f"{API}/{tree_id}/export/json", json={}).json()
        assert body["filename"].startswith("family-tree-backup-")
        assert body["data"]["metadata"]["totalMembers"] == 3

    def test_biography_saved(self, client, tree_id, small_family):
        resp = client.post(
            f"{API}/{tree_id}/members/{small_family['carl']}/biography",
            json={"save": True},
        )
        body = resp.json()
        assert body["source"] == "template"
        assert "child of Alice Byrne and Ben Byrne" in body["biography"]
        members = {m["id"]: m for m in client.get(f"{API}/{tree_id}").json()["members"]}
        assert members[small_family["carl"]]["biography"] == body["biography"]


class TestCoreRoutes:

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["biography"] == "template"

    def test_health_reports_llm_biography(self, client, monkeypatch):
        monkeypatch.setenv("LL_OPENAI_API_KEY", "sk-test")
        assert client.get("/health").json()["biography"] == "llm"

    def test_metrics(self, client, store, monkeypatch, tree_id):
        monkeypatch.setattr(app_module, "get_store", lambda: store)
        metrics = {m["key"]: m["value"] for m in client.get("/metrics").json()["metrics"]}
        assert metrics["total_trees"] == 1
        assert metrics["total_members"] == 0
        assert metrics["one_sided_edges"] == 0
        assert "memory_rss" in metrics


class TestRequestTracker:

    def test_counts_requests_and_errors(self):
        tracker = RequestTracker(window=10.0)
        tracker.record()
        tracker.record(failed=True)
        assert tracker.rate() == 0.2
        assert tracker.errors() == 1
        assert tracker.sample() == [0.2]
        assert tracker.sample() == [0.2, 0.2]
