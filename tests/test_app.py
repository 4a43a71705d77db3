"""
Tests for the Flask JSON API in web_dashboard/app.py.
"""
import pytest

import app as web
from hap_intel import run_batch as batch_module
from hap_intel.errors import ConfigurationError, MalformedResponse, UpstreamError
from hap_intel.history import HistoryStore, MemoryStorage

from tests.fixtures.profile_fixtures import SAMPLE_PROFILE


@pytest.fixture
def store():
    return HistoryStore(MemoryStorage()).load()


@pytest.fixture
def client(store, monkeypatch):
    monkeypatch.setitem(web.app.config, "HISTORY_STORE", store)
    web.app.config["TESTING"] = True
    return web.app.test_client()


def _fake_fetch(fail_names=(), error=None):
    async def fetch(name, city, **kwargs):
        if name in fail_names:
            raise error or UpstreamError(500, "boom")
        return {"businessName": name, "city": city}
    return fetch


class TestBusinessProfile:
    def test_fetch_and_store(self, client, store, monkeypatch):
        monkeypatch.setattr(web, "fetch_profile", _fake_fetch())
        resp = client.post("/api/business-profile", json={"businessName": " Bar Uno ", "city": "Madrid"})

        assert resp.status_code == 200
        assert resp.get_json()["businessName"] == "Bar Uno"
        assert resp.get_json()["crmStatus"] == "Nuevo"
        assert store.list()[0]["businessName"] == "Bar Uno"

    @pytest.mark.parametrize("body", [{}, {"businessName": "Bar Uno"}, {"businessName": " ", "city": "Madrid"}])
    def test_missing_fields(self, client, body):
        resp = client.post("/api/business-profile", json=body)
        assert resp.status_code == 400

    def test_get_not_allowed(self, client):
        assert client.get("/api/business-profile").status_code == 405

    @pytest.mark.parametrize("error,status", [
        (MalformedResponse(), 502),
        (UpstreamError(500, "boom"), 502),
        (UpstreamError(None, "timeout"), 502),
        (UpstreamError(400, "bad request"), 400),
    ])
    def test_fetch_errors(self, client, store, monkeypatch, error, status):
        monkeypatch.setattr(web, "fetch_profile", _fake_fetch({"Bar Uno"}, error))
        resp = client.post("/api/business-profile", json={"businessName": "Bar Uno", "city": "Madrid"})
        assert resp.status_code == status
        assert resp.get_json()["error"] == str(error)
        assert len(store) == 0

    def test_configuration_error(self, client, monkeypatch):
        monkeypatch.setattr(web, "fetch_profile", _fake_fetch({"Bar Uno"}, ConfigurationError("GEMINI_API_KEY is not configured")))
        resp = client.post("/api/business-profile", json={"businessName": "Bar Uno", "city": "Madrid"})
        assert resp.status_code == 500
        assert "GEMINI_API_KEY" in resp.get_json()["error"]


class TestBatch:
    def test_runs_all_entries(self, client, store, monkeypatch):
        monkeypatch.setattr(batch_module, "fetch_profile", _fake_fetch())
        resp = client.post("/api/batch", json={"text": "A\nB, Valencia\n\nC", "city": "Sevilla"})

        data = resp.get_json()
        assert resp.status_code == 200
        assert [p["city"] for p in data["profiles"]] == ["Sevilla", "Valencia", "Sevilla"]
        assert data["progress"] == {"current": 3, "total": 3}
        assert len(store) == 3

    def test_abort_reports_progress(self, client, store, monkeypatch):
        monkeypatch.setattr(batch_module, "fetch_profile", _fake_fetch({"B"}))
        resp = client.post("/api/batch", json={"text": "A\nB\nC"})

        data = resp.get_json()
        assert resp.status_code == 502
        assert data["progress"] == {"current": 1, "total": 3}
        assert "(B)" in data["error"]
        assert [p["businessName"] for p in store.list()] == ["A"]

    def test_empty_text(self, client):
        assert client.post("/api/batch", json={"text": "  \n "}).status_code == 400

    def test_structured_entries_use_their_own_city(self, client, store, monkeypatch):
        monkeypatch.setattr(batch_module, "fetch_profile", _fake_fetch())
        entries = [{"name": "A", "city": "Bilbao"}, {"name": "B, Valencia", "city": "Bilbao"}, {"name": "C"}, {"name": " "}]
        resp = client.post("/api/batch", json={"entries": entries, "city": "Sevilla"})

        data = resp.get_json()
        assert resp.status_code == 200
        assert [(p["businessName"], p["city"]) for p in data["profiles"]] == [
            ("A", "Bilbao"), ("B", "Valencia"), ("C", "Sevilla"),
        ]
        assert data["progress"] == {"current": 3, "total": 3}

    @pytest.mark.parametrize("entries", ["A\nB", [["A", "Madrid"]], [{"name": ""}], []])
    def test_bad_entries(self, client, entries):
        assert client.post("/api/batch", json={"entries": entries}).status_code == 400


class TestHistory:
    @pytest.fixture
    def filled(self, store):
        store.upsert(dict(SAMPLE_PROFILE))
        store.upsert({"businessName": "Casa Lucio", "city": "Madrid", "crmStatus": "Contactado"})
        store.upsert({"businessName": "La Pepica", "city": "Valencia"})
        return store

    def test_list_with_filters(self, client, filled):
        assert [e["index"] for e in client.get("/api/history").get_json()] == [0, 1, 2]
        data = client.get("/api/history?status=Contactado").get_json()
        assert [(e["index"], e["profile"]["businessName"]) for e in data] == [(1, "Casa Lucio")]
        data = client.get("/api/history?city=madrid").get_json()
        assert [e["index"] for e in data] == [1, 2]

    def test_update(self, client, filled):
        resp = client.patch("/api/history/2", json={"crmStatus": "Cualificado", "notes": "CFO confirmada"})
        assert resp.status_code == 200
        assert resp.get_json()["businessName"] == "Bar Uno"
        assert filled.get(2)["notes"] == "CFO confirmada"

    def test_update_requires_object(self, client, filled):
        assert client.patch("/api/history/0", json=["x"]).status_code == 400

    def test_update_rejects_unknown_status(self, client, filled):
        resp = client.patch("/api/history/0", json={"crmStatus": "Bogus"})
        assert resp.status_code == 400
        assert "crmStatus" in resp.get_json()["error"]
        assert filled.get(0)["crmStatus"] == "Nuevo"

    @pytest.mark.parametrize("fields", [{"businessName": "Otro"}, {"city": "Sevilla", "notes": "x"}])
    def test_update_rejects_identity_fields(self, client, filled, fields):
        assert client.patch("/api/history/0", json=fields).status_code == 400
        assert (filled.get(0)["businessName"], filled.get(0)["city"]) == ("La Pepica", "Valencia")

    def test_insights_with_non_finite_fit_score(self, client, filled):
        filled.upsert({"businessName": "X", "city": "Madrid", "honeiAnalysis": {"fitScore": float("nan")}})
        resp = client.get("/api/history/0/insights")
        assert resp.status_code == 200
        assert resp.get_json()["subScores"]["volumePotential"] == 0

    def test_delete(self, client, filled):
        assert client.delete("/api/history/0").status_code == 204
        assert [p["businessName"] for p in filled.list()] == ["Casa Lucio", "Bar Uno"]

    def test_bad_index(self, client, filled):
        assert client.delete("/api/history/9").status_code == 404
        assert client.patch("/api/history/9", json={"notes": "x"}).status_code == 404
        assert client.get("/api/history/9/insights").status_code == 404

    def test_insights(self, client, filled):
        data = client.get("/api/history/2/insights?sender=Laura").get_json()
        assert data["subScores"]["volumePotential"] == 57
        assert data["primaryContact"]["name"] == "Marta López"
        assert "Soy Laura" in data["outreachEmail"]["body"]


class TestVerifyEmail:
    def test_delegates(self, client, monkeypatch):
        async def fake(email):
            return {"email": email, "verified": True, "status": "DELIVERABLE", "statusDetail": "ok", "state": "verified"}
        monkeypatch.setattr(web, "verify_email", fake)
        resp = client.post("/api/verify-email", json={"email": "a@b.es"})
        assert resp.get_json()["state"] == "verified"

    def test_missing_email(self, client, monkeypatch):
        monkeypatch.setenv("ABSTRACT_EMAIL_API_KEY", "k")
        assert client.post("/api/verify-email", json={}).status_code == 400

    def test_missing_key(self, client, monkeypatch):
        monkeypatch.delenv("ABSTRACT_EMAIL_API_KEY", raising=False)
        assert client.post("/api/verify-email", json={"email": "a@b.es"}).status_code == 500
