"""Tests for the copy content API endpoints.

Covers:
- GET|POST /copy-translated-content/get-elements
- POST /copy-translated-content/copy
- token gate and backend user resolution
"""

from unittest.mock import patch

import pytest
from flask import Flask
from werkzeug.datastructures import MultiDict

from copy_translated_content.api.validation import _flatten
from copy_translated_content.content import CopyOrchestrator, ElementQueryService
from copy_translated_content.core_setup import register_blueprints


@pytest.fixture
def services(pages):
    return {
        "record_store": pages,
        "element_query_service": ElementQueryService(pages),
        "copy_orchestrator": CopyOrchestrator(pages),
    }


@pytest.fixture
def client(services):
    app = Flask(__name__)
    app.config["TESTING"] = True
    register_blueprints(app, services)
    return app.test_client()


@pytest.fixture
def headers(editor):
    return {"X-Backend-User": str(editor.uid)}


class TestGetElements:

    def test_get_with_query_string(self, client, headers, make_content):
        a = make_content(10, language=1, col_pos=0, sorting=1, header="A", ctype="text")
        c = make_content(10, language=1, col_pos=3, sorting=1, header="C", ctype="image")

        resp = client.get("/copy-translated-content/get-elements?pageId=10&languageId=1", headers=headers)

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["success"] is True
        assert data["contentElements"] == {
            "0": [{"uid": a, "header": "A", "CType": "text", "colPos": 0}],
            "3": [{"uid": c, "header": "C", "CType": "image", "colPos": 3}],
        }

    def test_post_json(self, client, headers, make_content):
        make_content(10, language=0)
        resp = client.post(
            "/copy-translated-content/get-elements",
            json={"pageId": 10, "languageId": 0},
            headers=headers,
        )
        assert resp.status_code == 200
        assert len(resp.get_json()["contentElements"]["0"]) == 1

    def test_post_form(self, client, headers, make_content):
        make_content(10, language=2)
        resp = client.post(
            "/copy-translated-content/get-elements",
            data={"pageId": "10", "languageId": "2"},
            headers=headers,
        )
        assert resp.status_code == 200
        assert "0" in resp.get_json()["contentElements"]

    def test_language_defaults_to_zero(self, client, headers, make_content):
        make_content(10, language=0)
        resp = client.get("/copy-translated-content/get-elements?pageId=10", headers=headers)
        assert resp.status_code == 200
        assert resp.get_json()["contentElements"]

    @pytest.mark.parametrize("query", ["", "pageId=0", "pageId=10&languageId=-1", "pageId=abc"])
    def test_invalid_parameters(self, client, headers, query):
        resp = client.get(f"/copy-translated-content/get-elements?{query}", headers=headers)
        assert resp.status_code == 400
        data = resp.get_json()
        assert data["success"] is False
        assert data["message"] == "Invalid parameters"

    def test_json_body_must_be_object(self, client, headers):
        resp = client.post("/copy-translated-content/get-elements", json=[1, 2], headers=headers)
        assert resp.status_code == 400

    def test_internal_error(self, client, headers, services):
        with patch.object(services["element_query_service"], "list_elements", side_effect=RuntimeError("boom")):
            resp = client.get("/copy-translated-content/get-elements?pageId=10", headers=headers)
        assert resp.status_code == 500
        assert resp.get_json() == {"success": False, "message": "Error: boom"}


class TestCopy:

    def test_copy_json(self, client, headers, pages, make_content):
        a = make_content(10, language=1, sorting=1)
        b = make_content(10, language=1, sorting=2)
        make_content(10, language=1, sorting=3)

        resp = client.post(
            "/copy-translated-content/copy",
            json={
                "sourcePid": 10,
                "targetPid": 20,
                "languageId": 1,
                "targetLanguageUid": 2,
                "elementUids": [a, b],
            },
            headers=headers,
        )

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["success"] is True
        assert data["count"] == 2
        assert data["message"] == "Successfully copied 2 content element(s) to page 20"
        assert data["failedUids"] == []
        rows = pages.query("tt_content", {"pid": 20})
        assert {row["sys_language_uid"] for row in rows} == {2}

    def test_copy_form_with_uid_list(self, client, headers, pages, make_content):
        a = make_content(10, sorting=1)
        make_content(10, sorting=2)

        resp = client.post(
            "/copy-translated-content/copy",
            data={"sourcePid": "10", "targetPid": "20", "languageId": "0", "elementUids[]": [str(a)]},
            headers=headers,
        )

        assert resp.status_code == 200
        assert resp.get_json()["count"] == 1

    def test_copy_form_with_indexed_uids_copies_only_selection(self, client, headers, pages, make_content):
        a = make_content(10, sorting=1)
        b = make_content(10, sorting=2)
        make_content(10, sorting=3)

        resp = client.post(
            "/copy-translated-content/copy",
            data={
                "sourcePid": "10", "targetPid": "20", "languageId": "0",
                "elementUids[1]": str(b), "elementUids[0]": str(a),
            },
            headers=headers,
        )

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["count"] == 2
        assert set(data["copied"]) == {str(a), str(b)}
        assert len(pages.query("tt_content", {"pid": 20})) == 2

    def test_copy_unknown_parameter_is_rejected(self, client, headers, pages, make_content):
        make_content(10)

        resp = client.post(
            "/copy-translated-content/copy",
            data={"sourcePid": "10", "targetPid": "20", "elementUid": "5"},
            headers=headers,
        )

        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid parameters"
        assert pages.query("tt_content", {"pid": 20}) == []

    def test_copy_comma_separated_uids(self, client, headers, make_content):
        a = make_content(10, sorting=1)
        b = make_content(10, sorting=2)
        resp = client.post(
            f"/copy-translated-content/copy?sourcePid=10&targetPid=20&elementUids={a},{b}",
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["count"] == 2

    def test_never_hide_false(self, client, headers, pages, make_content):
        make_content(10, hidden=0)
        resp = client.post(
            "/copy-translated-content/copy",
            json={"sourcePid": 10, "targetPid": 20, "neverHideAtCopy": False},
            headers=headers,
        )
        assert resp.status_code == 200
        assert pages.query("tt_content", {"pid": 20})[0]["hidden"] == 1

    def test_nothing_to_copy(self, client, headers):
        resp = client.post(
            "/copy-translated-content/copy",
            json={"sourcePid": 10, "targetPid": 20, "languageId": 5},
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["count"] == 0

    @pytest.mark.parametrize("body", [
        {"targetPid": 20},
        {"sourcePid": 0, "targetPid": 20},
        {"sourcePid": 10, "targetPid": 20, "languageId": -1},
        {"sourcePid": 10, "targetPid": 20, "targetLanguageUid": -1},
        {"sourcePid": 10, "targetPid": 20, "elementUids": [0]},
    ])
    def test_invalid_parameters(self, client, headers, body):
        resp = client.post("/copy-translated-content/copy", json=body, headers=headers)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Invalid parameters"

    def test_get_not_allowed(self, client, headers):
        resp = client.get("/copy-translated-content/copy?sourcePid=10&targetPid=20", headers=headers)
        assert resp.status_code == 405

    def test_permission_denied(self, client, outsider, pages, make_content):
        make_content(10)
        resp = client.post(
            "/copy-translated-content/copy",
            json={"sourcePid": 10, "targetPid": 20},
            headers={"X-Backend-User": str(outsider.uid)},
        )
        assert resp.status_code == 500
        assert resp.get_json() == {"success": False, "message": "Error: No read access to source page"}
        assert pages.query("tt_content", {"pid": 20}) == []

    def test_partial_failure_reported(self, client, headers, pages, make_content):
        good = make_content(10, sorting=1)
        bad = make_content(10, sorting=2)
        real_copy = pages.copy_record

        def flaky_copy(table, uid, target_pid, overrides=None):
            if uid == bad:
                raise RuntimeError("constraint failed")
            return real_copy(table, uid, target_pid, overrides)

        with patch.object(pages, "copy_record", side_effect=flaky_copy):
            resp = client.post(
                "/copy-translated-content/copy",
                json={"sourcePid": 10, "targetPid": 20, "elementUids": [good, bad]},
                headers=headers,
            )

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["count"] == 1
        assert data["failedUids"] == [bad]

    def test_internal_error(self, client, headers, services):
        with patch.object(services["copy_orchestrator"], "copy_elements", side_effect=RuntimeError("boom")):
            resp = client.post(
                "/copy-translated-content/copy",
                json={"sourcePid": 10, "targetPid": 20},
                headers=headers,
            )
        assert resp.status_code == 500
        assert resp.get_json()["message"] == "Error: boom"


class TestAuthentication:

    def test_missing_backend_user(self, client):
        resp = client.get("/copy-translated-content/get-elements?pageId=10")
        assert resp.status_code == 401
        assert resp.get_json()["success"] is False

    def test_unknown_backend_user(self, client):
        resp = client.get(
            "/copy-translated-content/get-elements?pageId=10",
            headers={"X-Backend-User": "4242"},
        )
        assert resp.status_code == 401

    def test_token_required_when_configured(self, client, headers, monkeypatch):
        monkeypatch.setenv("COPY_CONTENT_AUTH_TOKEN", "s3cret")

        resp = client.get("/copy-translated-content/get-elements?pageId=10", headers=headers)
        assert resp.status_code == 401

        resp = client.get(
            "/copy-translated-content/get-elements?pageId=10",
            headers={**headers, "X-Auth-Token": "s3cret"},
        )
        assert resp.status_code == 200

    def test_bearer_token(self, client, headers, monkeypatch):
        monkeypatch.setenv("COPY_CONTENT_AUTH_TOKEN", "s3cret")
        resp = client.get(
            "/copy-translated-content/get-elements?pageId=10",
            headers={**headers, "Authorization": "Bearer s3cret"},
        )
        assert resp.status_code == 200


class TestFormFlattening:

    def test_indexed_keys_ordered_by_index(self):
        data = MultiDict([("elementUids[10]", "c"), ("elementUids[2]", "b"), ("elementUids[0]", "a"), ("pageId", "1")])
        assert _flatten(data) == {"elementUids": ["a", "b", "c"], "pageId": "1"}

    def test_empty_brackets_collect_all_values(self):
        data = MultiDict([("elementUids[]", "5"), ("elementUids[]", "6")])
        assert _flatten(data) == {"elementUids": ["5", "6"]}
