"""HTTP-level tests for the API routes."""

import json

from conftest import ACTOR_HEADERS, ACTOR_ID

API = "/api/v1"


def _matrix(client, project_id, **params):
    response = client.get(f"{API}/projects/{project_id}/translations/matrix", params=params)
    assert response.status_code == 200
    return response.json()


class TestHealthAndAuth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["cache"] == "disabled"
        assert "X-Request-ID" in response.headers

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_write_without_actor(self, client, project, languages):
        response = client.post(
            f"{API}/translations/",
            json={"project_id": project.id, "key_name": "k", "language_id": languages["en"].id},
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "AUTH_REQUIRED"

    def test_delete_batch_without_actor(self, client):
        response = client.post(f"{API}/translations/delete-batch", json={"ids": [1]})

        assert response.status_code == 401


class TestTranslationRoutes:
    def test_create_read_update_delete(self, client, project, languages):
        response = client.post(
            f"{API}/translations/",
            headers=ACTOR_HEADERS,
            json={
                "project_id": project.id,
                "key_name": "home.title",
                "language_id": languages["en"].id,
                "value": "Home",
            },
        )
        assert response.status_code == 200
        created = response.json()
        assert created["created_by"] == ACTOR_ID

        response = client.put(
            f"{API}/translations/{created['id']}",
            headers=ACTOR_HEADERS,
            json={"value": "Start"},
        )
        assert response.status_code == 200
        assert response.json()["value"] == "Start"

        response = client.delete(f"{API}/translations/{created['id']}", headers=ACTOR_HEADERS)
        assert response.status_code == 200

        response = client.get(f"{API}/translations/{created['id']}")
        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "TRANSLATION_NOT_FOUND"
        assert body["details"]["id"] == str(created["id"])

    def test_batch_conflict_shape(self, client, seeded_project, languages):
        response = client.post(
            f"{API}/translations/batch",
            headers=ACTOR_HEADERS,
            json={
                "translations": [
                    {
                        "project_id": seeded_project.id,
                        "key_name": "a.b",
                        "language_id": languages["en"].id,
                        "value": "dup",
                    }
                ]
            },
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error_code"] == "TRANSLATION_EXISTS"
        assert body["details"]["conflicts"][0]["key_name"] == "a.b"

    def test_upsert_and_by_key(self, client, project, languages):
        response = client.post(
            f"{API}/translations/upsert",
            headers=ACTOR_HEADERS,
            json={
                "translations": [
                    {"project_id": project.id, "key_name": "k", "language_id": languages["en"].id, "value": "v1"}
                ]
            },
        )
        assert response.json() == {"count": 1}

        response = client.post(
            f"{API}/translations/by-key",
            headers=ACTOR_HEADERS,
            json={"project_id": project.id, "key_name": "k", "translations": {"en": "v2", "fr": "v2 fr"}},
        )
        assert response.json() == {"count": 2}

        matrix = _matrix(client, project.id)
        assert matrix["total"] == 1
        assert {code: cell["value"] for code, cell in matrix["matrix"]["k"].items()} == {
            "en": "v2",
            "fr": "v2 fr",
        }

    def test_missing_reference(self, client, languages):
        response = client.post(
            f"{API}/translations/",
            headers=ACTOR_HEADERS,
            json={"project_id": 9999, "key_name": "k", "language_id": languages["en"].id},
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "PROJECT_NOT_FOUND"

    def test_body_validation(self, client, project, languages):
        response = client.post(
            f"{API}/translations/",
            headers=ACTOR_HEADERS,
            json={"project_id": project.id, "key_name": "", "language_id": languages["en"].id},
        )

        assert response.status_code == 422

    def test_list_and_matrix(self, client, seeded_project):
        response = client.get(
            f"{API}/projects/{seeded_project.id}/translations", params={"limit": 2}
        )
        assert response.status_code == 200
        assert response.json()["count"] == 3
        assert len(response.json()["data"]) == 2

        matrix = _matrix(client, seeded_project.id, limit=1, offset=1)
        assert matrix["total"] == 2
        assert list(matrix["matrix"]) == ["c.d"]

        matrix = _matrix(client, seeded_project.id, keyword="Bonjour")
        assert list(matrix["matrix"]) == ["a.b"]

    def test_matrix_unknown_project(self, client):
        response = client.get(f"{API}/projects/4040/translations/matrix")

        assert response.status_code == 404

    def test_cached_client_sees_writes(self, cached_client, seeded_project, languages):
        assert _matrix(cached_client, seeded_project.id)["total"] == 2

        cached_client.post(
            f"{API}/translations/",
            headers=ACTOR_HEADERS,
            json={
                "project_id": seeded_project.id,
                "key_name": "e.f",
                "language_id": languages["en"].id,
                "value": "Fresh",
            },
        )

        assert _matrix(cached_client, seeded_project.id)["total"] == 3


class TestTransferRoutes:
    def test_export(self, client, seeded_project):
        response = client.get(f"{API}/projects/{seeded_project.id}/translations/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert "attachment" in response.headers["content-disposition"]
        assert response.json()["a.b"] == {"en": "Hello", "fr": "Bonjour"}

    def test_export_bad_format(self, client, seeded_project):
        response = client.get(
            f"{API}/projects/{seeded_project.id}/translations/export", params={"format": "yaml"}
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_import(self, client, project, languages):
        response = client.post(
            f"{API}/projects/{project.id}/translations/import",
            headers={**ACTOR_HEADERS, "Content-Type": "application/json"},
            content=json.dumps({"en": {"a": "A"}, "fr": {"a": "A fr"}}),
        )

        assert response.status_code == 200
        assert response.json() == {"count": 2}

    def test_import_conflict(self, client, seeded_project):
        response = client.post(
            f"{API}/projects/{seeded_project.id}/translations/import",
            headers=ACTOR_HEADERS,
            content=json.dumps({"a.b": {"en": "again"}}),
        )

        assert response.status_code == 409

    def test_import_garbage(self, client, project, languages):
        response = client.post(
            f"{API}/projects/{project.id}/translations/import",
            headers=ACTOR_HEADERS,
            content=b"definitely not json",
        )

        assert response.status_code == 422


class TestHistoryRoutes:
    def test_translation_history(self, client, project, languages):
        created = client.post(
            f"{API}/translations/",
            headers=ACTOR_HEADERS,
            json={"project_id": project.id, "key_name": "k", "language_id": languages["en"].id, "value": "v"},
        ).json()
        client.put(
            f"{API}/translations/{created['id']}", headers=ACTOR_HEADERS, json={"value": "w"}
        )

        response = client.get(f"{API}/translations/{created['id']}/history")

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert [r["operation"] for r in body["data"]] == ["update", "create"]

        filtered = client.get(
            f"{API}/projects/{project.id}/history", params={"operation": "create"}
        ).json()
        assert filtered["count"] == 1

    def test_limit_bounds(self, client, project):
        response = client.get(f"{API}/projects/{project.id}/history", params={"limit": 500})

        assert response.status_code == 422

    def test_unknown_user(self, client):
        response = client.get(f"{API}/users/8080/history")

        assert response.status_code == 404


class TestCliRoutes:
    def test_pull(self, client, seeded_project):
        response = client.get(
            f"{API}/cli/translations", params={"project_id": seeded_project.id}
        )

        assert response.status_code == 200
        assert response.json() == {
            "a.b": {"en": "Hello", "fr": "Bonjour"},
            "c.d": {"en": "World"},
        }

    def test_pull_single_locale(self, client, seeded_project):
        response = client.get(
            f"{API}/cli/translations",
            params={"project_id": seeded_project.id, "locale": "fr"},
        )

        assert response.json() == {"a.b": {"fr": "Bonjour"}}

    def test_push(self, client, seeded_project, languages):
        response = client.post(
            f"{API}/cli/keys",
            headers=ACTOR_HEADERS,
            json={"project_id": seeded_project.id, "keys": ["a.b", "x.y"], "defaults": {"x.y": "X"}},
        )

        assert response.status_code == 200
        assert response.json() == {"added": ["x.y"], "existed": ["a.b"], "failed": []}

    def test_push_unknown_project(self, client, languages):
        response = client.post(
            f"{API}/cli/keys", headers=ACTOR_HEADERS, json={"project_id": 31337, "keys": ["k"]}
        )

        assert response.status_code == 404


class TestDirectoryRoutes:
    def test_project_lifecycle(self, client):
        response = client.post(
            f"{API}/projects/", headers=ACTOR_HEADERS, json={"name": "Docs Site"}
        )
        assert response.status_code == 200
        project = response.json()
        assert project["slug"] == "docs-site"

        duplicate = client.post(
            f"{API}/projects/", headers=ACTOR_HEADERS, json={"name": "Docs Site"}
        )
        assert duplicate.status_code == 409

        listing = client.get(f"{API}/projects/").json()
        assert listing["count"] == 1

        assert client.delete(f"{API}/projects/{project['id']}", headers=ACTOR_HEADERS).status_code == 200
        assert client.get(f"{API}/projects/{project['id']}").status_code == 404

    def test_single_default_language(self, client, languages):
        response = client.post(
            f"{API}/languages/",
            headers=ACTOR_HEADERS,
            json={"code": "de", "name": "German", "is_default": True},
        )
        assert response.status_code == 200

        defaults = [lang["code"] for lang in client.get(f"{API}/languages/").json() if lang["is_default"]]
        assert defaults == ["de"]

    def test_duplicate_language_code(self, client, languages):
        response = client.post(
            f"{API}/languages/", headers=ACTOR_HEADERS, json={"code": "en", "name": "English again"}
        )

        assert response.status_code == 409

    def test_users(self, client):
        response = client.post(
            f"{API}/users/",
            headers=ACTOR_HEADERS,
            json={"username": "ana", "email": "ana@example.com"},
        )
        assert response.status_code == 200
        user = response.json()
        assert user["role"] == "member"

        response = client.put(
            f"{API}/users/{user['id']}", headers=ACTOR_HEADERS, json={"role": "admin"}
        )
        assert response.json()["role"] == "admin"

    def test_dashboard(self, client, seeded_project):
        stats = client.get(f"{API}/dashboard/stats").json()

        assert stats == {
            "total_projects": 1,
            "total_languages": 2,
            "total_translations": 3,
            "total_keys": 2,
        }
