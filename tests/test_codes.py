"""Tests for human-readable entity codes ("<PREFIX>-<N>").

Covers:
- Sequential numbering per prefix
- Fallback prefix for bugs without a project
- Prefix matching treats LIKE wildcards literally
- generate_code() itself is not atomic (count-then-insert)
- Collisions are retried, then reported as 409
"""

from unittest.mock import patch

from tracker.models.bug import Bug
from tracker.services import code_service


def _bug(session, code, reporter):
    bug = Bug(code=code, summary=f"Bug {code}", reporter_id=reporter.id)
    session.add(bug)
    session.flush()
    return bug


class TestGenerateCode:

    def test_first_code_is_one(self, app, seed_data):
        assert code_service.generate_code("ACME") == "ACME-1"

    def test_counts_existing_codes(self, app, db_session, seed_data):
        _bug(db_session, "ACME-1", seed_data["owner"])
        _bug(db_session, "ACME-2", seed_data["owner"])
        _bug(db_session, "ZEN-1", seed_data["owner"])

        assert code_service.generate_code("ACME") == "ACME-3"
        assert code_service.generate_code("ZEN") == "ZEN-2"

    def test_prefix_requires_separator(self, app, db_session, seed_data):
        # "ACMEX-1" does not start with "ACME-"
        _bug(db_session, "ACMEX-1", seed_data["owner"])
        assert code_service.generate_code("ACME") == "ACME-1"

    def test_wildcards_in_prefix_are_literal(self, app, db_session, seed_data):
        _bug(db_session, "ABC-1", seed_data["owner"])
        _bug(db_session, "A%C-1", seed_data["owner"])

        assert code_service.generate_code("A_C") == "A_C-1"
        assert code_service.generate_code("A%C") == "A%C-2"

    def test_two_counts_before_insert_collide(self, app, db_session, seed_data):
        """Counting is not atomic; only the unique constraint catches this."""
        _bug(db_session, "ACME-1", seed_data["owner"])

        first = code_service.generate_code("ACME")
        second = code_service.generate_code("ACME")

        assert first == second == "ACME-2"

    def test_resolve_prefix(self, app, seed_data):
        assert code_service.resolve_prefix(seed_data["acme"]) == "ACME"
        assert code_service.resolve_prefix(None) == app.config["BUG_CODE_FALLBACK_PREFIX"]


class TestBugCodesOverHttp:

    def test_sequential_codes_per_project(self, client, seed_data):
        headers = seed_data["headers"]["owner"]
        codes = []
        for i in range(3):
            resp = client.post("/api/bugs", json={
                "summary": f"Broken thing {i}",
                "project_id": seed_data["acme_id"],
            }, headers=headers)
            assert resp.status_code == 201
            codes.append(resp.get_json()["data"]["code"])

        assert codes == ["ACME-1", "ACME-2", "ACME-3"]

    def test_projectless_bug_uses_fallback_prefix(self, client, seed_data):
        headers = seed_data["headers"]["owner"]
        first = client.post("/api/bugs", json={"summary": "Loose end"}, headers=headers)
        second = client.post("/api/bugs", json={"summary": "Another"}, headers=headers)

        assert first.get_json()["data"]["code"] == "BUGS-1"
        assert second.get_json()["data"]["code"] == "BUGS-2"

    def test_collision_is_retried_with_recount(self, client, seed_data):
        headers = seed_data["headers"]["owner"]
        client.post("/api/bugs", json={
            "summary": "First", "project_id": seed_data["acme_id"],
        }, headers=headers)

        real_generate = code_service.generate_code
        calls = []

        def stale_then_real(prefix, model=Bug):
            calls.append(prefix)
            if len(calls) == 1:
                return "ACME-1"  # what a concurrent request counted
            return real_generate(prefix, model)

        with patch.object(code_service, "generate_code", side_effect=stale_then_real):
            resp = client.post("/api/bugs", json={
                "summary": "Second", "project_id": seed_data["acme_id"],
            }, headers=headers)

        assert resp.status_code == 201
        assert resp.get_json()["data"]["code"] == "ACME-2"
        assert len(calls) == 2

    def test_persistent_collision_is_409(self, app, client, db_session, seed_data):
        headers = seed_data["headers"]["owner"]
        client.post("/api/bugs", json={
            "summary": "First", "project_id": seed_data["acme_id"],
        }, headers=headers)

        with patch.object(code_service, "generate_code", return_value="ACME-1") as gen:
            resp = client.post("/api/bugs", json={
                "summary": "Second", "project_id": seed_data["acme_id"],
            }, headers=headers)

        assert resp.status_code == 409
        assert resp.get_json()["success"] is False
        assert gen.call_count == app.config["CODE_ASSIGN_ATTEMPTS"]
        assert Bug.query.count() == 1
