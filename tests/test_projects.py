"""Tests for projects, their PICs and phases.

Covers:
- Create with phases/PICs, duplicate codes
- Update: status-change vs details-updated audit, phase sync by id
- Phase sync through the project is audited phase by phase
- Single phase update and its PHASE audit entry
- Delete: blocked while bugs exist, audited otherwise
- PICs gain audit visibility over newly assigned projects
"""

from tracker.models.audit import AuditLogEntry
from tracker.models.project import Phase, Project


def _last_entry():
    return AuditLogEntry.query.order_by(AuditLogEntry.created_at.desc()).first()


def _trail():
    return AuditLogEntry.query.order_by(AuditLogEntry.created_at.asc()).all()


class TestCreateProject:

    def test_create_with_phases_and_pics(self, client, seed_data):
        resp = client.post("/api/projects", json={
            "code": "NOVA",
            "name": "Nova Launch",
            "priority": "High",
            "pics": [{"id": seed_data["pic"].id, "name": "pic"}, {"name": "Vendor Contact"}],
            "phases": [
                {"name": "Design", "start_date": "2026-05-01", "end_date": "2026-05-31"},
                {"name": "Build", "start_date": "2026-06-01", "end_date": "2026-07-15", "progress": 10},
            ],
        }, headers=seed_data["headers"]["owner"])

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["code"] == "NOVA"
        assert data["created_by"] == seed_data["owner"].id
        assert [p["name"] for p in data["phases"]] == ["Design", "Build"]
        assert [p["position"] for p in data["phases"]] == [0, 1]
        assert data["phases"][0]["start_date"] == "2026-05-01"
        assert data["phases"][1]["progress"] == 10

        pics = {p["name"]: p for p in data["pics"]}
        assert pics["pic"]["user_id"] == seed_data["pic"].id
        assert pics["Vendor Contact"]["user_id"] is None

    def test_create_is_audited(self, client, seed_data):
        resp = client.post("/api/projects", json={"code": "NOVA", "name": "Nova"},
                           headers=seed_data["headers"]["owner"])

        entry = _last_entry()
        assert entry.action == "CREATE"
        assert entry.entity_type == "PROJECT"
        assert entry.entity_id == resp.get_json()["data"]["id"]
        assert entry.details == 'Project "NOVA" created'

    def test_create_with_phases_audits_each_phase(self, client, seed_data):
        resp = client.post("/api/projects", json={
            "code": "NOVA", "name": "Nova", "phases": [{"name": "Design"}, {"name": "Build"}],
        }, headers=seed_data["headers"]["owner"])

        phase_ids = [p["id"] for p in resp.get_json()["data"]["phases"]]
        entries = _trail()
        assert [e.entity_type for e in entries] == ["PROJECT", "PHASE", "PHASE"]
        assert [e.entity_id for e in entries[1:]] == phase_ids
        assert [e.details for e in entries[1:]] == [
            'Phase "Design" in Project NOVA created',
            'Phase "Build" in Project NOVA created',
        ]
        assert all(e.action == "CREATE" for e in entries)

    def test_duplicate_code(self, client, seed_data):
        resp = client.post("/api/projects", json={"code": "ACME", "name": "Copycat"},
                           headers=seed_data["headers"]["owner"])
        assert resp.status_code == 409
        assert AuditLogEntry.query.count() == 0

    def test_progress_out_of_range(self, client, seed_data):
        resp = client.post("/api/projects", json={
            "code": "NOVA", "name": "Nova", "phases": [{"name": "Build", "progress": 150}],
        }, headers=seed_data["headers"]["owner"])
        assert resp.status_code == 400

    def test_list_projects(self, client, seed_data):
        resp = client.get("/api/projects", headers=seed_data["headers"]["outsider"])
        assert resp.status_code == 200
        codes = {p["code"] for p in resp.get_json()["data"]}
        assert codes == {"ACME", "ZEN"}

    def test_list_hides_archived_on_request(self, client, db_session, seed_data):
        seed_data["zen"].archived = True
        db_session.commit()

        resp = client.get("/api/projects?archived=false", headers=seed_data["headers"]["owner"])
        assert [p["code"] for p in resp.get_json()["data"]] == ["ACME"]


class TestUpdateProject:

    def test_status_change_message(self, client, seed_data):
        resp = client.put(f"/api/projects/{seed_data['acme_id']}", json={"status": "On Hold"},
                          headers=seed_data["headers"]["owner"])

        assert resp.status_code == 200
        entry = _last_entry()
        assert entry.action == "UPDATE"
        assert entry.entity_type == "PROJECT"
        assert entry.entity_id == seed_data["acme_id"]
        assert entry.user_id == seed_data["owner"].id
        assert entry.details == 'Project "ACME": Status changed from Active to On Hold'

    def test_details_updated_message(self, client, seed_data):
        client.put(f"/api/projects/{seed_data['acme_id']}", json={"notes": "Kickoff moved"},
                   headers=seed_data["headers"]["owner"])
        assert _last_entry().details == 'Project "ACME" details updated'

    def test_phase_sync_keeps_existing_ids(self, client, db_session, seed_data):
        design_id, build_id = seed_data["acme_phase_ids"]

        resp = client.put(f"/api/projects/{seed_data['acme_id']}", json={
            "phases": [
                {"id": build_id, "name": "Build", "status": "in-progress"},
                {"name": "Handover"},
            ],
        }, headers=seed_data["headers"]["owner"])

        assert resp.status_code == 200
        phases = resp.get_json()["data"]["phases"]
        assert [p["name"] for p in phases] == ["Build", "Handover"]
        assert phases[0]["id"] == build_id
        assert phases[0]["status"] == "in-progress"

        db_session.expire_all()
        assert db_session.get(Phase, design_id) is None

    def test_phase_sync_is_audited_per_phase(self, client, seed_data):
        design_id, build_id = seed_data["acme_phase_ids"]

        resp = client.put(f"/api/projects/{seed_data['acme_id']}", json={
            "phases": [
                {"id": design_id, "name": "Design", "status": "done",
                 "start_date": "2026-01-05", "end_date": "2026-02-01"},
                {"id": build_id, "name": "Build",
                 "start_date": "2026-02-02", "end_date": "2026-04-30"},
                {"name": "QA"},
            ],
        }, headers=seed_data["headers"]["owner"])

        qa_id = resp.get_json()["data"]["phases"][2]["id"]
        entries = _trail()
        assert [(e.action, e.entity_type, e.entity_id) for e in entries] == [
            ("UPDATE", "PROJECT", seed_data["acme_id"]),
            ("UPDATE", "PHASE", design_id),
            ("CREATE", "PHASE", qa_id),
        ]
        assert entries[1].details == 'Phase "Design" in Project ACME: Status changed from pending to done'
        assert entries[2].details == 'Phase "QA" in Project ACME created'

    def test_removed_phase_is_audited(self, client, seed_data):
        design_id, build_id = seed_data["acme_phase_ids"]

        client.put(f"/api/projects/{seed_data['acme_id']}", json={
            "phases": [{"id": design_id, "name": "Design",
                        "start_date": "2026-01-05", "end_date": "2026-02-01"}],
        }, headers=seed_data["headers"]["owner"])

        entry = AuditLogEntry.query.filter_by(entity_type="PHASE").one()
        assert entry.action == "DELETE"
        assert entry.entity_id == build_id
        assert entry.details == 'Phase "Build" in Project ACME deleted'

    def test_synced_phase_entries_visible_to_pic(self, client, seed_data):
        client.put(f"/api/projects/{seed_data['acme_id']}", json={
            "phases": [{"name": "Kickoff"}],
        }, headers=seed_data["headers"]["admin"])

        data = client.get("/api/audit", headers=seed_data["headers"]["pic"]).get_json()["data"]
        assert 'Phase "Kickoff" in Project ACME created' in [row["details"] for row in data]

    def test_duplicate_phase_ids_rejected(self, client, db_session, seed_data):
        design_id, build_id = seed_data["acme_phase_ids"]

        resp = client.put(f"/api/projects/{seed_data['acme_id']}", json={
            "phases": [
                {"id": design_id, "name": "Design"},
                {"id": design_id, "name": "Design again"},
            ],
        }, headers=seed_data["headers"]["owner"])

        assert resp.status_code == 400
        assert AuditLogEntry.query.count() == 0
        db_session.expire_all()
        assert Phase.query.filter_by(project_id=seed_data["acme_id"]).count() == 2

    def test_pics_replaced(self, client, seed_data):
        resp = client.put(f"/api/projects/{seed_data['acme_id']}", json={
            "pics": [{"id": seed_data["outsider"].id, "name": "outsider"}],
        }, headers=seed_data["headers"]["owner"])

        pics = resp.get_json()["data"]["pics"]
        assert [p["user_id"] for p in pics] == [seed_data["outsider"].id]

    def test_new_pic_gains_visibility(self, client, seed_data):
        client.put(f"/api/projects/{seed_data['acme_id']}", json={
            "pics": [{"id": seed_data["outsider"].id, "name": "outsider"}],
        }, headers=seed_data["headers"]["owner"])

        data = client.get("/api/audit", headers=seed_data["headers"]["outsider"]).get_json()["data"]
        assert [row["details"] for row in data] == ['Project "ACME" details updated']

    def test_code_change_to_taken_code(self, client, seed_data):
        resp = client.put(f"/api/projects/{seed_data['acme_id']}", json={"code": "ZEN"},
                          headers=seed_data["headers"]["owner"])
        assert resp.status_code == 409

    def test_unknown_project(self, client, seed_data):
        resp = client.put("/api/projects/nope", json={"status": "On Hold"},
                          headers=seed_data["headers"]["owner"])
        assert resp.status_code == 404
        assert AuditLogEntry.query.count() == 0

    def test_unknown_field_rejected(self, client, seed_data):
        resp = client.put(f"/api/projects/{seed_data['acme_id']}", json={"created_by": "someone"},
                          headers=seed_data["headers"]["owner"])
        assert resp.status_code == 400


class TestUpdatePhase:

    def test_phase_status_change_message(self, client, seed_data):
        design_id = seed_data["acme_phase_ids"][0]

        resp = client.put(
            f"/api/projects/{seed_data['acme_id']}/phases/{design_id}",
            json={"status": "in-progress", "progress": 40},
            headers=seed_data["headers"]["pic"],
        )

        assert resp.status_code == 200
        assert resp.get_json()["data"]["progress"] == 40
        entry = _last_entry()
        assert entry.entity_type == "PHASE"
        assert entry.entity_id == design_id
        assert entry.details == 'Phase "Design" in Project ACME: Status changed from pending to in-progress'

    def test_phase_details_message(self, client, seed_data):
        design_id = seed_data["acme_phase_ids"][0]
        client.put(
            f"/api/projects/{seed_data['acme_id']}/phases/{design_id}",
            json={"end_date": "2026-02-15"},
            headers=seed_data["headers"]["owner"],
        )
        assert _last_entry().details == 'Phase "Design" in Project ACME updated'

    def test_phase_of_other_project(self, client, seed_data):
        resp = client.put(
            f"/api/projects/{seed_data['acme_id']}/phases/{seed_data['zen_phase_id']}",
            json={"status": "done"},
            headers=seed_data["headers"]["owner"],
        )
        assert resp.status_code == 404
        assert AuditLogEntry.query.count() == 0

    def test_phase_entries_visible_to_pic(self, client, seed_data):
        design_id = seed_data["acme_phase_ids"][0]
        client.put(
            f"/api/projects/{seed_data['acme_id']}/phases/{design_id}",
            json={"status": "done"},
            headers=seed_data["headers"]["admin"],
        )

        for name in ("owner", "pic"):
            data = client.get("/api/audit", headers=seed_data["headers"][name]).get_json()["data"]
            assert [row["entity_id"] for row in data] == [design_id]

        data = client.get("/api/audit", headers=seed_data["headers"]["outsider"]).get_json()["data"]
        assert data == []


class TestDeleteProject:

    def test_delete_is_audited(self, client, db_session, seed_data):
        zen_id = seed_data["zen_id"]

        resp = client.delete(f"/api/projects/{zen_id}", headers=seed_data["headers"]["admin"])

        assert resp.status_code == 200
        db_session.expire_all()
        assert db_session.get(Project, zen_id) is None
        assert Phase.query.filter_by(project_id=zen_id).count() == 0
        entry = _last_entry()
        assert entry.action == "DELETE"
        assert entry.entity_id == zen_id
        assert entry.details == 'Project "ZEN" deleted'

    def test_delete_audits_phases_first(self, client, seed_data):
        zen_id = seed_data["zen_id"]

        client.delete(f"/api/projects/{zen_id}", headers=seed_data["headers"]["admin"])

        assert [(e.entity_type, e.entity_id, e.details) for e in _trail()] == [
            ("PHASE", seed_data["zen_phase_id"], 'Phase "Launch" in Project ZEN deleted'),
            ("PROJECT", zen_id, 'Project "ZEN" deleted'),
        ]

    def test_delete_blocked_while_bugs_exist(self, client, seed_data):
        headers = seed_data["headers"]["owner"]
        client.post("/api/bugs", json={"summary": "x", "project_id": seed_data["acme_id"]},
                    headers=headers)
        before = AuditLogEntry.query.count()

        resp = client.delete(f"/api/projects/{seed_data['acme_id']}", headers=headers)

        assert resp.status_code == 409
        assert AuditLogEntry.query.count() == before
