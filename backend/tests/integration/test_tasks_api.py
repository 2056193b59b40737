"""Integration tests for the Tasks API (clearance-based visibility)"""

import pytest


class TestTasksAPI:
    """Test GET /tasks"""

    def test_tasks_filtered_by_clearance(self, client, auth_headers, make_user, make_task):
        reader = make_user("Reader", security_clearance="confidential")
        make_task("Public notice", "public")
        make_task("Budget memo", "confidential")
        make_task("Defence brief", "secret")
        make_task("Unlabelled", None)

        data = client.get("/tasks", headers=auth_headers(reader)).json()

        assert {item["title"] for item in data["items"]} == {"Public notice", "Budget memo", "Unlabelled"}
        assert data["total"] == 3

    def test_missing_clearance_ranks_internal(self, client, auth_headers, alice, make_task):
        make_task("Internal", "internal")
        make_task("Confidential", "confidential")

        data = client.get("/tasks", headers=auth_headers(alice)).json()

        assert [item["title"] for item in data["items"]] == ["Internal"]

    def test_unclassified_visible_to_public_clearance(self, client, auth_headers, make_user, make_task):
        reader = make_user("Guest", security_clearance="public")
        make_task("Legacy", "unclassified")

        data = client.get("/tasks", headers=auth_headers(reader)).json()

        assert data["total"] == 1

    def test_managers_do_not_bypass_hierarchy(self, client, auth_headers, make_user, make_task):
        boss = make_user("Boss", role="admin", site_department_manager=True, security_clearance="internal")
        make_task("Top secret", "top_secret")

        assert client.get("/tasks", headers=auth_headers(boss)).json()["total"] == 0

    def test_scope_assigned(self, client, auth_headers, alice, bob, make_task):
        make_task("Mine", "public", assigned_to=alice.id)
        make_task("Theirs", "public", assigned_to=bob.id)

        data = client.get("/tasks", params={"scope": "assigned"}, headers=auth_headers(alice)).json()

        assert [item["title"] for item in data["items"]] == ["Mine"]

    def test_invalid_scope(self, client, auth_headers, alice):
        assert client.get("/tasks", params={"scope": "everything"}, headers=auth_headers(alice)).status_code == 422
