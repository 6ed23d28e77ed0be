"""Workflow and team endpoints end to end over the memory store."""

from httpx import AsyncClient

ADMIN = {"X-Actor-ID": "admin-1", "X-Actor-Role": "admin"}
SEO_SKILLS = {"seo", "strategy", "web_development", "content_creation", "outreach", "analytics"}


async def _create_seo_workflow(client: AsyncClient) -> dict:
    template = await client.post("/api/v1/workflows/templates", json={"service_type": "seo"})
    assert template.status_code == 200
    response = await client.post(
        "/api/v1/workflows",
        json={
            "template_id": template.json()["id"],
            "user_id": "client-1",
            "service_name": "SEO Growth",
            "service_amount": 1500,
        },
        headers=ADMIN,
    )
    assert response.status_code == 201
    return response.json()


async def test_template_is_materialized_once(client: AsyncClient) -> None:
    first = await client.post(
        "/api/v1/workflows/templates", json={"service_type": "web-development", "tier": "starter"}
    )
    second = await client.post(
        "/api/v1/workflows/templates", json={"service_type": "web-development", "tier": "starter"}
    )

    body = first.json()
    assert body["name"] == "web-development-starter"
    assert len(body["tasks"]) == 7
    assert body["tasks"][1]["required_skills"] == ["ui_ux", "web_design"]
    assert second.json()["id"] == body["id"]
    listed = await client.get("/api/v1/workflows/templates")
    assert [t["name"] for t in listed.json()] == ["web-development-starter"]


async def test_unknown_service_type_is_404(client: AsyncClient) -> None:
    response = await client.post("/api/v1/workflows/templates", json={"service_type": "radio"})
    assert response.status_code == 404
    assert response.json()["error"] == "RESOURCE_NOT_FOUND"


async def test_workflow_lifecycle(client: AsyncClient, make_employee) -> None:
    await make_employee("e-seo", SEO_SKILLS)
    created = await _create_seo_workflow(client)
    workflow_id = created["workflow"]["id"]
    tasks = created["tasks"]
    assert created["workflow"]["status"] == "pending"
    assert [t["order"] for t in tasks] == list(range(1, 8))
    assert [m["name"] for m in created["milestones"]][0] == "Audit Complete"

    plan = await client.post(f"/api/v1/workflows/{workflow_id}/assign-team", headers=ADMIN)
    assert plan.status_code == 200
    body = plan.json()
    assert set(body["mapping"].values()) == {"e-seo"}
    assert len(body["mapping"]) == 7
    assert body["warnings"] == []
    assert body["team"][0]["role"] == "lead"

    again = await client.post(f"/api/v1/workflows/{workflow_id}/assign-team", headers=ADMIN)
    assert again.status_code == 409
    assert again.json()["error"] == "ALREADY_ASSIGNED"

    blocked_by_dependency = await client.patch(
        f"/api/v1/workflows/{workflow_id}/tasks/{tasks[1]['id']}",
        json={"status": "in_progress"},
        headers=ADMIN,
    )
    assert blocked_by_dependency.status_code == 409
    assert blocked_by_dependency.json()["error"] == "DEPENDENCY_NOT_SATISFIED"

    started = await client.patch(
        f"/api/v1/workflows/{workflow_id}/tasks/{tasks[0]['id']}",
        json={"status": "in_progress"},
        headers=ADMIN,
    )
    assert started.status_code == 200
    assert started.json()["workflow"]["status"] == "in_progress"
    assert started.json()["workflow_status_changed"] is True

    done = await client.patch(
        f"/api/v1/workflows/{workflow_id}/tasks/{tasks[0]['id']}",
        json={"status": "completed", "actual_hours": 5.5},
        headers=ADMIN,
    )
    assert done.json()["workflow"]["progress"] == 14
    assert done.json()["task"]["actual_hours"] == 5.5

    detail = await client.get(f"/api/v1/workflows/{workflow_id}")
    assert detail.json()["milestones_reached"] == ["Audit Complete"]

    workload = await client.get("/api/v1/team/workload", params={"employee_id": "e-seo"})
    row = workload.json()[0]
    assert row["current_workload"] == 34
    assert row["open_task_count"] == 6
    assert row["current_project_count"] == 1

    cancelled = await client.patch(
        f"/api/v1/workflows/{workflow_id}", json={"status": "cancelled"}, headers=ADMIN
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    row = (await client.get("/api/v1/team/workload")).json()[0]
    assert (row["current_workload"], row["current_project_count"]) == (0, 0)
    assert row["open_task_count"] == 0


async def test_overcommit_warning_is_returned(client: AsyncClient, make_employee) -> None:
    await make_employee("e-seo", SEO_SKILLS, weekly_capacity=10)
    created = await _create_seo_workflow(client)

    plan = await client.post(
        f"/api/v1/workflows/{created['workflow']['id']}/assign-team", headers=ADMIN
    )

    warnings = plan.json()["warnings"]
    assert warnings
    assert {w["error"] for w in warnings} == {"CAPACITY_EXCEEDED"}
    assert all(w["details"]["employee_id"] == "e-seo" for w in warnings)


async def test_unstaffed_tasks_are_reported(client: AsyncClient) -> None:
    created = await _create_seo_workflow(client)

    plan = await client.post(
        f"/api/v1/workflows/{created['workflow']['id']}/assign-team", headers=ADMIN
    )

    body = plan.json()
    assert body["mapping"] == {}
    assert len(body["unassigned"]) == 7
    assert body["unassigned"][0]["reason"] == "no eligible employee available"


async def test_task_must_belong_to_workflow(client: AsyncClient) -> None:
    created = await _create_seo_workflow(client)
    response = await client.patch(
        f"/api/v1/workflows/{created['workflow']['id']}/tasks/not-a-task",
        json={"status": "in_progress"},
        headers=ADMIN,
    )
    assert response.status_code == 404
    assert response.json()["details"]["resource_type"] == "task"


async def test_complete_with_open_tasks_is_refused(client: AsyncClient) -> None:
    created = await _create_seo_workflow(client)
    response = await client.patch(
        f"/api/v1/workflows/{created['workflow']['id']}",
        json={"status": "completed"},
        headers=ADMIN,
    )
    assert response.status_code == 409
    assert response.json()["error"] == "INVALID_TRANSITION"


async def test_list_workflows_filters(client: AsyncClient) -> None:
    created = await _create_seo_workflow(client)

    mine = await client.get("/api/v1/workflows", params={"user_id": "client-1"})
    others = await client.get("/api/v1/workflows", params={"user_id": "client-2"})
    held = await client.get("/api/v1/workflows", params={"status": "on_hold"})

    assert [w["id"] for w in mine.json()] == [created["workflow"]["id"]]
    assert others.json() == []
    assert held.json() == []


async def test_request_validation_errors(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/workflows", json={"template_id": "t", "user_id": "u"}, headers=ADMIN
    )
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"

    bad_status = await client.get("/api/v1/workflows", params={"status": "sleeping"})
    assert bad_status.status_code == 422


async def test_progress_cannot_be_written(client: AsyncClient) -> None:
    created = await _create_seo_workflow(client)
    workflow_id = created["workflow"]["id"]

    response = await client.patch(
        f"/api/v1/workflows/{workflow_id}", json={"progress": 80}, headers=ADMIN
    )
    task = await client.patch(
        f"/api/v1/workflows/{workflow_id}/tasks/{created['tasks'][0]['id']}",
        json={"status": "in_progress", "progress": 50},
        headers=ADMIN,
    )

    assert response.status_code == 422
    assert task.status_code == 422
    assert (await client.get(f"/api/v1/workflows/{workflow_id}")).json()["workflow"]["progress"] == 0


async def test_unknown_actor_role_is_rejected(client: AsyncClient) -> None:
    created = await _create_seo_workflow(client)
    response = await client.post(
        f"/api/v1/workflows/{created['workflow']['id']}/assign-team",
        headers={"X-Actor-ID": "u1", "X-Actor-Role": "superuser"},
    )
    assert response.status_code == 400
    assert response.json()["details"]["field"] == "X-Actor-Role"


async def test_missing_workflow_is_404(client: AsyncClient) -> None:
    response = await client.get("/api/v1/workflows/missing")
    assert response.status_code == 404
    assert response.json() == {
        "error": "RESOURCE_NOT_FOUND",
        "message": "workflow not found: missing",
        "details": {"resource_type": "workflow", "resource_id": "missing"},
    }
