"""
End-to-end presentation flow over HTTP

Session setup, team pick, timer controls, grading, audit history and export,
the way the instructor dashboard drives them.
"""
import csv
import io

import pytest

from presenter.errors import ErrorCode


@pytest.fixture
async def classroom(client, auth_headers):
    """Session (10 min + 5 min Q&A) with one team and a two-criterion rubric."""
    response = await client.post(
        "/api/session",
        json={"name": "Period 3", "presentationDuration": 10, "qaDuration": 5},
        headers=auth_headers,
    )
    assert response.status_code == 201
    session = response.json()["session"]

    response = await client.post(
        "/api/teams",
        json={"sessionId": session["id"], "teams": [{"name": "Alpha", "members": ["Ann", "Ben"]}]},
        headers=auth_headers,
    )
    assert response.status_code == 201
    assert response.json()["errors"] == []

    response = await client.post(
        "/api/rubric",
        json={
            "sessionId": session["id"],
            "criteria": [
                {"name": "Content", "maxScore": 10},
                {"name": "Delivery", "description": "Voice and pace", "maxScore": 5},
            ],
        },
        headers=auth_headers,
    )
    assert response.status_code == 201
    criteria = response.json()["criteria"]

    return {"headers": auth_headers, "session": session, "criteria": criteria}


async def _pick(client, classroom):
    response = await client.post(
        "/api/presentations",
        json={"sessionId": classroom["session"]["id"]},
        headers=classroom["headers"],
    )
    assert response.status_code == 200, response.text
    return response.json()


async def _action(client, classroom, presentation_id, action, **body):
    return await client.post(
        f"/api/presentations/{presentation_id}/{action}",
        json=body or None,
        headers=classroom["headers"],
    )


class TestPresentationFlow:

    async def test_full_scenario(self, client, classroom):
        headers = classroom["headers"]
        session_id = classroom["session"]["id"]
        content, delivery = classroom["criteria"]

        response = await client.patch(
            "/api/session",
            json={"sessionId": session_id, "rubricLocked": True},
            headers=headers,
        )
        assert response.json() == {"success": True}

        picked = await _pick(client, classroom)
        assert picked["team"]["name"] == "Alpha"
        assert picked["presentation"]["status"] == "not_started"
        pid = picked["presentation"]["id"]

        response = await _action(client, classroom, pid, "start")
        assert response.status_code == 200
        presentation = response.json()["presentation"]
        assert presentation["status"] == "presenting"
        assert presentation["started_at"] is not None
        assert response.json()["timer"]["display"] == "10:00"

        # Client autosave after 601 seconds
        response = await client.patch(
            "/api/presentations",
            json={
                "presentationId": pid,
                "timerState": {"phase": "presentation", "elapsedTime": 601, "isRunning": True},
            },
            headers=headers,
        )
        assert response.json() == {"success": True}

        timer = (await client.get(f"/api/presentations/{pid}/timer", headers=headers)).json()
        assert timer["remaining"] == -1
        assert timer["indicator"] == "overtime"
        assert timer["display"] == "-0:01"
        assert timer["timerState"]["isRunning"] is True

        response = await _action(client, classroom, pid, "switch-to-qa")
        presentation = response.json()["presentation"]
        assert presentation["status"] == "qa"
        assert presentation["timer_state"]["phase"] == "qa"
        assert presentation["timer_state"]["elapsedTime"] == 0
        assert presentation["presentation_time_elapsed"] == 601

        response = await _action(client, classroom, pid, "stop-and-grade", elapsedTime=42)
        presentation = response.json()["presentation"]
        assert presentation["status"] == "qa"
        assert presentation["qa_time_elapsed"] == 42
        assert presentation["timer_state"]["isRunning"] is False

        response = await client.post(
            "/api/grades",
            json={
                "presentationId": pid,
                "grades": [
                    {"criterionId": content["id"], "score": 8},
                    {"criterionId": delivery["id"], "score": 5},
                ],
                "publicFeedback": "Strong finish",
                "privateNotes": "",
                "complete": True,
            },
            headers=headers,
        )
        assert response.status_code == 201
        assert response.json()["created"] == 2
        assert response.json()["status"] == "completed"

        grades = (await client.get(f"/api/grades?presentationId={pid}", headers=headers)).json()
        assert sum(g["score"] for g in grades["grades"]) == 13
        assert grades["feedback"]["public_feedback"] == "Strong finish"

        history = (await client.get(f"/api/grades/history?presentationId={pid}", headers=headers)).json()
        assert history == {"audits": []}

        state = (await client.get("/api/session", headers=headers)).json()
        assert state["teams"][0]["status"] == "completed"
        assert state["presentations"][0]["status"] == "completed"
        assert state["presentations"][0]["ended_at"] is not None
        assert state["session"]["rubric_locked"] is True

        response = await client.post("/api/presentations", json={"sessionId": session_id}, headers=headers)
        assert response.status_code == 404
        assert response.json()["code"] == ErrorCode.NO_PENDING_TEAMS
        assert response.json()["error"] == "No pending teams available"

        response = await client.get(f"/api/export?sessionId={session_id}", headers=headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert f'filename="grades-{session_id}.csv"' in response.headers["content-disposition"]
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0] == [
            "Team Name", "Members", "Content", "Delivery", "Total Score", "Public Feedback", "Private Notes",
        ]
        assert rows[1] == ["Alpha", "Ann; Ben", "8", "5", "13", "Strong finish", ""]

    async def test_regrade_is_audited(self, client, classroom):
        headers = classroom["headers"]
        content = classroom["criteria"][0]
        pid = (await _pick(client, classroom))["presentation"]["id"]

        for score in (8, 6):
            response = await client.post(
                "/api/grades",
                json={"presentationId": pid, "grades": [{"criterionId": content["id"], "score": score}]},
                headers=headers,
            )
            assert response.status_code == 201

        history = (await client.get(f"/api/grades/history?presentationId={pid}", headers=headers)).json()
        assert [(a["old_score"], a["new_score"]) for a in history["audits"]] == [(8, 6)]
        grades = (await client.get(f"/api/grades?presentationId={pid}", headers=headers)).json()
        assert [g["score"] for g in grades["grades"]] == [6]

    async def test_score_out_of_range(self, client, classroom):
        pid = (await _pick(client, classroom))["presentation"]["id"]
        response = await client.post(
            "/api/grades",
            json={"presentationId": pid, "grades": [{"criterionId": classroom["criteria"][1]["id"], "score": 6}]},
            headers=classroom["headers"],
        )
        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.VALIDATION_ERROR

    async def test_emergency_stop_and_resume(self, client, classroom):
        pid = (await _pick(client, classroom))["presentation"]["id"]
        await _action(client, classroom, pid, "start")

        response = await _action(client, classroom, pid, "emergency-stop", elapsedTime=75)
        presentation = response.json()["presentation"]
        assert presentation["status"] == "emergency_stopped"
        assert presentation["timer_state"] == {
            "phase": "presentation", "elapsedTime": 75, "isRunning": False, "version": 1,
        }

        response = await _action(client, classroom, pid, "resume")
        presentation = response.json()["presentation"]
        assert presentation["status"] == "presenting"
        assert presentation["timer_state"]["elapsedTime"] == 75
        assert presentation["timer_state"]["isRunning"] is True

    async def test_start_fresh(self, client, classroom):
        pid = (await _pick(client, classroom))["presentation"]["id"]
        await _action(client, classroom, pid, "start")
        await _action(client, classroom, pid, "emergency-stop", elapsedTime=300)

        response = await _action(client, classroom, pid, "start-fresh")
        presentation = response.json()["presentation"]
        assert presentation["status"] == "presenting"
        assert presentation["timer_state"]["elapsedTime"] == 0

    async def test_defer_returns_team_to_pool(self, client, classroom):
        headers = classroom["headers"]
        pid = (await _pick(client, classroom))["presentation"]["id"]
        await _action(client, classroom, pid, "start")
        await _action(client, classroom, pid, "emergency-stop", elapsedTime=120)

        response = await client.request("DELETE", "/api/presentations", json={"presentationId": pid}, headers=headers)
        assert response.json() == {"success": True}

        state = (await client.get("/api/session", headers=headers)).json()
        assert state["teams"][0]["status"] == "pending"
        assert state["presentations"] == []

        picked = await _pick(client, classroom)
        assert picked["team"]["name"] == "Alpha"
        assert picked["presentation"]["status"] == "not_started"
        assert picked["presentation"]["presentation_time_elapsed"] == 0
        assert picked["presentation"]["timer_state"] is None

    async def test_illegal_transitions(self, client, classroom):
        headers = classroom["headers"]
        pid = (await _pick(client, classroom))["presentation"]["id"]

        response = await _action(client, classroom, pid, "resume")
        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.STATE_TRANSITION_INVALID

        response = await client.patch(
            "/api/presentations",
            json={"presentationId": pid, "status": "qa"},
            headers=headers,
        )
        assert response.status_code == 400
        assert response.json()["details"] == {"from": "not_started", "to": "qa"}

    async def test_patch_status_updates_team(self, client, classroom):
        headers = classroom["headers"]
        picked = await _pick(client, classroom)
        pid, team_id = picked["presentation"]["id"], picked["team"]["id"]

        response = await client.patch(
            "/api/presentations",
            json={"presentationId": pid, "teamId": team_id, "status": "presenting"},
            headers=headers,
        )
        assert response.status_code == 200

        state = (await client.get("/api/session", headers=headers)).json()
        assert state["teams"][0]["status"] == "presenting"
        assert state["presentations"][0]["started_at"] is not None

        response = await client.patch(
            "/api/presentations",
            json={"presentationId": pid, "teamId": team_id + 100, "status": "qa"},
            headers=headers,
        )
        assert response.status_code == 400

    async def test_patch_null_timer_state_clears_it(self, client, classroom):
        headers = classroom["headers"]
        pid = (await _pick(client, classroom))["presentation"]["id"]
        await client.patch(
            "/api/presentations",
            json={
                "presentationId": pid,
                "timerState": {"phase": "presentation", "elapsedTime": 30, "isRunning": True},
            },
            headers=headers,
        )

        # Omitting timerState leaves the stored snapshot alone
        response = await client.patch(
            "/api/presentations",
            json={"presentationId": pid, "qaTimeElapsed": 0},
            headers=headers,
        )
        assert response.status_code == 200
        presentation = (await client.get("/api/session", headers=headers)).json()["presentations"][0]
        assert presentation["timer_state"]["elapsedTime"] == 30

        response = await client.patch(
            "/api/presentations",
            json={"presentationId": pid, "timerState": None},
            headers=headers,
        )
        assert response.status_code == 200
        presentation = (await client.get("/api/session", headers=headers)).json()["presentations"][0]
        assert presentation["timer_state"] is None
        assert presentation["presentation_time_elapsed"] == 30


class TestSetupEndpoints:

    async def test_locked_rubric_rejects_criteria(self, client, classroom):
        headers = classroom["headers"]
        session_id = classroom["session"]["id"]
        await client.patch("/api/session", json={"sessionId": session_id, "rubricLocked": True}, headers=headers)

        response = await client.post(
            "/api/rubric",
            json={"sessionId": session_id, "criteria": [{"name": "Late", "maxScore": 2}]},
            headers=headers,
        )
        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.RUBRIC_LOCKED
        assert response.json()["error"] == "Rubric is locked"

        response = await client.patch(
            "/api/session",
            json={"sessionId": session_id, "rubricLocked": False},
            headers=headers,
        )
        assert response.status_code == 400

    async def test_first_pick_locks_rubric(self, client, classroom):
        headers = classroom["headers"]
        session_id = classroom["session"]["id"]
        await _pick(client, classroom)

        state = (await client.get("/api/session", headers=headers)).json()
        assert state["session"]["rubric_locked"] is True

        response = await client.post(
            "/api/rubric",
            json={"sessionId": session_id, "criteria": [{"name": "Late", "maxScore": 2}]},
            headers=headers,
        )
        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.RUBRIC_LOCKED

        state = (await client.get("/api/session", headers=headers)).json()
        assert [c["name"] for c in state["criteria"]] == ["Content", "Delivery"]

    async def test_bulk_import_with_duplicates(self, client, classroom):
        response = await client.post(
            "/api/teams",
            json={
                "sessionId": classroom["session"]["id"],
                "bulk": "Alpha, Zed\nBravo, Cal, Dee\nnobody-here",
            },
            headers=classroom["headers"],
        )
        assert response.status_code == 201
        data = response.json()
        assert [t["name"] for t in data["teams"]] == ["Bravo"]
        assert data["teams"][0]["members"] == ["Cal", "Dee"]
        assert data["errors"] == ['Team "Alpha" already exists']

    async def test_manual_team_status(self, client, classroom):
        headers = classroom["headers"]
        team_id = (await client.get("/api/session", headers=headers)).json()["teams"][0]["id"]
        response = await client.patch("/api/teams", json={"teamId": team_id, "status": "deferred"}, headers=headers)
        assert response.json() == {"success": True}

        state = (await client.get("/api/session", headers=headers)).json()
        assert state["teams"][0]["status"] == "deferred"

    async def test_templates(self, client, classroom):
        headers = classroom["headers"]
        response = await client.post(
            "/api/rubric/templates",
            json={"name": "Standard", "criteria": [{"name": "Content", "maxScore": 10, "weight": 60}]},
            headers=headers,
        )
        assert response.status_code == 201

        templates = (await client.get("/api/rubric", headers=headers)).json()["templates"]
        assert [t["name"] for t in templates] == ["Standard"]
        assert templates[0]["criteria"][0]["max_score"] == 10
        assert templates[0]["criteria"][0]["weight"] == 60

    async def test_delete_session(self, client, classroom):
        headers = classroom["headers"]
        response = await client.delete(f"/api/session?sessionId={classroom['session']['id']}", headers=headers)
        assert response.json() == {"success": True}
        assert (await client.get("/api/session", headers=headers)).json() == {"session": None}
