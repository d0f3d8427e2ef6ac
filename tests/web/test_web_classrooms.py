"""Tests for classroom and teacher endpoints."""

import httpx

from studybridge.core.assignment import midnight_utc


def _classroom(upstream, count: int):
    students = [upstream.seed("profiles", name=f"s{i}") for i in range(count)]
    room = upstream.seed(
        "classrooms",
        classCode="PHY-11",
        students=[{"id": s["id"], "documentId": s["documentId"]} for s in students],
    )
    return room, students


class TestClassrooms:
    """Tests for /api/classroom endpoints."""

    def test_get_requires_institute(self, client, upstream):
        response = client.get("/api/classroom/get")
        assert response.status_code == 400
        assert response.json() == {"error": "Institute ID is required"}

    def test_get_by_institute(self, client, upstream):
        client.get("/api/classroom/get", params={"instituteId": "3"})

        params = upstream.calls_to("GET", "/api/classrooms")[0].url.params
        assert params["filters[institute][id][$eq]"] == "3"

    def test_get_by_code(self, client, upstream):
        room = upstream.seed("classrooms", classCode="PHY-11")
        upstream.seed("classrooms", classCode="CHEM-11")

        response = client.get("/api/classroom/code/PHY-11")

        assert [r["id"] for r in response.json()["data"]] == [room["id"]]
        params = upstream.calls_to("GET", "/api/classrooms")[0].url.params
        assert params["populate[0]"] == "students.user"

    def test_create_without_authorization(self, client, upstream):
        response = client.post(
            "/api/classroom/create",
            json={"name": "Physics", "classCode": "PHY-11", "institute": 3},
        )
        assert response.status_code == 401
        assert response.json() == {"error": "No authorization header provided"}
        assert upstream.calls == []

    def test_create_uses_caller_as_teacher(self, client, upstream):
        upstream.override("GET", "/api/users/me", httpx.Response(200, json={"id": 11, "username": "t"}))

        response = client.post(
            "/api/classroom/create",
            json={"name": "Physics", "classCode": "PHY-11", "institute": 3},
            headers={"Authorization": "Bearer teacher-jwt"},
        )

        assert response.status_code == 200
        me_call = upstream.calls_to("GET", "/api/users/me")[0]
        assert me_call.headers["Authorization"] == "Bearer teacher-jwt"
        create_call = upstream.calls_to("POST", "/api/classrooms")[0]
        assert create_call.headers["Authorization"] == "Bearer content-token"
        assert upstream.body(create_call) == {
            "data": {"name": "Physics", "classCode": "PHY-11", "institute": 3, "teachers": [11]}
        }

    def test_create_requires_fields(self, client, upstream):
        response = client.post(
            "/api/classroom/create",
            json={"name": "Physics"},
            headers={"Authorization": "Bearer teacher-jwt"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Name, Class Code, and Institute are required"}
        assert upstream.calls == []

    def test_rename(self, client, upstream):
        room = upstream.seed("classrooms", name="Physics")

        response = client.put(f"/api/classroom/update/{room['id']}", json={"name": "Physics A"})

        assert response.status_code == 200
        assert room["name"] == "Physics A"

    def test_rename_requires_name(self, client, upstream):
        response = client.put("/api/classroom/update/1", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "New name is required"}


class TestTeacherAssign:
    """Tests for POST /api/teacher/assign-topic."""

    def test_two_of_three_already_assigned(self, client, upstream):
        room, students = _classroom(upstream, 3)
        today = midnight_utc()
        for student in students[:2]:
            user_topic = upstream.seed("user-topics", profile=student["documentId"], topic="topic-1")
            upstream.seed("study-sessions", user_topic=user_topic["documentId"], scheduledFor=today)

        response = client.post(
            "/api/teacher/assign-topic",
            json={"classId": room["id"], "topicId": "topic-1", "teacherInstructions": "Chapter 2"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Assignment complete"
        assert body["stats"]["created"] == 1
        assert body["stats"]["updated"] == 2
        assert body["stats"]["totalStudents"] == 3
        assert len(upstream.calls_to("POST", "/api/study-sessions")) == 1

    def test_requires_class_and_topic(self, client, upstream):
        response = client.post("/api/teacher/assign-topic", json={"classId": 1})
        assert response.status_code == 400
        assert response.json() == {"error": "classId and topicId are required"}
        assert upstream.calls == []

    def test_unknown_classroom(self, client, upstream):
        response = client.post("/api/teacher/assign-topic", json={"classId": 99, "topicId": "topic-1"})
        assert response.status_code == 404
        assert response.json() == {"error": "Classroom not found"}


class TestTeacherStatsAndInstructions:
    """Tests for topic stats and instruction updates."""

    def test_topic_stats(self, client, upstream):
        room, students = _classroom(upstream, 2)
        upstream.seed("user-topics", profile=students[0]["documentId"], topic="topic-1", memoryLocation="Review")

        response = client.get("/api/teacher/topic-stats", params={"classId": room["id"], "topicId": "topic-1"})

        body = response.json()
        assert body["stats"]["Review"] == 1
        assert body["totalStudents"] == 2
        assert body["assignedCount"] == 1

    def test_topic_stats_requires_ids(self, client, upstream):
        response = client.get("/api/teacher/topic-stats", params={"classId": "1"})
        assert response.status_code == 400

    def test_update_instructions(self, client, upstream):
        room, students = _classroom(upstream, 2)
        copies = [
            upstream.seed("user-topics", profile=s["documentId"], topic="topic-1", teacherInstructions="old")
            for s in students
        ]

        response = client.put(
            "/api/teacher/update-instructions",
            json={"classId": room["id"], "topicId": "topic-1", "teacherInstructions": "new"},
        )

        assert response.json() == {"message": "Instructions updated successfully", "updatedCount": 2}
        assert all(c["teacherInstructions"] == "new" for c in copies)
