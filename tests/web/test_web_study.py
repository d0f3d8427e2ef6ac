"""Tests for catalog and study-tracking endpoints."""

import httpx


class TestSessionFindOrCreate:
    """Tests for POST /api/session/find-or-create."""

    def test_creates_session_in_lookup_shape(self, client, upstream):
        response = client.post(
            "/api/session/find-or-create",
            json={"userTopicId": 42, "scheduledFor": "2024-01-01T00:00:00Z", "id": 7},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert isinstance(data, list)
        assert data[0]["user_topic"] == 42
        assert data[0]["stayTopicId"] == 7
        assert len(upstream.collections["study-sessions"]) == 1

    def test_existing_session_returned(self, client, upstream):
        session = upstream.seed("study-sessions", user_topic=42, scheduledFor="2024-01-01T00:00:00Z")

        response = client.post(
            "/api/session/find-or-create",
            json={"userTopicId": 42, "scheduledFor": "2024-01-01T00:00:00Z", "id": 7, "isPaused": True},
        )

        assert response.json()["data"] == [session]
        assert upstream.calls_to("POST", "/api/study-sessions") == []

    def test_optional_fields_forwarded_only_when_present(self, client, upstream):
        client.post(
            "/api/session/find-or-create",
            json={
                "userTopicId": 42,
                "scheduledFor": "2024-01-01T00:00:00Z",
                "id": 7,
                "isPaused": False,
                "lastSync": "2023-12-31T00:00:00Z",
            },
        )

        sent = upstream.body(upstream.calls_to("POST", "/api/study-sessions")[0])["data"]
        assert sent == {
            "isPaused": False,
            "scheduledFor": "2024-01-01T00:00:00Z",
            "user_topic": 42,
            "stayTopicId": 7,
        }

    def test_requires_key(self, client, upstream):
        response = client.post("/api/session/find-or-create", json={"userTopicId": 42, "id": 7})
        assert response.status_code == 400
        assert response.json() == {"error": "userTopicId and scheduledFor are required"}
        assert upstream.calls == []

    def test_requires_stay_topic_id(self, client, upstream):
        response = client.post(
            "/api/session/find-or-create",
            json={"userTopicId": 42, "scheduledFor": "2024-01-01T00:00:00Z"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Stay topic id (id) is required"}


class TestGetSessions:
    """Tests for GET /api/session/get."""

    def test_by_user_topic(self, client, upstream):
        client.get("/api/session/get", params={"userTopicId": "42"})

        params = upstream.calls_to("GET", "/api/study-sessions")[0].url.params
        assert params["filters[user_topic][id][$eq]"] == "42"
        assert params["pagination[limit]"] == "5000"
        assert "userTopicId" not in params

    def test_by_profile(self, client, upstream):
        client.get("/api/session/get", params={"profileId": "9", "lastSync": "2024-05-01T00:00:00Z"})

        params = upstream.calls_to("GET", "/api/study-sessions")[0].url.params
        assert params["filters[user_topic][profile][id][$eq]"] == "9"
        assert params["filters[updatedAt][$gt]"] == "2024-05-01T00:00:00Z"

    def test_requires_one_key(self, client, upstream):
        response = client.get("/api/session/get")
        assert response.status_code == 400
        assert response.json() == {"error": "Either userTopicId or profileId query parameter is required"}


class TestUserTopics:
    """Tests for /api/user-topic endpoints."""

    def test_find_or_create_is_idempotent(self, client, upstream):
        first = client.post("/api/user-topic/find-or-create", json={"topicId": 5, "profileId": 9})
        second = client.post("/api/user-topic/find-or-create", json={"topicId": 5, "profileId": 9})

        assert first.json()["data"][0]["id"] == second.json()["data"][0]["id"]
        assert len(upstream.calls_to("POST", "/api/user-topics")) == 1

    def test_find_or_create_requires_key(self, client, upstream):
        response = client.post("/api/user-topic/find-or-create", json={"topicId": 5})
        assert response.status_code == 400
        assert response.json() == {"error": "topicId and profileId are required"}

    def test_find_or_create_when_lookup_answers_404(self, client, upstream):
        upstream.override(
            "GET",
            "/api/user-topics",
            lambda request: httpx.Response(404, json={"error": {"status": 404, "message": "Not Found"}}),
        )

        response = client.post("/api/user-topic/find-or-create", json={"topicId": 5, "profileId": 9})

        assert response.status_code == 200
        assert response.json()["data"][0]["topic"] == 5
        assert len(upstream.calls_to("POST", "/api/user-topics")) == 1

    def test_get_by_profile_document_id(self, client, upstream):
        upstream.seed("user-topics", profile="doc-p", topic=5)
        upstream.seed("user-topics", profile="doc-q", topic=5)

        response = client.get("/api/user-topic/get", params={"profileId": "doc-p"})

        assert len(response.json()["data"]) == 1
        params = upstream.calls_to("GET", "/api/user-topics")[0].url.params
        assert params["populate[topic][fields][0]"] == "name"
        assert params["populate[sessions][fields][0]"] == "id"

    def test_delete(self, client, upstream):
        record = upstream.seed("user-topics", profile="doc-p", topic=5)

        response = client.delete(f"/api/user-topic/delete/{record['documentId']}")

        assert response.status_code == 200
        assert upstream.collections["user-topics"] == []


class TestTopics:
    """Tests for /api/topic endpoints."""

    def test_create_requires_name_and_subject(self, client, upstream):
        response = client.post("/api/topic/create", json={"name": "Kinematics"})
        assert response.status_code == 400
        assert response.json() == {"error": "Name and Subject are required"}

    def test_create(self, client, upstream):
        client.post("/api/topic/create", json={"name": "Kinematics", "subject": 2, "ownerProfile": 9})

        sent = upstream.body(upstream.calls_to("POST", "/api/topics")[0])
        assert sent == {"data": {"name": "Kinematics", "subject": 2, "ownerProfile": 9}}

    def test_search(self, client, upstream):
        client.get("/api/topic/get", params={"subject": "2", "name": "kin", "ownerProfile": "9"})

        params = upstream.calls_to("GET", "/api/topics")[0].url.params
        assert params["filters[subject][$eq]"] == "2"
        assert params["filters[name][$contains]"] == "kin"
        assert params["filters[$or][0][ownerProfile][id][$eq]"] == "9"
        assert params["filters[$or][1][ownerProfile][$null]"] == "true"


class TestAnalyses:
    """Tests for /api/analysis endpoints."""

    def test_get_by_session_passes_other_params(self, client, upstream):
        client.get("/api/analysis/get", params={"sessionId": "4", "populate": "*"})

        params = upstream.calls_to("GET", "/api/analyses")[0].url.params
        assert params["filters[study_session][id][$eq]"] == "4"
        assert params["populate"] == "*"
        assert "sessionId" not in params

    def test_create(self, client, upstream):
        client.post("/api/analysis/create", json={"weakPoints": ["units"], "study_session": 4})

        sent = upstream.body(upstream.calls_to("POST", "/api/analyses")[0])
        assert sent == {"data": {"weakPoints": ["units"], "study_session": 4}}


class TestCatalog:
    """Tests for subjects, exams and content."""

    def test_subjects_for_exam(self, client, upstream):
        client.get("/api/subject/get", params={"exam": "JEE", "profileId": "9"})

        params = upstream.calls_to("GET", "/api/subjects")[0].url.params
        assert params["filters[exams][name][$eq]"] == "JEE"
        assert params["populate[exams][filters][name][$eq]"] == "JEE"
        assert params["populate[topics][filters][$or][0][ownerProfile][id][$eq]"] == "9"
        assert "exam" not in params

    def test_subjects_require_exam(self, client, upstream):
        response = client.get("/api/subject/get")
        assert response.status_code == 400
        assert upstream.calls == []

    def test_exams(self, client, upstream):
        upstream.seed("exams", name="JEE")

        response = client.get("/api/exams/get")

        assert response.json()["data"][0]["name"] == "JEE"
        assert upstream.calls_to("GET", "/api/exams")[0].url.params["fields[0]"] == "name"

    def test_articles_pass_query_through(self, client, upstream):
        client.get("/api/content/articles", params={"sort": "publishedAt:desc"})

        params = upstream.calls_to("GET", "/api/articles")[0].url.params
        assert params["populate"] == "*"
        assert params["sort"] == "publishedAt:desc"

    def test_category(self, client, upstream):
        category = upstream.seed("categories", name="News")

        response = client.get(f"/api/content/categories/{category['id']}")

        assert response.json()["data"]["name"] == "News"
