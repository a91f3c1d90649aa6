async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


async def test_signup_and_login(client):
    r = await client.post(
        "/auth/signup",
        json={"name": "Ana", "email": "ana@example.com", "password": "pw12345", "role": "professional"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["user"]["role"] == "IT Professional"
    assert body["token"]

    r = await client.post("/auth/signup", json={"name": "Ana", "email": "ana@example.com", "password": "x", "role": "student"})
    assert r.status_code == 409
    assert r.json()["error"]["message"] == "Email already registered"

    r = await client.post("/auth/login", json={"email": "ana@example.com", "password": "pw12345"})
    assert r.status_code == 200
    assert r.json()["user"]["email"] == "ana@example.com"

    r = await client.post("/auth/login", json={"email": "ana@example.com", "password": "wrong"})
    assert r.status_code == 401


async def test_signup_rejects_unknown_role(client):
    r = await client.post("/auth/signup", json={"name": "B", "email": "b@example.com", "password": "pw", "role": "admin"})
    assert r.status_code == 400
    assert r.json()["error"] == {"message": "Invalid role", "type": "http_error", "status_code": 400}


async def test_start_hides_correct_answers(client, corpus):
    r = await client.get("/assessments/start")
    assert r.status_code == 200
    questions = r.json()["questions"]
    assert {q["id"] for q in questions} == {"q-net", "q-sec"}
    assert all("correct" not in q for q in questions)


async def test_submit_then_latest(client, corpus):
    r = await client.post(
        "/assessments/submit",
        json={"user_id": "u1", "answers": [{"question_id": "q-net", "response": "B"}]},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["assessment"]["score_vector"] == {"network": 100, "security": 0}
    assert body["strengths"] == ["network"]
    assert body["weaknesses"] == ["security"]
    assert [t["title"] for t in body["recommended_tracks"]] == ["Network Fundamentals"]
    assert body["assessment"]["ai_feedback"] is None

    r = await client.get("/assessments/latest/u1")
    assert r.status_code == 200
    assert r.json()["assessment"]["id"] == body["assessment"]["id"]

    r = await client.get("/courses/recommend/u1")
    assert [t["title"] for t in r.json()["recommended"]] == ["Network Fundamentals"]


async def test_submit_missing_answers_is_invalid_input(client):
    r = await client.post("/assessments/submit", json={"user_id": "u1"})
    assert r.status_code == 400
    assert r.json()["error"] == {"message": "Missing user_id or answers", "type": "invalid_input", "status_code": 400}


async def test_latest_not_found(client):
    r = await client.get("/assessments/latest/nobody")
    assert r.status_code == 404
    assert r.json()["error"]["type"] == "not_found"


async def test_ai_feedback_uses_latest_assessment(client, corpus):
    await client.post("/assessments/submit", json={"user_id": "u1", "answers": [{"question_id": "q-net", "response": "B"}]})
    payload = {"score_vector": {"network": 100, "security": 0}, "user": {"id": "u1"}}

    first = (await client.post("/results/ai-feedback", json=payload)).json()
    second = (await client.post("/results/ai-feedback", json=payload)).json()
    assert first["cached"] is False
    assert second["cached"] is True
    assert second["feedback"] == first["feedback"]

    latest = (await client.get("/assessments/latest/u1")).json()["assessment"]
    assert latest["score_vector"] == {"network": 100, "security": 0}
    assert latest["recommended_tracks"] == first["recommended_tracks"]
    assert latest["ai_feedback"] == first["feedback"]
    assert latest["ai_career_path"] == first["career_path"]
    assert latest["ai_next_steps"] == first["next_steps"]


async def test_ai_feedback_requires_score_vector(client):
    r = await client.post("/results/ai-feedback", json={"user": {"id": "u1"}})
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "Missing score_vector"


async def test_create_track_requires_professional(client, auth_header):
    body = {"title": "Linux", "description": "Shell basics", "difficulty": "beginner"}
    r = await client.post("/tracks", json=body, headers=auth_header("u1", "student"))
    assert r.status_code == 403


async def test_track_lifecycle(client, professional, auth_header):
    headers = auth_header(professional.id, "IT Professional")
    body = {
        "title": "Linux",
        "description": "Shell basics",
        "difficulty": "beginner",
        "modules": [
            {"type": "lesson", "lessons": [{"title": "Files"}, {"title": "Permissions"}]},
            {"type": "quiz", "questions": [{"stem": "ls lists?", "tags": ["linux"], "options": ["files"], "correct": "files"}]},
        ],
    }
    r = await client.post("/tracks", json=body, headers=headers)
    assert r.status_code == 201
    track = r.json()["track"]
    assert track["creator_id"] == professional.id
    assert [m["type"] for m in track["modules"]] == ["lesson", "quiz"]
    module_id = track["modules"][0]["id"]

    r = await client.get(f"/modules/{module_id}/lessons")
    assert [lesson["title"] for lesson in r.json()["lessons"]] == ["Files", "Permissions"]

    r = await client.post(f"/modules/{module_id}/lessons", json={"title": "Processes", "order": 2})
    assert r.status_code == 201
    lesson_id = r.json()["lesson"]["id"]
    assert (await client.get(f"/lessons/{lesson_id}")).json()["lesson"]["title"] == "Processes"

    r = await client.delete(f"/tracks/{track['id']}", headers=headers)
    assert r.status_code == 200
    assert (await client.get(f"/tracks/{track['id']}")).status_code == 404
    assert (await client.get(f"/lessons/{lesson_id}")).status_code == 404


async def test_create_track_missing_fields(client, professional, auth_header):
    r = await client.post("/tracks", json={"title": "Only title"}, headers=auth_header(professional.id, "IT Professional"))
    assert r.status_code == 400
    assert r.json()["error"]["type"] == "invalid_input"


async def test_module_progress(client, corpus, auth_header):
    track = corpus["tracks"][0]
    module_ids = [m.id for m in track.modules]
    base = f"/users/u1/track-progress/{track.id}"
    headers = auth_header("u1")

    r = await client.post(f"{base}/module/{module_ids[0]}/complete", headers=headers)
    assert r.status_code == 200
    assert r.json()["percent"] == 50

    # completing twice does not double count
    r = await client.post(f"{base}/module/{module_ids[0]}/complete", headers=headers)
    assert r.json()["progress"]["completed_modules"] == [module_ids[0]]

    r = await client.post(f"{base}/module/{module_ids[1]}/complete", headers=headers)
    assert r.json()["percent"] == 100

    r = await client.get("/users/u1/progress-summary")
    assert r.json() == {"completed_tracks": 1, "completed_modules": 2}

    r = await client.get(f"/tracks/{track.id}/stats")
    assert r.json() == {"enrolled_users": 1, "completed_users": 1, "completion_rate": 100}


async def test_progress_is_owner_only(client, corpus, auth_header):
    track = corpus["tracks"][0]
    r = await client.put(f"/users/u1/track-progress/{track.id}", json={"completed_games": ["g1"]}, headers=auth_header("u2"))
    assert r.status_code == 403

    r = await client.put(f"/users/u1/track-progress/{track.id}", json={"completed_games": ["g1"]}, headers=auth_header("u1"))
    assert r.status_code == 200
    assert r.json()["progress"]["completed_games"] == ["g1"]
    assert (await client.get(f"/users/u1/track-progress/{track.id}")).json()["progress"]["completed_modules"] == []


async def test_progress_missing(client, corpus):
    r = await client.get(f"/users/u1/track-progress/{corpus['tracks'][1].id}")
    assert r.status_code == 404
    assert r.json()["error"]["message"] == "No progress found"
