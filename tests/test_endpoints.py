"""
Integration tests for API endpoints using the SQLite test database.
"""
import uuid


def _signup(client, tier=None) -> dict:
    payload = {"email": f"api-{uuid.uuid4().hex[:10]}@example.com", "name": "Api"}
    if tier:
        payload["tier"] = tier
    r = client.post("/users", json=payload)
    assert r.status_code == 201
    return r.json()


def _vow(client, user_id: int, duration: int = 30) -> dict:
    r = client.post("/vows", json={
        "user_id": user_id,
        "identity": "honors my body",
        "boundary": "never drink alcohol again",
        "duration_days": duration,
    })
    assert r.status_code == 201
    return r.json()


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"


class TestUsers:
    def test_signup_trial(self, client):
        user = _signup(client)
        assert user["subscription_status"] == "trial"
        assert user["subscription_tier"] == "trial"
        assert user["trial_end_date"] is not None
        assert user["total_xp"] == 0

    def test_signup_paid(self, client):
        user = _signup(client, tier="liberation")
        assert user["subscription_status"] == "active"
        assert user["subscription_tier"] == "liberation"

    def test_duplicate_email_conflict(self, client):
        email = f"dup-{uuid.uuid4().hex[:8]}@example.com"
        assert client.post("/users", json={"email": email}).status_code == 201
        r = client.post("/users", json={"email": email})
        assert r.status_code == 409
        assert r.json()["code"] == "USER_EXISTS"

    def test_invalid_tier_rejected(self, client):
        r = client.post("/users", json={"email": "a@b.co", "tier": "platinum"})
        assert r.status_code == 422

    def test_get_user(self, client):
        user = _signup(client)
        r = client.get(f"/users/{user['id']}")
        assert r.status_code == 200
        assert r.json()["email"] == user["email"]


class TestAccess:
    def test_trial_access(self, client):
        user = _signup(client)
        body = client.get(f"/users/{user['id']}/access").json()
        assert body["has_access"] is True
        assert body["is_trial"] is True
        assert body["days_left"] == 2
        assert "reason" not in body

    def test_unknown_user_is_not_404(self, client):
        r = client.get("/users/999999/access")
        assert r.status_code == 200
        assert r.json()["has_access"] is False
        assert r.json()["reason"] == "NO_USER"

    def test_subscription_transitions(self, client):
        user = _signup(client)
        uid = user["id"]

        client.post(f"/users/{uid}/subscription", json={"status": "active", "tier": "reflection"})
        body = client.get(f"/users/{uid}/access").json()
        assert body == {"has_access": True, "is_paid": True}

        client.post(f"/users/{uid}/subscription", json={"status": "canceled"})
        assert client.get(f"/users/{uid}/access").json()["reason"] == "SUBSCRIPTION_CANCELLED"

        client.post(f"/users/{uid}/subscription", json={"status": "past_due"})
        assert client.get(f"/users/{uid}/access").json()["reason"] == "UNKNOWN_STATUS"

    def test_user_features(self, client):
        user = _signup(client)
        body = client.get(f"/users/{user['id']}/features").json()
        assert body["tier"] == "trial"
        assert "basic_vows" in body["available"]
        assert "ai_insights" in body["locked"]
        assert body["next_tier"]["target_tier"] == "Initiation"

    def test_feature_gate(self, client):
        body = client.get("/features/ai_insights/access", params={"tier": "reflection"}).json()
        assert body["has_access"] is True
        assert body["upgrade_message"] is None

        body = client.get("/features/ai_insights/access", params={"tier": "trial"}).json()
        assert body["has_access"] is False
        assert body["upgrade_message"] == "Upgrade to Reflection to unlock AI Insights"

    def test_feature_gate_fails_closed(self, client):
        assert client.get("/features/teleport/access", params={"tier": "liberation"}).json()["has_access"] is False
        assert client.get("/features/basic_vows/access", params={"tier": "gold"}).json()["has_access"] is False


class TestVows:
    def test_create_and_read(self, client):
        user = _signup(client)
        vow = _vow(client, user["id"])
        assert vow["statement"] == (
            "I'm the type of person that honors my body; therefore, I will never drink alcohol again."
        )
        assert vow["status"] == "active"
        assert vow["xp"]["awarded"] == 50

        r = client.get(f"/vows/{vow['id']}")
        assert r.status_code == 200
        assert r.json()["current_day"] == 0

    def test_missing_vow(self, client):
        r = client.get("/vows/999999")
        assert r.status_code == 404
        assert r.json()["code"] == "VOW_NOT_FOUND"

    def test_trial_vow_limit(self, client):
        user = _signup(client)
        for _ in range(3):
            _vow(client, user["id"])
        r = client.post("/vows", json={
            "user_id": user["id"], "identity": "a", "boundary": "b", "duration_days": 7,
        })
        assert r.status_code == 403
        assert r.json()["code"] == "FEATURE_LIMIT_REACHED"

    def test_complete_day_once(self, client):
        user = _signup(client)
        vow = _vow(client, user["id"])

        r = client.post(f"/vows/{vow['id']}/complete-day")
        assert r.status_code == 200
        body = r.json()
        assert body["vow"]["current_day"] == 1
        assert body["vow"]["current_streak"] == 1
        assert body["completed"] is False

        r = client.post(f"/vows/{vow['id']}/complete-day")
        assert r.status_code == 409
        assert r.json()["code"] == "ALREADY_COMPLETED"

    def test_one_day_vow_completes(self, client):
        user = _signup(client, tier="initiation")
        vow = _vow(client, user["id"], duration=1)
        body = client.post(f"/vows/{vow['id']}/complete-day").json()
        assert body["completed"] is True
        assert body["vow"]["status"] == "completed"

    def test_analyze(self, client):
        r = client.post("/vows/analyze", json={
            "text": "I'm the type of person that stays calm; therefore, I will never fight again.",
        })
        assert r.status_code == 200
        body = r.json()
        assert body["combat"]["words"] == ["fight"]
        assert body["structure"]["structure_score"] == 3
        assert body["parsed_identity"] == "stays calm"
        assert body["parsed_boundary"] == "never fight again"


class TestActivityAndProgress:
    def test_reflection_and_progress(self, client):
        user = _signup(client)
        _vow(client, user["id"])
        r = client.post(f"/users/{user['id']}/reflections", json={"content": "I noticed the urge and stayed"})
        assert r.status_code == 201
        assert r.json()["category"] == "reflection"

        body = client.get(f"/users/{user['id']}/progress").json()
        assert body["total_reflections"] == 1
        assert body["alignment_score"] == 25
        assert body["last_reflection_at"] is not None
        assert body["last_vow_at"] is not None

    def test_trigger_emotions_locked_on_trial(self, client):
        user = _signup(client)
        r = client.post(f"/users/{user['id']}/triggers", json={"emotions": ["angry"], "urge_intensity": 6})
        assert r.status_code == 403
        assert r.json()["code"] == "FEATURE_LOCKED"

    def test_trigger_with_emotions_on_paid(self, client):
        user = _signup(client, tier="initiation")
        r = client.post(f"/users/{user['id']}/triggers", json={"emotions": ["angry"], "urge_intensity": 6})
        assert r.status_code == 201
        assert r.json()["emotions"] == ["angry"]

    def test_urge_intensity_bounds(self, client):
        user = _signup(client, tier="initiation")
        r = client.post(f"/users/{user['id']}/triggers", json={"urge_intensity": 11})
        assert r.status_code == 422

    def test_identity_and_rewards(self, client):
        user = _signup(client, tier="reflection")
        vow = _vow(client, user["id"])
        client.post(f"/vows/{vow['id']}/complete-day")

        identity = client.get(f"/users/{user['id']}/identity").json()
        assert identity["journey"]["milestones"][0]["type"] == "first_vow"
        assert 0 <= identity["becoming_self"]["alignment_score"] <= 100

        rewards = client.get(f"/users/{user['id']}/rewards").json()
        assert rewards["total_xp"] == 75
        assert rewards["level"] == 1
        assert rewards["next_level"]["required"] == 100


class TestStreak:
    def test_streak_view(self, client):
        user = _signup(client, tier="initiation")
        client.post(f"/users/{user['id']}/reflections", json={"content": "day one"})
        body = client.get(f"/users/{user['id']}/streak").json()
        assert body["streak"] == 1
        assert body["max_grace"] == 1
        assert body["at_risk"] is False
        assert body["recovery_cost"] == 100

    def test_recover_without_missed_days(self, client):
        user = _signup(client, tier="initiation")
        client.post(f"/users/{user['id']}/reflections", json={"content": "today"})
        r = client.post(f"/users/{user['id']}/streak/recover")
        assert r.status_code == 403
        assert r.json()["code"] == "RECOVERY_NOT_ALLOWED"


class TestAIUsageAndPreferences:
    def test_vow_guidance_limit(self, client):
        user = _signup(client)
        url = f"/users/{user['id']}/ai-usage/vow"
        assert client.get(url).json()["message"] == "AI guidance available"

        r = client.post(url)
        assert r.status_code == 200
        assert r.json()["remaining"] == 0
        assert r.json()["message"] == "Review yesterday's guidance anytime 📿"

        r = client.post(url)
        assert r.status_code == 429
        assert r.json()["code"] == "AI_LIMIT_REACHED"

    def test_unknown_ai_feature(self, client):
        user = _signup(client)
        assert client.get(f"/users/{user['id']}/ai-usage/poetry").status_code == 422

    def test_preferences(self, client):
        user = _signup(client)
        url = f"/users/{user['id']}/preferences"
        assert client.get(url).json() == {
            "theme": "light", "notifications": True, "auto_save": True, "sound_enabled": False,
        }
        r = client.put(url, json={"theme": "dark"})
        assert r.json()["theme"] == "dark"
        assert client.get(url).json()["theme"] == "dark"
        assert client.get(url).json()["notifications"] is True
