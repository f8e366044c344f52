"""
Tests for all HoloSelf endpoints — organized by router.
Uses the in-memory store and mocked services from conftest.
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

from holoself.schemas.health import AgentMessage, MessageCategory, OcrResult, Priority
from holoself.services.cartesia import TTSError
from holoself.services.gemini import OCRError
from holoself.services.weather import WeatherError
from holoself.services.whisper import TranscriptionError
from holoself.settings import PORT

TODAY = date.today().strftime("%Y-%m-%d")


# ────────────────────────────── Health ──────────────────────────────


class TestHealth:
    """GET / and GET /health"""

    def test_root(self, test_client):
        resp = test_client.get("/")
        assert resp.status_code == 200
        data = resp.json()
        assert "status" in data
        assert "endpoints" in data

    def test_health(self, test_client):
        resp = test_client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["service"] == "holoself-agent"
        assert resp.json()["port"] == PORT


# ────────────────────────────── Tracking ────────────────────────────


class TestTracking:
    """/supplements, /vitals, /timeline"""

    def test_log_and_read_supplement(self, test_client):
        resp = test_client.post(
            "/supplements",
            json={"name": "Winfit", "dosage": "1 saqueta", "taken_at": "2026-03-01T09:00:00", "category": "morning"},
        )
        assert resp.status_code == 200
        assert resp.json()["id"] == 1

        resp = test_client.get("/supplements", params={"from": "2026-03-01", "to": "2026-03-02"})
        assert resp.status_code == 200
        assert [s["name"] for s in resp.json()] == ["Winfit"]

    def test_supplement_missing_fields(self, test_client):
        resp = test_client.post("/supplements", json={"dosage": "1"})
        assert resp.status_code == 422

    def test_vitals_and_timeline(self, test_client):
        resp = test_client.post(
            "/vitals",
            json={"vital_type": "heart_rate", "value": 60, "unit": "bpm", "recorded_at": "2026-03-01T10:00:00"},
        )
        assert resp.status_code == 200
        resp = test_client.get("/timeline", params={"from": "2026-03-01", "to": "2026-03-02"})
        assert resp.json()[0]["event_type"] == "vital"

    def test_storage_error_is_500(self, test_client, store):
        store.get_vitals = MagicMock(side_effect=RuntimeError("disk"))
        resp = test_client.get("/vitals", params={"from": "a", "to": "b"})
        assert resp.status_code == 500


# ────────────────────────────── Labs ────────────────────────────────


class TestLabs:

    def test_add_lab(self, test_client, store):
        resp = test_client.post(
            "/labs", json={"marker": "TSH", "value": 2.1, "unit": "mUI/L", "test_date": "2026-01-01"}
        )
        assert resp.status_code == 200
        assert store.latest_test_date_per_marker() == [("TSH", "2026-01-01")]

    def test_import(self, test_client):
        resp = test_client.post(
            "/labs/import",
            json={"result": {"date": "2026-01-01", "markers": [{"marker": "Zinc", "value": 90, "unit": "µg/dL"}]}},
        )
        assert resp.status_code == 200
        assert len(resp.json()["imported_ids"]) == 1

    def test_ocr_persist(self, test_client, fake_llm, store):
        fake_llm.ocr_clinical_pdf = AsyncMock(
            return_value=OcrResult(date="2026-02-01", markers=[{"marker": "Ferritin", "value": 80, "unit": "ng/mL"}])
        )
        resp = test_client.post("/labs/ocr", json={"file_path": "/tmp/labs.pdf", "persist": True})
        assert resp.status_code == 200
        assert resp.json()["imported_ids"] == [1]
        assert store.latest_test_date_per_marker() == [("Ferritin", "2026-02-01")]

    def test_ocr_error_is_400(self, test_client, fake_llm):
        fake_llm.ocr_clinical_pdf = AsyncMock(side_effect=OCRError("Only PDF files are accepted."))
        resp = test_client.post("/labs/ocr", json={"file_path": "/tmp/a.txt"})
        assert resp.status_code == 400


# ────────────────────────────── Agent ───────────────────────────────


class TestAgent:

    def test_message(self, test_client):
        resp = test_client.get("/agent/message")
        assert resp.status_code == 200
        data = resp.json()
        assert data["category"] in {c.value for c in MessageCategory}
        assert data["priority"] in {p.value for p in Priority}

    def test_action_logs_supplement(self, test_client, store):
        resp = test_client.post(
            "/agent/action",
            json={"action_type": "log_supplement", "payload": {"name": "Winfit", "dosage": "1 saqueta"}},
        )
        assert resp.status_code == 200
        assert resp.json()["message"] == "Winfit registado com sucesso."
        assert store.is_supplement_taken("Winfit", date.today())

    def test_unknown_action_is_400(self, test_client):
        resp = test_client.post("/agent/action", json={"action_type": "dance", "payload": {}})
        assert resp.status_code == 400

    def test_daily_stats(self, test_client):
        resp = test_client.get("/agent/daily-stats")
        assert resp.status_code == 200
        data = resp.json()
        assert data["date"] == TODAY
        assert data["supplements_total"] == 3


# ────────────────────────────── Scheduler ───────────────────────────


class TestScheduler:

    def test_predicted_with_no_history(self, test_client):
        resp = test_client.get("/schedule/predicted")
        assert resp.status_code == 200
        assert [e["exam_type"] for e in resp.json()] == ["vitamin_d_panel", "thyroid_panel"]

    def test_save_upcoming_and_complete(self, test_client):
        predicted = test_client.get("/schedule/predicted").json()
        resp = test_client.post("/schedule/exams", json={"exams": predicted})
        assert resp.json() == {"ids": [1, 2], "skipped": 0}

        resp = test_client.post("/schedule/exams", json={"exams": predicted})
        assert resp.json() == {"ids": [], "skipped": 2}

        assert len(test_client.get("/schedule/upcoming").json()) == 2
        assert test_client.post("/schedule/exams/1/complete").status_code == 200
        assert len(test_client.get("/schedule/upcoming").json()) == 1

    def test_complete_missing_is_404(self, test_client):
        assert test_client.post("/schedule/exams/42/complete").status_code == 404


# ────────────────────────────── Voice ───────────────────────────────


class TestVoice:

    def test_speak(self, test_client):
        resp = test_client.post("/voice/speak", json={"text": "Olá"})
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "audio/wav"

    def test_speak_empty_is_400(self, test_client):
        assert test_client.post("/voice/speak", json={"text": "  "}).status_code == 400

    def test_speak_without_engine_is_503(self, test_client, fake_voice):
        fake_voice.synthesize = AsyncMock(side_effect=TTSError("no engine"))
        assert test_client.post("/voice/speak", json={"text": "Olá"}).status_code == 503

    def test_speak_agent_message(self, test_client, fake_voice):
        resp = test_client.post("/voice/speak-agent-message")
        assert resp.status_code == 200
        fake_voice.synthesize.assert_awaited_once()

    def test_command(self, test_client, fake_voice):
        reply = AgentMessage(
            text="Entendido. Confirma o registo de Winfit (1 saqueta).",
            category=MessageCategory.VOICE_RESPONSE,
            priority=Priority.HIGH,
        )
        fake_voice.process_voice_command = AsyncMock(return_value=("tomei Winfit", reply))
        resp = test_client.post("/voice/command", content=b"RIFF....", headers={"content-type": "audio/wav"})
        assert resp.status_code == 200
        assert resp.json()["transcript"] == "tomei Winfit"
        fake_voice.save_temp_audio.assert_called_once_with(b"RIFF....")

    def test_command_without_audio_is_400(self, test_client):
        assert test_client.post("/voice/command", content=b"").status_code == 400

    def test_command_unintelligible_is_422(self, test_client, fake_voice):
        fake_voice.process_voice_command = AsyncMock(side_effect=TranscriptionError("vazio"))
        assert test_client.post("/voice/command", content=b"RIFF").status_code == 422

    def test_transcribe(self, test_client):
        resp = test_client.post("/voice/transcribe", json={"audio_path": "/tmp/a.wav"})
        assert resp.json() == {"transcript": "tomei Winfit"}


# ────────────────────────────── Vitamin D ───────────────────────────


class TestVitaminD:

    def test_recommendation(self, test_client):
        resp = test_client.get("/vitamin-d/recommendation", params={"uv_index": 6, "month": 6})
        assert resp.status_code == 200
        data = resp.json()
        assert data["optimal_minutes"] == 15
        assert data["best_window"] == "10:00 - 16:00"

    def test_recommendation_requires_uv(self, test_client):
        assert test_client.get("/vitamin-d/recommendation").status_code == 422

    def test_uv_index(self, test_client):
        with patch("holoself.routers.vitamin_d.get_current_uv_index", AsyncMock(return_value=4.2)):
            resp = test_client.get("/vitamin-d/uv-index")
        assert resp.json()["uv_index"] == 4.2

    def test_uv_index_unavailable(self, test_client):
        with patch("holoself.routers.vitamin_d.get_current_uv_index", AsyncMock(side_effect=WeatherError("down"))):
            assert test_client.get("/vitamin-d/uv-index").status_code == 502


# ────────────────────────────── Settings & System ───────────────────


class TestSettingsAndSystem:

    def test_get_settings(self, test_client):
        resp = test_client.get("/settings")
        assert resp.status_code == 200
        assert resp.json()["whisper_language"] == "pt"

    def test_put_settings(self, test_client):
        with patch("holoself.routers.settings.save_settings") as mock_save, \
                patch("holoself.routers.settings.dependencies.reload_settings") as mock_reload:
            resp = test_client.put("/settings", json={"skin_type": 3})
        assert resp.status_code == 200
        assert resp.json()["skin_type"] == 3
        mock_save.assert_called_once()
        mock_reload.assert_called_once()

    def test_system_status(self, test_client):
        resp = test_client.get("/system/status")
        assert resp.status_code == 200
        data = resp.json()
        assert data["db_connected"] is True
        assert data["gemini_configured"] is False
        assert data["voice_available"] is False
