"""Tests for the FastAPI endpoints."""

import random

import pytest
from fastapi.testclient import TestClient

from sandwich_lang.api.app import create_app
from sandwich_lang.models.config import AgentConfig
from sandwich_lang.transcript.store import TranscriptStore


@pytest.fixture
def client(lexicon):
    app = create_app(
        lexicon=lexicon,
        config=AgentConfig(max_turns=15, turn_timeout_seconds=5),
        transcript_store=TranscriptStore(db_path=":memory:"),
        rng=random.Random(1),
    )
    return TestClient(app)


class TestLexiconEndpoints:
    def test_lookup_word(self, client):
        response = client.get("/lexicon/lo")
        assert response.status_code == 200
        assert response.json()["entry"]["function"] == "Greeting"

    def test_lookup_unknown_word(self, client):
        assert client.get("/lexicon/tutu").status_code == 404

    def test_ingredient_word(self, client):
        response = client.get("/ingredients/lettuce/word")
        assert response.status_code == 200
        assert response.json()["word"] == "saweta"
        assert client.get("/ingredients/anchovy/word").status_code == 404


class TestLanguageEndpoints:
    def test_parse(self, client):
        response = client.post("/parse", json={"text": "saweta ta"})
        assert response.status_code == 200
        data = response.json()
        assert data["operation"]["kind"] == "add"
        assert data["operation"]["ingredient"]["name"] == "lettuce"

    def test_parse_failure(self, client):
        assert client.post("/parse", json={"text": "ta ta ta"}).status_code == 422

    def test_encode(self, client):
        response = client.post("/encode", json={
            "operation": {
                "kind": "remove",
                "ingredient": {"name": "cheddar", "morpheme": "pe"},
            },
        })
        assert response.status_code == 200
        assert response.json() == {"text": "ne sawape ta", "subtitles": "no cheddar want"}

    def test_encode_unknown_ingredient(self, client):
        response = client.post("/encode", json={
            "operation": {"kind": "add", "ingredient": {"name": "anchovy", "morpheme": "an"}},
        })
        assert response.status_code == 404

    def test_personality_hides_turn_state(self, client):
        data = client.get("/personality").json()
        assert "laziness" in data
        assert "refused" not in data
        assert "last_lex" not in data


class TestNegotiationEndpoints:
    def test_run_and_read_back(self, client):
        response = client.post("/negotiations", json={"seed": 3})
        assert response.status_code == 200
        data = response.json()
        session_id = data["outcome"]["session_id"]
        assert data["outcome"]["result"]["complete"]
        assert data["turns"][0]["text"] == "lo"

        transcript = client.get(f"/transcripts/{session_id}")
        assert transcript.status_code == 200
        assert len(transcript.json()) == len(data["turns"])
        assert client.get("/transcripts").json()

    def test_unknown_session(self, client):
        assert client.get("/transcripts/missing").status_code == 404
