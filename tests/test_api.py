"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from cryptobreaker.main import app
from cryptobreaker.services.engines.monoalphabetic.caesar import CaesarEngine
from cryptobreaker.services.engines.polyalphabetic.vigenere import VigenereEngine


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


class TestAnalyzeEndpoint:
    def test_analyze_plaintext(self, client, english_passage):
        response = client.post("/api/v1/analyze", json={"ciphertext": english_passage})

        assert response.status_code == 200
        body = response.json()
        assert body["detection"]["label"] == "plaintext"
        assert body["detected_language"] == "english"
        assert body["statistics"]["character_frequencies"][0]["character"] == "E"

    def test_analyze_unknown_language(self, client, english_passage):
        response = client.post(
            "/api/v1/analyze",
            json={"ciphertext": english_passage, "language": "klingon"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "UnknownLanguageError"


class TestBreakEndpoint:
    def test_break_caesar(self, client, english_passage):
        ciphertext = CaesarEngine.shift_text(english_passage, 3)

        response = client.post(
            "/api/v1/break",
            json={"ciphertext": ciphertext, "cipher_type": "caesar"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["result"]["key"] == 3
        assert body["result"]["formatted_plaintext"] == english_passage
        assert body["result"]["plaintext"] not in body["alternatives"]

    def test_break_vigenere_with_options(self, client, english_passage):
        ciphertext = VigenereEngine().encrypt(english_passage, "LEMON")

        response = client.post(
            "/api/v1/break",
            json={
                "ciphertext": ciphertext,
                "cipher_type": "vigenere",
                "options": {"max_key_length": 10, "max_workers": 2},
            },
        )

        assert response.status_code == 200
        assert response.json()["result"]["key"] == "LEMON"

    def test_break_substitution(self, client, english_passage):
        response = client.post(
            "/api/v1/break",
            json={
                "ciphertext": english_passage,
                "cipher_type": "substitution",
                "options": {"max_iterations": 100, "seed": 3},
            },
        )

        assert response.status_code == 200
        assert len(response.json()["result"]["key"]) == 26

    def test_break_invalid_input(self, client):
        response = client.post(
            "/api/v1/break",
            json={"ciphertext": "123 456 !!!", "cipher_type": "caesar"},
        )

        assert response.status_code == 200
        assert response.json()["result"]["valid"] is False

    def test_break_unsupported_option(self, client):
        response = client.post(
            "/api/v1/break",
            json={
                "ciphertext": "KHOOR ZRUOG",
                "cipher_type": "caesar",
                "options": {"rounds": 4},
            },
        )

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_break_invalid_engine_option_value(self, client):
        response = client.post(
            "/api/v1/break",
            json={
                "ciphertext": "KHOOR ZRUOG",
                "cipher_type": "substitution",
                "options": {"method": "genetic"},
            },
        )

        assert response.status_code == 400

    def test_break_unknown_cipher_type(self, client):
        response = client.post(
            "/api/v1/break",
            json={"ciphertext": "KHOOR ZRUOG", "cipher_type": "enigma"},
        )

        assert response.status_code == 422


class TestKnownKeyEndpoints:
    def test_decrypt(self, client):
        response = client.post(
            "/api/v1/decrypt",
            json={"ciphertext": "Khoor, Zruog!", "cipher_type": "caesar", "key": 3},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["plaintext"] == "Hello, World!"
        assert body["key_used"] == 3
        assert "shift" in body["explanation"]

    def test_decrypt_invalid_key(self, client):
        response = client.post(
            "/api/v1/decrypt",
            json={"ciphertext": "LXFOPVEFRNHR", "cipher_type": "vigenere", "key": "LEM0N"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "InvalidKeyError"
        assert body["details"]["cipher_type"] == "vigenere"

    def test_encrypt_with_key(self, client):
        response = client.post(
            "/api/v1/encrypt",
            json={"plaintext": "ATTACKATDAWN", "cipher_type": "vigenere", "key": "LEMON"},
        )

        assert response.status_code == 200
        assert response.json()["ciphertext"] == "LXFOPVEFRNHR"

    def test_encrypt_random_key(self, client):
        response = client.post(
            "/api/v1/encrypt",
            json={"plaintext": "Attack at dawn", "cipher_type": "substitution"},
        )

        assert response.status_code == 200
        body = response.json()
        key = body["key_used"]
        assert sorted(key) == sorted("ABCDEFGHIJKLMNOPQRSTUVWXYZ")

        decrypted = client.post(
            "/api/v1/decrypt",
            json={"ciphertext": body["ciphertext"], "cipher_type": "substitution", "key": key},
        )
        assert decrypted.json()["plaintext"] == "Attack at dawn"


class TestLanguagesEndpoint:
    def test_list_languages(self, client):
        response = client.get("/api/v1/languages")

        assert response.status_code == 200
        assert response.json()["languages"] == ["english", "turkish"]
