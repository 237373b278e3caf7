"""Shared fixtures: env, in-memory token store, event builders."""
from __future__ import annotations

import base64
import json

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from services import discord_api, token_store

BOUNDARY = "----relaytestboundary7MA4YWxkTrZu0gW"

ENV_KEYS = [
    "TOKEN_STORE", "TOKEN_TABLE", "TOKEN_NDJSON_KEY",
    "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "COS_BUCKET", "COS_REGION",
    "DISCORD_PUBLIC_KEY", "DISCORD_BOT_TOKEN", "DISCORD_VERIFIED_ROLE_ID",
    "DISCORD_RESIDENT_ROLE_ID", "DISCORD_STAFF_ROLE_IDS", "DISCORD_API_BASE",
    "MAX_UPLOAD_MB", "UPLOAD_FILENAME_PREFIX", "SUBMISSION_TITLE", "API_VERSION", "HTTP_TIMEOUT",
]


class FakeStore:
    """Stands in for token_store.get_token / update_token."""

    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.lookups: list[tuple[str, str]] = []
        self.updates: list[tuple[str, dict]] = []
        self.fail_lookup = False
        self.fail_update = False

    def get_token(self, token, columns="*"):
        self.lookups.append((token, columns))
        if self.fail_lookup:
            raise RuntimeError("store down")
        row = self.rows.get(token)
        return dict(row) if row is not None else None

    def update_token(self, token, fields):
        self.updates.append((token, dict(fields)))
        if self.fail_update:
            raise RuntimeError("column does not exist")
        if token not in self.rows:
            return False
        self.rows[token].update(fields)
        return True


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-role-key")


@pytest.fixture
def store(monkeypatch):
    fake = FakeStore()
    monkeypatch.setattr(token_store, "get_token", fake.get_token)
    monkeypatch.setattr(token_store, "update_token", fake.update_token)
    return fake


@pytest.fixture
def webhook(monkeypatch):
    """Records webhook relays; set .response to change the reply."""

    class Recorder:
        def __init__(self):
            self.calls = []
            self.response = (204, "")

        def __call__(self, webhook_url, payload, filename, blob, mime):
            self.calls.append({
                "url": webhook_url, "payload": payload,
                "filename": filename, "blob": blob, "mime": mime,
            })
            return self.response

    rec = Recorder()
    monkeypatch.setattr(discord_api, "post_webhook_file", rec)
    return rec


@pytest.fixture
def signing_key():
    return Ed25519PrivateKey.generate()


@pytest.fixture
def public_key_hex(signing_key):
    return signing_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()


def multipart_body(fields: dict, files: dict) -> bytes:
    """files: name -> (filename, data, mime)"""
    parts = []
    for name, value in fields.items():
        parts.append(
            f'--{BOUNDARY}\r\nContent-Disposition: form-data; name="{name}"\r\n\r\n{value}\r\n'.encode()
        )
    for name, (filename, data, mime) in files.items():
        head = (
            f'--{BOUNDARY}\r\nContent-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
            f"Content-Type: {mime}\r\n\r\n"
        ).encode()
        parts.append(head + data + b"\r\n")
    parts.append(f"--{BOUNDARY}--\r\n".encode())
    return b"".join(parts)


def multipart_event(fields: dict, files: dict, path: str = "/verify") -> dict:
    body = multipart_body(fields, files)
    return {
        "httpMethod": "POST",
        "path": path,
        "headers": {"content-type": f"multipart/form-data; boundary={BOUNDARY}"},
        "body": base64.b64encode(body).decode("ascii"),
        "isBase64Encoded": True,
    }


def signed_event(signing_key, payload: dict, timestamp: str = "1760870400",
                 path: str = "/discord/interactions") -> dict:
    raw = json.dumps(payload)
    sig = signing_key.sign(timestamp.encode() + raw.encode()).hex()
    return {
        "httpMethod": "POST",
        "path": path,
        "headers": {
            "Content-Type": "application/json",
            "X-Signature-Ed25519": sig,
            "X-Signature-Timestamp": timestamp,
        },
        "body": raw,
        "isBase64Encoded": False,
    }


def body_of(resp: dict):
    return json.loads(resp["body"])
