"""Manual script to verify the Gemini API key works."""

from __future__ import annotations

import os

import requests
from config.settings import load_config

config = load_config()  # reads .env into os.environ

BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
API_KEY = config.gemini_api_key
MODEL = config.text_model

if not API_KEY:
    print("[error] GEMINI_API_KEY / API_KEY not set; check .env or environment variables.")
    raise SystemExit(1)

headers = {"x-goog-api-key": API_KEY, "Content-Type": "application/json"}

try:
    resp = requests.get(f"{BASE_URL}/models", headers=headers, timeout=30)
    print("Status:", resp.status_code)
    if resp.ok:
        data = resp.json()
        print("Models count:", len(data.get("models", [])))
        for item in data.get("models", [])[:5]:
            print("-", item.get("name"))
    else:
        print(resp.text[:500])

    payload = {
        "contents": [{"role": "user", "parts": [{"text": "ping"}]}],
        "generationConfig": {"maxOutputTokens": 1},
    }
    ping = requests.post(
        f"{BASE_URL}/models/{MODEL}:generateContent",
        headers=headers,
        json=payload,
        timeout=30,
    )
    print("Ping status:", ping.status_code)
    if not ping.ok:
        print(ping.text[:500])
except Exception as exc:  # noqa: BLE001
    print("[error]", exc)
    raise
