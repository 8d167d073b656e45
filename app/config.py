# app/config.py
"""
Application configuration.
All settings can be overridden via environment variables; tests pass a
mapping to ``create_app`` instead.
"""

import os


class Config:
    # ── Security ──────────────────────────────────────────────────────────
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    TOKEN_MAX_AGE = int(os.getenv("TOKEN_MAX_AGE", str(7 * 24 * 3600)))  # 7 days

    # ── Environment ───────────────────────────────────────────────────────
    APP_ENV = os.getenv("APP_ENV", "development")
    APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Pacific/Auckland")

    # ── Storage ───────────────────────────────────────────────────────────
    STORE_PATH = os.getenv("STORE_PATH") or None  # None -> <repo>/data.pkl
    STORAGE_TIMEOUT = float(os.getenv("STORAGE_TIMEOUT", "5"))  # seconds per lock wait
    READ_RETRIES = int(os.getenv("READ_RETRIES", "2"))

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = os.getenv("LOG_DIR") or None
