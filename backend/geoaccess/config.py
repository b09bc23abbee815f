# backend/geoaccess/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/geoaccess.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///geoaccess.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Shared secret between the authentication gateway and this service.
    # Empty means actor headers are trusted as-is (local development).
    GATEWAY_TOKEN = os.environ.get("GATEWAY_TOKEN", "")

    # Radius applied to new organizations until their policy says otherwise
    GEOFENCE_DEFAULT_RADIUS_METERS = int(os.environ.get("GEOFENCE_DEFAULT_RADIUS_METERS", "100"))

    # Write a location_audit_events row for every login evaluation
    GEOFENCE_AUDIT_DECISIONS = _env_flag("GEOFENCE_AUDIT_DECISIONS", True)

    CORS_ALLOWED_ORIGINS = tuple(
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    )
