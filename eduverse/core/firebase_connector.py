"""
Initialisation du SDK Firebase Admin et accès au client Firestore.

Credentials are looked up in this order:
- `settings.FIREBASE_CREDENTIALS_JSON`, either the service account JSON itself
  (value starting with '{') or a path to the JSON file;
- the GOOGLE_APPLICATION_CREDENTIALS environment variable (path to a file).

A missing or malformed service account raises ValueError with a message meant
for the deploy logs.
"""
import json
import logging
import os
from typing import Tuple

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore import Client as FirestoreClient

from eduverse.core.config import settings

logger = logging.getLogger(__name__)


def _certificate_from_json(raw: str) -> credentials.Certificate:
    try:
        info = json.loads(raw)
    except ValueError as e:
        raise ValueError(f"FIREBASE_CREDENTIALS_JSON does not contain valid JSON: {e}")
    if info.get("type") != "service_account":
        raise ValueError("Invalid service account certificate: 'type' field must be 'service_account'.")
    return credentials.Certificate(info)


def _certificate_from_file(path: str, source: str) -> credentials.Certificate:
    path = os.path.expanduser(path)
    if not os.path.isfile(path):
        raise ValueError(f"{source} points to a file that does not exist: {path}")
    return credentials.Certificate(path)


def _load_credentials() -> Tuple[credentials.Certificate, str]:
    raw = (settings.FIREBASE_CREDENTIALS_JSON or "").strip()
    if raw:
        if raw.startswith("{"):
            return _certificate_from_json(raw), "FIREBASE_CREDENTIALS_JSON"
        return _certificate_from_file(raw, "FIREBASE_CREDENTIALS_JSON"), "FIREBASE_CREDENTIALS_JSON"

    path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    if path:
        return _certificate_from_file(path, "GOOGLE_APPLICATION_CREDENTIALS"), "GOOGLE_APPLICATION_CREDENTIALS"

    raise ValueError(
        "Firebase credentials not provided. Set FIREBASE_CREDENTIALS_JSON (content or path) "
        "or GOOGLE_APPLICATION_CREDENTIALS (path)."
    )


def initialize_firebase() -> None:
    """Initialise l'application Firebase par défaut (sans effet si déjà fait)."""
    if firebase_admin._apps:
        logger.debug("Firebase already initialized")
        return

    logger.info("Initializing Firebase Admin SDK...")
    try:
        cred, source = _load_credentials()
        options = {"storageBucket": settings.FIREBASE_STORAGE_BUCKET} if settings.FIREBASE_STORAGE_BUCKET else None
        firebase_admin.initialize_app(cred, options)
    except Exception as e:
        logger.error(f"Fatal error: Failed to initialize Firebase Admin SDK: {e}")
        raise
    logger.info(f"Firebase Admin SDK initialized from {source}")


def get_db() -> FirestoreClient:
    """FastAPI dependency returning the Firestore client."""
    return firestore.client()
