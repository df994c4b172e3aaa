"""
Firebase Admin SDK initialization.
Single-source-of-truth clients for the Realtime Database (live report tree),
Firestore (cold storage, logs, rate ledger) and Cloud Storage (report images).
"""

import json
import os
from typing import Optional

import firebase_admin
from firebase_admin import credentials, db as rtdb, firestore, initialize_app, storage

from app.core.settings import settings

_app: Optional[firebase_admin.App] = None


def _validate_credentials_file(cred_path: str) -> None:
    if not os.path.exists(cred_path):
        raise FileNotFoundError(
            f"Firebase credentials file not found: {cred_path}\n"
            f"Please check your .env file and ensure FIREBASE_CREDENTIALS_PATH is correct.\n"
            f"Current working directory: {os.getcwd()}"
        )

    try:
        with open(cred_path, "r") as f:
            cred_data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(
            f"Firebase credentials file is not valid JSON: {e}\n"
            f"Please check the file at: {cred_path}"
        )

    required_fields = ["type", "project_id", "private_key", "client_email"]
    missing_fields = [field for field in required_fields if field not in cred_data]
    if missing_fields:
        raise ValueError(
            f"Firebase credentials file is missing required fields: {missing_fields}\n"
            f"Please download a fresh service account key from Firebase Console."
        )

    print(f"[FIREBASE] Credentials file validated: {cred_path}")
    print(f"[FIREBASE] Project ID: {cred_data.get('project_id', 'N/A')}")


def initialize_firebase() -> Optional[firebase_admin.App]:
    """
    Initialize the Firebase Admin app once.

    Returns None in mock mode, where the in-memory stores are used instead.
    """
    global _app

    if _app is not None:
        return _app

    if settings.USE_MOCK_DB:
        print("[FIREBASE] USING IN-MEMORY STORES")
        return None

    options = {}
    if settings.FIREBASE_DATABASE_URL:
        options["databaseURL"] = settings.FIREBASE_DATABASE_URL
    if settings.FIREBASE_STORAGE_BUCKET:
        options["storageBucket"] = settings.FIREBASE_STORAGE_BUCKET
    if settings.FIREBASE_PROJECT_ID:
        options["projectId"] = settings.FIREBASE_PROJECT_ID

    try:
        if firebase_admin._apps:
            _app = firebase_admin.get_app()
        elif settings.FIREBASE_CREDENTIALS_PATH:
            _validate_credentials_file(settings.FIREBASE_CREDENTIALS_PATH)
            cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)
            _app = initialize_app(cred, options)
            print("[FIREBASE] Firebase Admin SDK initialized with service account")
        else:
            print("[FIREBASE] No credentials path set, using Application Default Credentials")
            _app = initialize_app(options=options)

        print(f"[FIREBASE] Project: {settings.FIREBASE_PROJECT_ID or 'default'}")
        return _app

    except FileNotFoundError as e:
        raise RuntimeError(
            f"Firebase initialization FAILED - Credentials file not found.\n"
            f"{str(e)}\n"
            f"SOLUTION: Check your .env file and ensure FIREBASE_CREDENTIALS_PATH points to a valid service account JSON file."
        )
    except ValueError as e:
        raise RuntimeError(
            f"Firebase initialization FAILED - Invalid configuration.\n"
            f"{str(e)}\n"
            f"SOLUTION: Download a fresh service account key from Firebase Console > Project Settings > Service Accounts "
            f"and set FIREBASE_DATABASE_URL / FIREBASE_STORAGE_BUCKET in .env"
        )


def _require_app() -> firebase_admin.App:
    if _app is None:
        try:
            initialize_firebase()
        except Exception as e:
            raise RuntimeError(
                f"Firebase not initialized and initialization failed: {e}. "
                "Please check your Firebase credentials and configuration."
            )
    if _app is None:
        raise RuntimeError("Firebase is disabled (USE_MOCK_DB=true); use the in-memory stores instead.")
    return _app


def get_db() -> firestore.Client:
    """Get the Firestore client. Raises RuntimeError if Firebase cannot be initialized."""
    return firestore.client(app=_require_app())


def get_rtdb_root() -> rtdb.Reference:
    """Get the root reference of the Realtime Database."""
    if not settings.FIREBASE_DATABASE_URL:
        raise RuntimeError("FIREBASE_DATABASE_URL is not configured")
    return rtdb.reference("/", app=_require_app())


def get_bucket():
    """Get the default Cloud Storage bucket."""
    if not settings.FIREBASE_STORAGE_BUCKET:
        raise RuntimeError("FIREBASE_STORAGE_BUCKET is not configured")
    return storage.bucket(app=_require_app())
