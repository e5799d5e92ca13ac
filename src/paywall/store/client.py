"""Firestore client factory backed by a Firebase service account."""

import logging

import firebase_admin
from firebase_admin import credentials, firestore_async
from google.cloud.firestore import AsyncClient

from paywall.config.settings import AppConfig

logger = logging.getLogger(__name__)

APP_NAME = "paywall"


def create_firestore_client(config: AppConfig) -> AsyncClient:
    """
    Build an async Firestore client from the configured service account.

    Reuses the named Firebase app if it was already initialized in this
    process, so calling this twice does not raise.

    Args:
        config: Application configuration with firebase_* fields set

    Returns:
        google.cloud.firestore.AsyncClient

    Raises:
        ValueError: If the service account fields are missing
    """
    private_key = config.firebase_private_key.get_secret_value()
    if not (config.firebase_project_id and config.firebase_client_email and private_key):
        raise ValueError(
            "firebase_project_id, firebase_client_email and firebase_private_key must be configured"
        )

    try:
        app = firebase_admin.get_app(APP_NAME)
    except ValueError:
        cert = credentials.Certificate(
            {
                "type": "service_account",
                "project_id": config.firebase_project_id,
                "private_key": private_key,
                "client_email": config.firebase_client_email,
                "token_uri": "https://oauth2.googleapis.com/token",
            }
        )
        app = firebase_admin.initialize_app(cert, name=APP_NAME)
        logger.info(f"Initialized Firebase app for project {config.firebase_project_id}")

    return firestore_async.client(app)
