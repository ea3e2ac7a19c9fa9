"""
Firebase Admin app initialization shared by the Firestore store and the
Firebase identity provider.
"""

import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials

logger = logging.getLogger(__name__)


def get_firebase_app(
    credentials_path: Optional[str] = None,
    project_id: Optional[str] = None
) -> firebase_admin.App:
    """
    Return the default Firebase app, initializing it on first use.

    Args:
        credentials_path: Path to a service account JSON file. Application
            default credentials are used when omitted.
        project_id: Firebase project ID

    Returns:
        Initialized firebase_admin.App
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    cred = (
        credentials.Certificate(credentials_path)
        if credentials_path
        else credentials.ApplicationDefault()
    )
    options = {"projectId": project_id} if project_id else None

    app = firebase_admin.initialize_app(cred, options)
    logger.info(f"Firebase app initialized (project={project_id or 'default'})")
    return app
