"""Firebase app construction."""

import json
from typing import Optional

import firebase_admin
from firebase_admin import credentials
from loguru import logger

from ..api.exceptions import AuthError
from ..config.config import AuthConfig

APP_NAME = 'workspace-migrate'


def create_firebase_app(config: AuthConfig, name: str = APP_NAME) -> firebase_admin.App:
    """Initialize a named Firebase app from the configured service account.

    The app is passed explicitly to every collaborator; the default app is
    never touched.
    """
    if config.credentials_json:
        try:
            info = json.loads(config.credentials_json)
        except ValueError as e:
            raise AuthError(f'Service account JSON is malformed: {e}')
        cred = credentials.Certificate(info)
    elif config.credentials_file:
        cred = credentials.Certificate(config.credentials_file)
    else:
        raise AuthError('No Firebase service account configured')

    existing = _get_app(name)
    if existing is not None:
        firebase_admin.delete_app(existing)

    project_id = getattr(cred, 'project_id', None)
    options = {}
    if project_id:
        options['databaseURL'] = f'https://{project_id}-default-rtdb.firebaseio.com/'

    logger.info(f'Initialized Firebase app {name} for project {project_id}')
    return firebase_admin.initialize_app(cred, options=options, name=name)


def _get_app(name: str) -> Optional[firebase_admin.App]:
    try:
        return firebase_admin.get_app(name)
    except ValueError:
        return None
