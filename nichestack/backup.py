"""
JSON backup and restore for NicheStack Manager.

An export holds every table as a list of records with camelCase keys and
ISO 8601 dates. Importing replaces the whole database with the export.
"""

import json
import logging
from datetime import datetime
from typing import Dict, List

from cryptography.fernet import InvalidToken
from sqlalchemy import DateTime
from sqlalchemy.exc import SQLAlchemyError

from .models import Backlink, Expense, GitHubAccount, LinkResource, Preset, Project, SiteTool

logger = logging.getLogger(__name__)

EXPORT_VERSION = '1.0.0'

# Export key -> model, in export order
TABLES = [
    ('githubAccounts', GitHubAccount),
    ('projects', Project),
    ('backlinks', Backlink),
    ('linkResources', LinkResource),
    ('presets', Preset),
    ('siteTools', SiteTool),
    ('expenses', Expense),
]

# Children before parents
DELETE_ORDER = ['expenses', 'backlinks', 'siteTools', 'linkResources', 'presets', 'projects', 'githubAccounts']

# Parents before children
INSERT_ORDER = ['githubAccounts', 'projects', 'linkResources', 'presets', 'backlinks', 'expenses', 'siteTools']

# Columns filled with the import time when missing from a record
DEFAULT_NOW_COLUMNS = {'created_at', 'updated_at', 'paid_at'}

MODELS = dict(TABLES)


def to_camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.capitalize() for part in rest)


def _date_columns(model) -> set:
    return {c.name for c in model.__table__.columns if isinstance(c.type, DateTime)}


def _serialize(obj) -> Dict:
    record = {}
    for column in obj.__table__.columns:
        value = getattr(obj, column.name)
        if isinstance(value, datetime):
            value = value.isoformat()
        if column.name == 'token_encrypted':
            # Tokens leave the machine decrypted so the backup restores with any key
            try:
                record['token'] = obj.get_token()
            except InvalidToken:
                logger.warning("Token for GitHub account %s cannot be decrypted; exported empty", obj.username)
                record['token'] = None
            continue
        record[to_camel(column.name)] = value
    return record


def export_all_data(session) -> Dict:
    """Export every table."""
    return {
        'version': EXPORT_VERSION,
        'exportedAt': datetime.now().isoformat(),
        'data': {key: [_serialize(row) for row in session.query(model).all()] for key, model in TABLES},
    }


def export_to_json(session) -> str:
    return json.dumps(export_all_data(session), ensure_ascii=False, indent=2)


def _parse_date(value):
    if value is None or isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _build(model, record: Dict):
    """Create a model instance from an exported record."""
    date_columns = _date_columns(model)
    values = {}
    for column in model.__table__.columns:
        if column.name == 'token_encrypted':
            continue
        key = to_camel(column.name)
        if key not in record:
            continue
        value = record[key]
        if column.name in date_columns:
            value = _parse_date(value)
        values[column.name] = value

    for name in DEFAULT_NOW_COLUMNS & date_columns:
        if values.get(name) is None:
            values[name] = datetime.now()

    obj = model(**values)
    if model is GitHubAccount:
        obj.set_token(record.get('token') or '')
    return obj


def _delete_all(session):
    for key in DELETE_ORDER:
        session.query(MODELS[key]).delete(synchronize_session=False)
    # Bulk deletes bypass the identity map; drop stale instances so ids can be reused
    session.expunge_all()


def import_all_data(session, payload: Dict) -> Dict:
    """
    Replace all data with an export.

    Returns:
        {'success': bool, 'message': str, 'imported': {table: count}}
    """
    if not isinstance(payload, dict) or not payload.get('version') or not isinstance(payload.get('data'), dict):
        return {'success': False, 'message': 'Invalid data format'}

    data = payload['data']
    imported = {}

    try:
        _delete_all(session)
        session.flush()

        for key in INSERT_ORDER:
            records: List[Dict] = data.get(key) or []
            session.add_all([_build(MODELS[key], record) for record in records])
            session.flush()
            imported[key] = len(records)

        session.commit()
    except (SQLAlchemyError, ValueError, TypeError) as e:
        session.rollback()
        logger.error("Import failed: %s", e)
        return {'success': False, 'message': f'Import failed: {e}'}

    logger.info("Imported backup version %s: %s", payload['version'], imported)
    return {'success': True, 'message': 'Data imported successfully', 'imported': imported}


def import_from_json(session, text: str) -> Dict:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return {'success': False, 'message': 'Invalid data format'}
    return import_all_data(session, payload)


def clear_all_data(session) -> Dict:
    """Delete every record from every table."""
    try:
        _delete_all(session)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Clear failed: %s", e)
        return {'success': False, 'message': f'Clear failed: {e}'}
    return {'success': True, 'message': 'All data cleared'}
