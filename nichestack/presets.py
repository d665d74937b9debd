"""
User-editable preset values: categories, registrars, hosting platforms,
payment methods. Seeded with defaults on database init.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from .models import Preset, Project, Expense, SiteTool, LinkResource

logger = logging.getLogger(__name__)

DEFAULT_PRESETS = {
    'expense_category': [
        ('subscription', 'Subscription'),
        ('domain', 'Domain'),
        ('hosting', 'Hosting'),
        ('marketing', 'Marketing'),
        ('tool', 'Tool'),
        ('other', 'Other'),
    ],
    'tool_category': [
        ('content_inspiration', 'Content Inspiration'),
        ('keyword_research', 'Keyword Research'),
        ('competitor_analysis', 'Competitor Analysis'),
        ('trend_insight', 'Trend Insight'),
        ('domain_tools', 'Domain Tools'),
        ('seo_tools', 'SEO Tools'),
        ('analytics', 'Analytics'),
        ('other', 'Other'),
    ],
    'resource_type': [
        ('profile', 'Profile'),
        ('guest_post', 'Guest Post'),
        ('directory', 'Directory'),
        ('forum', 'Forum'),
        ('comment', 'Comment'),
        ('social', 'Social'),
        ('other', 'Other'),
    ],
}

PROJECT_PRESET_FIELDS = ('hosting_platform', 'hosting_account', 'domain_registrar')

# Preset type -> (model, column) that references its values
CATEGORY_USAGE = {
    'expense_category': (Expense, 'category'),
    'tool_category': (SiteTool, 'category'),
    'resource_type': (LinkResource, 'type'),
}


def get_presets_by_type(session, preset_type: str) -> List[Preset]:
    """Get all presets of one type."""
    try:
        return session.query(Preset).filter(Preset.type == preset_type).order_by(Preset.id).all()
    except SQLAlchemyError as e:
        logger.error("Failed to fetch presets for type %s: %s", preset_type, e)
        return []


def create_preset(session, preset_type: str, value: str, label: Optional[str] = None) -> Preset:
    """Create a preset, or return the existing one with the same type and value."""
    existing = session.query(Preset).filter(
        Preset.type == preset_type,
        Preset.value == value
    ).first()
    if existing:
        return existing

    preset = Preset(type=preset_type, value=value, label=label or value, created_at=datetime.now())
    session.add(preset)
    session.commit()
    return preset


def delete_preset(session, preset_id: int) -> bool:
    preset = session.query(Preset).filter(Preset.id == preset_id).first()
    if not preset:
        return False
    session.delete(preset)
    session.commit()
    return True


def get_project_field_values(session, field: str) -> List[str]:
    """Distinct non-blank values already used on projects for a field, sorted."""
    if field not in PROJECT_PRESET_FIELDS:
        raise ValueError(f"Unsupported project field: {field}")
    try:
        rows = session.query(getattr(Project, field)).all()
    except SQLAlchemyError as e:
        logger.error("Failed to fetch project field values for %s: %s", field, e)
        return []

    values = {row[0].strip() for row in rows if row[0] and row[0].strip()}
    return sorted(values)


def get_all_form_presets(session) -> Dict[str, List[Preset]]:
    """Presets used by the project form, grouped by type."""
    grouped = {preset_type: [] for preset_type in PROJECT_PRESET_FIELDS}
    try:
        presets = session.query(Preset).filter(Preset.type.in_(PROJECT_PRESET_FIELDS)).all()
    except SQLAlchemyError as e:
        logger.error("Failed to fetch form presets: %s", e)
        return grouped

    for preset in presets:
        grouped[preset.type].append(preset)
    return grouped


def get_form_options(session, field: str) -> List[str]:
    """Preset values merged with values already typed on projects."""
    values = {p.value for p in get_presets_by_type(session, field)}
    values.update(get_project_field_values(session, field))
    return sorted(values)


def initialize_default_categories(session) -> int:
    """
    Insert default categories that are not present yet.

    Returns:
        Number of presets inserted
    """
    existing = {(p.type, p.value) for p in session.query(Preset).all()}

    to_insert = []
    for preset_type, defaults in DEFAULT_PRESETS.items():
        for value, label in defaults:
            if (preset_type, value) not in existing:
                to_insert.append(Preset(type=preset_type, value=value, label=label,
                                        created_at=datetime.now()))

    if to_insert:
        session.add_all(to_insert)
        session.commit()
        logger.info("Seeded %d default presets", len(to_insert))

    return len(to_insert)


def is_category_in_use(session, preset_type: str, value: str) -> bool:
    """Whether any record still references a category. Errs on the side of in use."""
    usage = CATEGORY_USAGE.get(preset_type)
    if usage is None:
        return False

    model, column = usage
    try:
        return session.query(model).filter(getattr(model, column) == value).first() is not None
    except SQLAlchemyError as e:
        logger.error("Failed to check if category %s is in use: %s", value, e)
        return True
