"""
Database setup and data-access operations for NicheStack Manager.
Uses SQLAlchemy with SQLite for local storage.
"""

import logging
import os
import sqlite3
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import create_engine, event, func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .config import AppConfig, load_config
from .models import (
    Base, GitHubAccount, Project, Backlink, LinkResource, SiteTool, Expense, Preset
)
from .presets import initialize_default_categories

logger = logging.getLogger(__name__)

engine = None
Session = sessionmaker()


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores ON DELETE clauses unless foreign keys are switched on."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def configure_database(config: Optional[AppConfig] = None, url: Optional[str] = None):
    """Create the engine and bind the session factory to it."""
    global engine
    if url is None:
        config = config or load_config()
        if config.db_path != ':memory:':
            os.makedirs(os.path.dirname(os.path.abspath(config.db_path)), exist_ok=True)
        url = config.database_url
    engine = create_engine(url, echo=False)
    Session.configure(bind=engine)
    return engine


def init_db(config: Optional[AppConfig] = None):
    """Initialize the database: create tables and seed default categories."""
    if engine is None:
        configure_database(config)
    Base.metadata.create_all(engine)

    session = Session()
    try:
        initialize_default_categories(session)
    finally:
        session.close()


def get_session():
    """Get a database session."""
    if engine is None:
        configure_database()
    return Session()


def _apply_fields(obj, fields: Dict, model_name: str):
    """Copy known column values onto a model instance."""
    columns = obj.__table__.columns.keys()
    for key, value in fields.items():
        if key not in columns or key in ('id', 'created_at'):
            raise ValueError(f"Unknown {model_name} field: {key}")
        setattr(obj, key, value)


# ============================================================================
# PROJECTS
# ============================================================================

def get_all_projects(session) -> List[Project]:
    """Get all projects, most recently edited first."""
    try:
        return session.query(Project).order_by(Project.updated_at.desc()).all()
    except SQLAlchemyError as e:
        logger.error("Failed to fetch projects: %s", e)
        return []


def get_project_by_id(session, project_id: int) -> Optional[Project]:
    """Get a specific project by ID."""
    return session.query(Project).filter(Project.id == project_id).first()


def _require_project(session, project_id: int) -> Project:
    project = get_project_by_id(session, project_id)
    if not project:
        raise ValueError(f"Project {project_id} not found")
    return project


def add_project(session, domain_cost: Optional[float] = None, **kwargs) -> Project:
    """
    Add a new project.

    When a domain cost and expiry are supplied, a matching domain expense
    is recorded for the new project.
    """
    project = Project(**kwargs)
    session.add(project)
    session.commit()

    if domain_cost and domain_cost > 0 and project.domain_expiry:
        add_expense(
            session,
            name=f"{project.name} Domain",
            amount=domain_cost,
            category='domain',
            project_id=project.id,
            paid_at=datetime.now(),
            expires_at=project.domain_expiry,
            notes=f"Registrar: {project.domain_registrar}" if project.domain_registrar else None,
        )

    return project


def update_project(session, project_id: int, **fields) -> Project:
    """Update project fields."""
    project = _require_project(session, project_id)
    _apply_fields(project, fields, 'project')
    project.updated_at = datetime.now()
    session.commit()
    return project


def delete_project(session, project_id: int) -> bool:
    """Delete a project and its backlinks. Expenses become global."""
    project = get_project_by_id(session, project_id)
    if not project:
        return False
    session.delete(project)
    session.commit()
    return True


def manual_update_project(session, project_id: int) -> Project:
    """Record a manual maintenance check-in for a project."""
    project = _require_project(session, project_id)
    now = datetime.now()
    project.last_manual_update = now
    project.updated_at = now
    session.commit()
    return project


# ============================================================================
# GITHUB ACCOUNTS
# ============================================================================

def get_all_github_accounts(session) -> List[GitHubAccount]:
    """Get all GitHub accounts."""
    try:
        return session.query(GitHubAccount).order_by(GitHubAccount.updated_at.desc()).all()
    except SQLAlchemyError as e:
        logger.error("Failed to fetch GitHub accounts: %s", e)
        return []


def get_github_account_by_id(session, account_id: int) -> Optional[GitHubAccount]:
    return session.query(GitHubAccount).filter(GitHubAccount.id == account_id).first()


def add_github_account(session, username: str, token: str, token_expires_at: datetime = None,
                       notes: str = None) -> GitHubAccount:
    """Add a GitHub account; the token is stored encrypted."""
    account = GitHubAccount(username=username, token_expires_at=token_expires_at, notes=notes)
    account.set_token(token)
    session.add(account)
    session.commit()
    return account


def update_github_account(session, account_id: int, token: str = None, **fields) -> GitHubAccount:
    """Update a GitHub account. Pass token to replace the stored one."""
    account = get_github_account_by_id(session, account_id)
    if not account:
        raise ValueError(f"GitHub account {account_id} not found")
    _apply_fields(account, fields, 'GitHub account')
    if token:
        account.set_token(token)
    account.updated_at = datetime.now()
    session.commit()
    return account


def delete_github_account(session, account_id: int) -> bool:
    """Delete a GitHub account; linked projects keep their repo settings."""
    account = get_github_account_by_id(session, account_id)
    if not account:
        return False
    session.delete(account)
    session.commit()
    return True


# ============================================================================
# BACKLINKS
# ============================================================================

def get_backlinks(session, project_id: int = None) -> List[Backlink]:
    """Get backlinks, optionally for a single project, newest first."""
    query = session.query(Backlink)
    if project_id is not None:
        query = query.filter(Backlink.project_id == project_id)
    return query.order_by(Backlink.created_at.desc()).all()


def get_backlink_by_id(session, backlink_id: int) -> Optional[Backlink]:
    return session.query(Backlink).filter(Backlink.id == backlink_id).first()


def add_backlink(session, **kwargs) -> Backlink:
    """Add a new backlink."""
    _require_project(session, kwargs.get('project_id'))
    backlink = Backlink(**kwargs)
    session.add(backlink)
    session.commit()
    return backlink


def update_backlink(session, backlink_id: int, **fields) -> Backlink:
    backlink = get_backlink_by_id(session, backlink_id)
    if not backlink:
        raise ValueError(f"Backlink {backlink_id} not found")
    _apply_fields(backlink, fields, 'backlink')
    session.commit()
    return backlink


def delete_backlink(session, backlink_id: int) -> bool:
    backlink = get_backlink_by_id(session, backlink_id)
    if not backlink:
        return False
    session.delete(backlink)
    session.commit()
    return True


def backlink_stats(backlinks: List[Backlink]) -> Dict:
    """Total, live count and total cost for a list of backlinks."""
    return {
        'total': len(backlinks),
        'live': sum(1 for b in backlinks if b.status == 'live'),
        'total_cost': sum(b.cost or 0 for b in backlinks),
    }


def get_backlinks_with_stats(session, project_id: int) -> Dict:
    """Get a project's backlinks together with their stats."""
    backlinks = get_backlinks(session, project_id)
    return {'backlinks': backlinks, 'stats': backlink_stats(backlinks)}


def get_monthly_backlink_cost(session, now: datetime = None) -> float:
    """Sum of backlink costs created since the start of the current month."""
    now = now or datetime.now()
    start_of_month = datetime(now.year, now.month, 1)
    total = session.query(func.coalesce(func.sum(Backlink.cost), 0)).filter(
        Backlink.created_at >= start_of_month
    ).scalar()
    return float(total or 0)


# ============================================================================
# LINK RESOURCES
# ============================================================================

def get_all_resources(session) -> List[LinkResource]:
    return session.query(LinkResource).order_by(LinkResource.updated_at.desc()).all()


def get_resource_by_id(session, resource_id: int) -> Optional[LinkResource]:
    return session.query(LinkResource).filter(LinkResource.id == resource_id).first()


def add_resource(session, **kwargs) -> LinkResource:
    resource = LinkResource(**kwargs)
    session.add(resource)
    session.commit()
    return resource


def update_resource(session, resource_id: int, **fields) -> LinkResource:
    resource = get_resource_by_id(session, resource_id)
    if not resource:
        raise ValueError(f"Resource {resource_id} not found")
    _apply_fields(resource, fields, 'resource')
    resource.updated_at = datetime.now()
    session.commit()
    return resource


def delete_resource(session, resource_id: int) -> bool:
    """Delete a resource; backlinks created from it are kept."""
    resource = get_resource_by_id(session, resource_id)
    if not resource:
        return False
    session.delete(resource)
    session.commit()
    return True


def get_resource_detail(session, resource_id: int) -> Optional[Dict]:
    """
    Get a resource with the backlinks placed through it.

    Returns:
        Dict with 'resource', 'linked_backlinks' and 'unlinked_projects',
        or None if the resource does not exist
    """
    resource = get_resource_by_id(session, resource_id)
    if not resource:
        return None

    linked = session.query(Backlink).join(Project).filter(
        Backlink.resource_id == resource_id
    ).all()
    linked_project_ids = {b.project_id for b in linked}
    unlinked = [p for p in session.query(Project).all() if p.id not in linked_project_ids]

    return {
        'resource': resource,
        'linked_backlinks': linked,
        'unlinked_projects': unlinked,
    }


def link_resource_to_project(session, resource_id: int, project_id: int, target_url: str = '') -> Backlink:
    """
    Place a resource's link on a project.

    The backlink starts live when a target URL is known, planned otherwise.
    Paid resources also record a marketing expense against the project.
    """
    resource = get_resource_by_id(session, resource_id)
    if not resource:
        raise ValueError(f"Resource {resource_id} not found")
    _require_project(session, project_id)

    backlink = Backlink(
        project_id=project_id,
        resource_id=resource_id,
        target_url=target_url or '',
        source_url=resource.url,
        da_score=resource.da_score,
        status='live' if target_url else 'planned',
    )
    session.add(backlink)
    session.commit()

    if not resource.is_free and resource.price and resource.price > 0:
        add_expense(
            session,
            name=f"Backlink placement: {resource.name}",
            amount=resource.price,
            category='marketing',
            project_id=project_id,
            paid_at=datetime.now(),
            notes=f"Resource: {resource.url}",
        )

    return backlink


def unlink_resource_from_project(session, backlink_id: int) -> bool:
    return delete_backlink(session, backlink_id)


# ============================================================================
# SITE TOOLS
# ============================================================================

def get_all_tools(session) -> List[SiteTool]:
    return session.query(SiteTool).order_by(SiteTool.updated_at.desc()).all()


def get_tool_by_id(session, tool_id: int) -> Optional[SiteTool]:
    return session.query(SiteTool).filter(SiteTool.id == tool_id).first()


def add_tool(session, **kwargs) -> SiteTool:
    tool = SiteTool(**kwargs)
    session.add(tool)
    session.commit()
    return tool


def update_tool(session, tool_id: int, **fields) -> SiteTool:
    tool = get_tool_by_id(session, tool_id)
    if not tool:
        raise ValueError(f"Tool {tool_id} not found")
    _apply_fields(tool, fields, 'tool')
    tool.updated_at = datetime.now()
    session.commit()
    return tool


def delete_tool(session, tool_id: int) -> bool:
    tool = get_tool_by_id(session, tool_id)
    if not tool:
        return False
    session.delete(tool)
    session.commit()
    return True


INITIAL_TOOLS = [
    {'name': 'Xiaohu AI Feed', 'url': 'https://xiaohu.ai/feed', 'category': 'content_inspiration',
     'purpose': 'Latest AI and tech topics worth writing about', 'cost': 'free'},
    {'name': 'Github Trending', 'url': 'https://github.com/trending?since=daily', 'category': 'content_inspiration',
     'purpose': 'Trending projects and topics in the developer community', 'cost': 'free'},
    {'name': 'Semrush', 'url': 'https://semrush.com/', 'category': 'keyword_research',
     'purpose': 'Keyword research and competitor analysis', 'cost': 'paid'},
    {'name': 'Ahrefs', 'url': 'https://ahrefs.com/', 'category': 'competitor_analysis',
     'purpose': 'Competitor traffic, backlinks and top pages', 'cost': 'freemium'},
    {'name': 'Google Trends', 'url': 'https://trends.google.com/trends', 'category': 'trend_insight',
     'purpose': 'Search interest over time and seasonality', 'cost': 'free'},
    {'name': 'Query.domains', 'url': 'https://query.domains/', 'category': 'domain_tools',
     'purpose': 'Recently registered domains for new keywords', 'cost': 'freemium'},
    {'name': 'Spaceship', 'url': 'https://spaceship.com/', 'category': 'domain_tools',
     'purpose': 'Domain pricing and registration', 'cost': 'paid'},
    {'name': 'Wayback Machine', 'url': 'https://web.archive.org/', 'category': 'domain_tools',
     'purpose': 'Domain history check before buying', 'cost': 'free'},
]


def seed_initial_tools(session) -> int:
    """Add the starter tool bookmarks. Returns the number added."""
    for tool in INITIAL_TOOLS:
        session.add(SiteTool(**tool))
    session.commit()
    return len(INITIAL_TOOLS)


# ============================================================================
# EXPENSES
# ============================================================================

def get_expenses(session, category: str = None, project_id=None, year: int = None,
                 month: int = None) -> List[Expense]:
    """
    Get expenses, newest payment first.

    Args:
        category: Expense category or None/'all'
        project_id: Project ID, 'global' for expenses without a project, or None
        year: Restrict to a calendar year
        month: Restrict to a month of that year (1-12)
    """
    query = session.query(Expense)

    if category and category != 'all':
        query = query.filter(Expense.category == category)

    if project_id == 'global':
        query = query.filter(Expense.project_id.is_(None))
    elif project_id:
        query = query.filter(Expense.project_id == project_id)

    if year:
        if month:
            start = datetime(year, month, 1)
            end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
        else:
            start = datetime(year, 1, 1)
            end = datetime(year + 1, 1, 1)
        query = query.filter(Expense.paid_at >= start, Expense.paid_at < end)

    return query.order_by(Expense.paid_at.desc()).all()


def get_expense_by_id(session, expense_id: int) -> Optional[Expense]:
    return session.query(Expense).filter(Expense.id == expense_id).first()


def _sync_domain_expiry(session, expense: Expense):
    """A domain renewal moves the linked project's domain expiry."""
    if expense.category == 'domain' and expense.project_id and expense.expires_at:
        project = get_project_by_id(session, expense.project_id)
        if project:
            project.domain_expiry = expense.expires_at
            project.updated_at = datetime.now()
            session.commit()


def add_expense(session, **kwargs) -> Expense:
    """Add a new expense."""
    expense = Expense(**kwargs)
    session.add(expense)
    session.commit()
    _sync_domain_expiry(session, expense)
    return expense


def update_expense(session, expense_id: int, **fields) -> Expense:
    expense = get_expense_by_id(session, expense_id)
    if not expense:
        raise ValueError(f"Expense {expense_id} not found")
    _apply_fields(expense, fields, 'expense')
    expense.updated_at = datetime.now()
    session.commit()
    _sync_domain_expiry(session, expense)
    return expense


def delete_expense(session, expense_id: int) -> bool:
    expense = get_expense_by_id(session, expense_id)
    if not expense:
        return False
    session.delete(expense)
    session.commit()
    return True


def get_project_expenses(session, project_id: int) -> Dict:
    """Get a project's expenses and their total."""
    expenses = get_expenses(session, project_id=project_id)
    return {'expenses': expenses, 'total': sum(e.amount for e in expenses)}


def get_project_domain_expense(session, project_id: int) -> Optional[Expense]:
    """Most recent domain expense for a project."""
    return session.query(Expense).filter(
        Expense.project_id == project_id,
        Expense.category == 'domain'
    ).order_by(Expense.paid_at.desc()).first()


# ============================================================================
# PAYMENT METHODS
# ============================================================================

def get_payment_methods(session) -> List[Preset]:
    return session.query(Preset).filter(Preset.type == 'payment_method').order_by(Preset.id).all()


def add_payment_method(session, value: str) -> Preset:
    preset = Preset(type='payment_method', value=value, label=value)
    session.add(preset)
    session.commit()
    return preset
