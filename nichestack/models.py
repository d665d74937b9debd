"""
NicheStack Manager - Database Models
Canonical data model for the niche site portfolio.
"""

import os
import enum
from datetime import datetime
from typing import Optional
from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Boolean, ForeignKey, Text, Index
)
from sqlalchemy.orm import declarative_base, relationship

# Encryption key - stored locally next to the database
KEY_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data', '.encryption_key')

Base = declarative_base()

# Shown in place of a token that cannot be decrypted with the current key
TOKEN_UNREADABLE = '(unreadable)'


def get_encryption_key():
    """Get or create encryption key for sensitive data."""
    if os.path.exists(KEY_PATH):
        with open(KEY_PATH, 'rb') as f:
            return f.read()
    else:
        key = Fernet.generate_key()
        os.makedirs(os.path.dirname(KEY_PATH), exist_ok=True)
        with open(KEY_PATH, 'wb') as f:
            f.write(key)
        os.chmod(KEY_PATH, 0o600)  # Restrict access
        return key

# Initialize encryption
_fernet = None
def get_fernet():
    global _fernet
    if _fernet is None:
        _fernet = Fernet(get_encryption_key())
    return _fernet


def configure_encryption(key_path: str):
    """Point the token cipher at a different key file."""
    global KEY_PATH, _fernet
    KEY_PATH = key_path
    _fernet = None


def encrypt_value(value: Optional[str]) -> Optional[str]:
    """Encrypt a sensitive value."""
    if value is None:
        return None
    return get_fernet().encrypt(value.encode()).decode()


def decrypt_value(encrypted: Optional[str]) -> Optional[str]:
    """Decrypt a sensitive value."""
    if encrypted is None:
        return None
    return get_fernet().decrypt(encrypted.encode()).decode()


# ============================================================================
# ENUMS
# ============================================================================

class ProjectStatus(enum.Enum):
    ACTIVE = "active"
    SOLD = "sold"
    DEAD = "dead"
    INCUBATING = "incubating"

class AdsenseStatus(enum.Enum):
    NONE = "none"
    REVIEWING = "reviewing"
    REJECTED = "rejected"
    ACTIVE = "active"
    LIMITED = "limited"
    BANNED = "banned"

class BacklinkStatus(enum.Enum):
    PLANNED = "planned"
    OUTREACH = "outreach"
    LIVE = "live"
    REMOVED = "removed"

class ResourceStatus(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"

class ToolCost(enum.Enum):
    FREE = "free"
    PAID = "paid"
    FREEMIUM = "freemium"

class PresetType(enum.Enum):
    HOSTING_PLATFORM = "hosting_platform"
    HOSTING_ACCOUNT = "hosting_account"
    DOMAIN_REGISTRAR = "domain_registrar"
    PAYMENT_METHOD = "payment_method"
    EXPENSE_CATEGORY = "expense_category"
    TOOL_CATEGORY = "tool_category"
    RESOURCE_TYPE = "resource_type"


def enum_values(enum_cls) -> list:
    """Plain string values of an enum, in declaration order."""
    return [member.value for member in enum_cls]


# ============================================================================
# MODELS
# ============================================================================

class GitHubAccount(Base):
    """GitHub account whose token is used to poll repository activity."""
    __tablename__ = 'github_accounts'

    id = Column(Integer, primary_key=True)
    username = Column(String(100), nullable=False)
    token_encrypted = Column(String(500), nullable=False)
    token_expires_at = Column(DateTime)
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    # Relationships
    projects = relationship("Project", back_populates="github_account")

    def set_token(self, token: str):
        """Encrypt and store the access token."""
        self.token_encrypted = encrypt_value(token)

    def get_token(self) -> Optional[str]:
        """Decrypt and return the access token."""
        return decrypt_value(self.token_encrypted)

    @property
    def token_masked(self) -> str:
        """Return masked token for display."""
        try:
            token = self.get_token() or ''
        except InvalidToken:
            # Encrypted with a key file that is no longer present
            return TOKEN_UNREADABLE
        if len(token) > 4:
            return '*' * 8 + token[-4:]
        return token


class Project(Base):
    """A niche website in the portfolio."""
    __tablename__ = 'projects'

    id = Column(Integer, primary_key=True)

    # Core info
    name = Column(String(200), nullable=False)
    site_url = Column(String(500))
    niche_category = Column(String(100))
    status = Column(String(20), nullable=False, default='active')  # active, sold, dead, incubating

    # Maintenance activity
    github_account_id = Column(Integer, ForeignKey('github_accounts.id', ondelete='SET NULL'), nullable=True)
    repo_owner = Column(String(100))
    repo_name = Column(String(200))
    last_github_push = Column(DateTime)
    last_content_update = Column(DateTime)
    last_manual_update = Column(DateTime)

    # Domain and hosting
    domain_expiry = Column(DateTime)
    domain_purchase_date = Column(DateTime)
    domain_registrar = Column(String(100))
    hosting_platform = Column(String(100))
    hosting_account = Column(String(100))

    # Monetization
    monetization_type = Column(String(100))
    adsense_status = Column(String(20), nullable=False, default='none')
    notes = Column(Text)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)
    launched_at = Column(DateTime)

    # Relationships
    github_account = relationship("GitHubAccount", back_populates="projects")
    backlinks = relationship(
        "Backlink", back_populates="project",
        cascade="all, delete-orphan", order_by="desc(Backlink.created_at)"
    )

    @property
    def has_repo(self) -> bool:
        return bool(self.repo_owner and self.repo_name)


class Backlink(Base):
    """Inbound link from another site to a project."""
    __tablename__ = 'backlinks'

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey('projects.id', ondelete='CASCADE'), nullable=False)
    resource_id = Column(Integer, ForeignKey('link_resources.id', ondelete='SET NULL'), nullable=True)

    target_url = Column(String(500), nullable=False)
    source_url = Column(String(500), nullable=False)
    anchor_text = Column(String(300))
    da_score = Column(Integer)
    cost = Column(Float, default=0)
    status = Column(String(20), nullable=False, default='planned')  # planned, outreach, live, removed
    acquired_date = Column(DateTime)

    created_at = Column(DateTime, nullable=False, default=datetime.now)

    # Relationships
    project = relationship("Project", back_populates="backlinks")
    resource = relationship("LinkResource", back_populates="backlinks")

    __table_args__ = (
        Index('ix_backlinks_project', 'project_id'),
    )


class LinkResource(Base):
    """Reusable link-building source (directory, forum, guest post site...)."""
    __tablename__ = 'link_resources'

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    url = Column(String(500), nullable=False)
    type = Column(String(50), nullable=False, default='other')
    da_score = Column(Integer)
    dr_score = Column(Integer)
    price = Column(Float, default=0)
    is_free = Column(Boolean, default=True)
    status = Column(String(20), nullable=False, default='active')  # active, inactive, pending
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    # Relationships
    backlinks = relationship("Backlink", back_populates="resource")


class Preset(Base):
    """User-editable named value scoped by type (categories, registrars...)."""
    __tablename__ = 'presets'

    id = Column(Integer, primary_key=True)
    type = Column(String(50), nullable=False)
    value = Column(String(200), nullable=False)
    label = Column(String(200))
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    __table_args__ = (
        Index('ix_presets_type_value', 'type', 'value'),
    )


class SiteTool(Base):
    """SEO / research tool bookmark."""
    __tablename__ = 'site_tools'

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    url = Column(String(500), nullable=False)
    category = Column(String(50), nullable=False)
    purpose = Column(Text)
    cost = Column(String(20), nullable=False, default='free')  # free, paid, freemium
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class Expense(Base):
    """Expense record, either tied to a project or global (project_id is None)."""
    __tablename__ = 'expenses'

    id = Column(Integer, primary_key=True)
    name = Column(String(300), nullable=False)
    amount = Column(Float, nullable=False)
    category = Column(String(50), nullable=False)
    project_id = Column(Integer, ForeignKey('projects.id', ondelete='SET NULL'), nullable=True)
    payment_method_id = Column(Integer, ForeignKey('presets.id', ondelete='SET NULL'), nullable=True)
    paid_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime)
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    # Relationships
    project = relationship("Project")
    payment_method = relationship("Preset")

    @property
    def is_global(self) -> bool:
        return self.project_id is None
