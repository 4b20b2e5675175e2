from extensions import db
from datetime import datetime
from sqlalchemy import JSON
import uuid

# Custom JSON type that uses JSONB on PostgreSQL and JSON/Text on SQLite
class SafeJSON(db.TypeDecorator):
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            from sqlalchemy.dialects.postgresql import JSONB
            return dialect.type_descriptor(JSONB())
        else:
            return dialect.type_descriptor(JSON())


class Activity(db.Model):
    """Append-only activity ledger entry"""
    __tablename__ = 'activities'
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    type = db.Column(db.String(50), nullable=False)  # blog, project, skill, experience, education, profile, contact, system, other
    action = db.Column(db.String(50), nullable=False)  # create, update, delete, view, reply, archive, mark_read, ...
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text, default='')
    details = db.Column(db.Text, default='')
    path = db.Column(db.String(500), default='')
    user = db.Column(db.String(255), default='System')
    item_id = db.Column(db.String(100))
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.Index('idx_activity_timestamp_action', 'timestamp', 'action'),
        db.Index('idx_activity_type_timestamp', 'type', 'timestamp'),
    )


class ContactMessage(db.Model):
    """Inbound contact form submission"""
    __tablename__ = 'contactMessages'
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    subject = db.Column(db.String(500), nullable=False)
    message = db.Column(db.Text, nullable=False)
    read = db.Column(db.Boolean, default=False, nullable=False)
    replied = db.Column(db.Boolean, default=False, nullable=False)
    status = db.Column(db.String(20), default='new', nullable=False)  # new, read, replied, deleted, archived
    priority = db.Column(db.String(10), default='medium', nullable=False)  # low, medium, high
    tags = db.Column(SafeJSON, default=list)
    reply_content = db.Column(db.Text)
    reply_date = db.Column(db.DateTime)
    reply_by = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.Index('idx_contact_status_created', 'status', 'created_at'),
    )


class PageView(db.Model):
    """Per-path hit counter"""
    __tablename__ = 'page_views'
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    path = db.Column(db.String(500), unique=True, nullable=False)
    count = db.Column(db.Integer, default=0, nullable=False)
    last_updated = db.Column(db.DateTime, default=datetime.utcnow)


class SiteSetting(db.Model):
    """Key/value site setting"""
    __tablename__ = 'siteSettings'
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    key = db.Column(db.String(255), unique=True, nullable=False)
    value = db.Column(db.Text, default='')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)
