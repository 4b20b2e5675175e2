"""
Contact Module - Contact message workflow

Statuses: new -> read -> replied -> archived / deleted.
Deleting is a soft status change; records are never removed here and a
deleted message accepts no further status transitions.
Every status transition appends one 'contact' activity after the
mutation succeeded.
"""

import re
from datetime import datetime
from flask import current_app
from markupsafe import escape
from sqlalchemy.exc import SQLAlchemyError
from .store import find_many, find_one, count, count_by, insert_one, update_one, add_to_set, to_iso
from .activity import log_activity, track_detailed_activity
from .notifications import send_admin_notification
from .errors import ValidationError, PersistenceError


STATUSES = ('new', 'read', 'replied', 'deleted', 'archived')
PRIORITIES = ('low', 'medium', 'high')
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
MIN_MESSAGE_LENGTH = 10
ADMIN_CONTACT_PATH = '/admin/contact'

# Filter matching a message that can still change status
_LIVE = {'$ne': 'deleted'}


def message_to_dict(message):
    """Convert contact message model to dictionary"""
    result = {
        '_id': message.id,
        'name': message.name,
        'email': message.email,
        'subject': message.subject,
        'message': message.message,
        'read': bool(message.read),
        'replied': bool(message.replied),
        'status': message.status or 'new',
        'priority': message.priority or 'medium',
        'tags': list(message.tags or []),
        'createdAt': to_iso(message.created_at),
        'updatedAt': to_iso(message.updated_at)
    }
    if message.reply_date:
        result.update({
            'replyContent': message.reply_content,
            'replyDate': to_iso(message.reply_date),
            'replyBy': message.reply_by
        })
    return result


def validate_contact_submission(name, email, subject, message):
    """Validate and trim a public contact form submission"""
    fields = [name, email, subject, message]
    if not all(isinstance(f, str) and f.strip() for f in fields):
        raise ValidationError('All fields are required')
    name, email, subject, message = [f.strip() for f in fields]

    if not EMAIL_PATTERN.match(email):
        raise ValidationError('Invalid email format')
    if len(message) < MIN_MESSAGE_LENGTH:
        raise ValidationError(f'Message must be at least {MIN_MESSAGE_LENGTH} characters long')

    return name, email, subject, message


def create_contact_message(name, email, subject, message):
    """
    Store a new contact submission with workflow defaults

    Raises:
        ValidationError: Missing or malformed fields
        PersistenceError: The insert failed
    """
    name, email, subject, message = validate_contact_submission(name, email, subject, message)
    now = datetime.utcnow()

    try:
        contact = insert_one('contactMessages', {
            'name': name,
            'email': email,
            'subject': subject,
            'message': message,
            'read': False,
            'replied': False,
            'status': 'new',
            'priority': 'medium',
            'tags': [],
            'created_at': now,
            'updated_at': now
        })
    except SQLAlchemyError as e:
        current_app.logger.error(f"Error creating contact message: {str(e)}")
        raise PersistenceError('Failed to create contact message') from e

    current_app.logger.info(f"New contact message {contact.id} from {email}")
    log_activity(
        'contact', f"New message from {name}", 'create',
        description=f'Received contact message "{subject}"',
        path=ADMIN_CONTACT_PATH,
        user='Visitor',
        item_id=contact.id
    )
    send_admin_notification(
        subject="New Contact Message",
        message_text=f"From: {escape(name)} ({escape(email)})\nSubject: {escape(subject)}\n\n{escape(message[:200])}"
    )
    return message_to_dict(contact)


def get_all_contact_messages():
    messages = find_many('contactMessages', sort={'created_at': -1})
    return [message_to_dict(m) for m in messages]


def get_contact_messages_by_status(status):
    if status not in STATUSES:
        raise ValidationError(f"Invalid status: {status}")
    messages = find_many('contactMessages', {'status': status}, sort={'created_at': -1})
    return [message_to_dict(m) for m in messages]


def get_contact_message_by_id(id):
    message = find_one('contactMessages', {'id': id})
    return message_to_dict(message) if message else None


def _transition(id, values, description, live_only=True):
    """Apply values to one message; returns the updated message dict or None"""
    query = {'id': id}
    if live_only:
        query['status'] = _LIVE
    values = dict(values, updated_at=datetime.utcnow())
    try:
        matched = update_one('contactMessages', query, values)
        if not matched:
            current_app.logger.warning(f"Contact message {id} not found or deleted ({description})")
            return None
        return get_contact_message_by_id(id)
    except SQLAlchemyError as e:
        current_app.logger.error(f"Error {description} for message {id}: {str(e)}")
        return None


def mark_as_read(id, is_read=True, by=None):
    """Toggle the read flag; status follows (read / new)"""
    message = _transition(id, {
        'read': is_read,
        'status': 'read' if is_read else 'new'
    }, 'updating read status')
    if message is None:
        return False

    track_detailed_activity(
        'contact',
        f"Contact from {message['name']}",
        'mark_read',
        f'Marked message "{message["subject"]}" as {"read" if is_read else "unread"}',
        path=ADMIN_CONTACT_PATH,
        user=by or 'admin',
        item_id=id
    )
    return True


def mark_as_replied(id, is_replied=True):
    """Set the replied flag only; no status change and no activity"""
    return _transition(id, {'replied': is_replied}, 'updating replied status') is not None


def reply(id, content, by):
    """Record a reply with its metadata and move the message to replied"""
    if not isinstance(content, str) or not content.strip():
        raise ValidationError('Reply content cannot be empty')

    message = _transition(id, {
        'replied': True,
        'status': 'replied',
        'reply_content': content.strip(),
        'reply_date': datetime.utcnow(),
        'reply_by': by
    }, 'replying')
    if message is None:
        return False

    track_detailed_activity(
        'contact',
        f"Reply to {message['name']}",
        'reply',
        f'Replied to message "{message["subject"]}"',
        path=ADMIN_CONTACT_PATH,
        user=by or 'admin',
        item_id=id
    )
    return True


def archive(id, by=None):
    message = _transition(id, {'status': 'archived'}, 'archiving')
    if message is None:
        return False

    track_detailed_activity(
        'contact',
        f"Archived message from {message['name']}",
        'archive',
        f'Archived message "{message["subject"]}"',
        path=ADMIN_CONTACT_PATH,
        user=by or 'admin',
        item_id=id
    )
    return True


def soft_delete(id, by=None):
    """Mark a message deleted; the record stays queryable"""
    message = _transition(id, {'status': 'deleted'}, 'deleting')
    if message is None:
        return False

    track_detailed_activity(
        'contact',
        f"Deleted message from {message['name']}",
        'delete',
        f'Deleted message "{message["subject"]}"',
        path=ADMIN_CONTACT_PATH,
        user=by or 'admin',
        item_id=id
    )
    return True


def add_tag(id, tag):
    if not isinstance(tag, str) or not tag.strip():
        raise ValidationError('Tag cannot be empty')
    try:
        matched = add_to_set('contactMessages', {'id': id}, 'tags', tag.strip(),
                             extra={'updated_at': datetime.utcnow()})
        return bool(matched)
    except SQLAlchemyError as e:
        current_app.logger.error(f"Error adding tag to message {id}: {str(e)}")
        return False


def set_priority(id, priority):
    if priority not in PRIORITIES:
        raise ValidationError(f"Priority must be one of: {', '.join(PRIORITIES)}")
    return _transition(id, {'priority': priority}, 'setting priority', live_only=False) is not None


def count_by_status():
    """Counts per status plus 'all' and 'unread' (read flag unset)"""
    counts = {status: 0 for status in STATUSES}
    counts.update(count_by('contactMessages', 'status'))
    counts['all'] = sum(counts.values())
    counts['unread'] = count('contactMessages', {'read': False})
    return counts


__all__ = [
    'STATUSES',
    'PRIORITIES',
    'message_to_dict',
    'create_contact_message',
    'get_all_contact_messages',
    'get_contact_messages_by_status',
    'get_contact_message_by_id',
    'mark_as_read',
    'mark_as_replied',
    'reply',
    'archive',
    'soft_delete',
    'add_tag',
    'set_priority',
    'count_by_status'
]
