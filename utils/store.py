"""
Store Module - Document store gateway

Collections are addressed by their external names and filtered with
document-style filters ({field: value} or {field: {'$op': value}}).
Errors raised by the database propagate unchanged after the session is
rolled back.
"""

import uuid
from datetime import datetime
from flask import current_app
from sqlalchemy import select, update, insert, func
from sqlalchemy.exc import SQLAlchemyError
from extensions import db
from config import resolve_database_url
from models import Activity, ContactMessage, PageView, SiteSetting
from .errors import ConfigurationError


COLLECTIONS = {
    'activities': Activity,
    'contactMessages': ContactMessage,
    'page_views': PageView,
    'siteSettings': SiteSetting,
}

OPERATORS = {
    '$ne': lambda column, value: column != value,
    '$in': lambda column, value: column.in_(list(value)),
    '$nin': lambda column, value: ~column.in_(list(value)),
    '$gt': lambda column, value: column > value,
    '$gte': lambda column, value: column >= value,
    '$lt': lambda column, value: column < value,
    '$lte': lambda column, value: column <= value,
}


def init_store(app):
    """Resolve the connection string, bind the database and create tables"""
    database_url = app.config.get('SQLALCHEMY_DATABASE_URI') or resolve_database_url()
    if not database_url:
        raise ConfigurationError('DATABASE_URL is not configured')
    app.config['SQLALCHEMY_DATABASE_URI'] = database_url

    db.init_app(app)

    with app.app_context():
        try:
            from sqlalchemy import text
            db.create_all()
            # Verify connection
            db.session.execute(text('SELECT 1'))
            app.logger.info("✓ Database initialized successfully")
        except SQLAlchemyError as e:
            app.logger.error(f"✗ Database initialization failed: {str(e)}")


def get_database():
    """Return the long-lived database handle bound to the current app"""
    if not current_app.config.get('SQLALCHEMY_DATABASE_URI'):
        raise ConfigurationError('DATABASE_URL is not configured')
    return db


def get_collection(name):
    """Map an external collection name to its model"""
    try:
        return COLLECTIONS[name]
    except KeyError:
        raise ValueError(f"Unknown collection: {name}")


def _column(model, field):
    if field == '_id':
        field = 'id'
    columns = model.__table__.columns
    if field not in columns:
        raise ValueError(f"Unknown field '{field}' for {model.__tablename__}")
    return getattr(model, field)


def _check_fields(model, document):
    return {_column(model, key).key: value for key, value in document.items()}


def _build_query(model, filter=None, sort=None):
    get_database()
    query = model.query
    for field, condition in (filter or {}).items():
        column = _column(model, field)
        if isinstance(condition, dict):
            for op, value in condition.items():
                if op not in OPERATORS:
                    raise ValueError(f"Unsupported filter operator: {op}")
                query = query.filter(OPERATORS[op](column, value))
        else:
            query = query.filter(column == condition)

    for field, direction in (sort or {}).items():
        column = _column(model, field)
        query = query.order_by(column.desc() if direction < 0 else column.asc())
    return query


def find_many(collection, filter=None, sort=None, skip=0, limit=None, projection=None):
    """Find documents matching filter, with sort/skip/limit/projection options"""
    model = get_collection(collection)
    query = _build_query(model, filter, sort)
    if projection:
        from sqlalchemy.orm import load_only
        query = query.options(load_only(*[_column(model, f) for f in projection]))
    if skip:
        query = query.offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def find_one(collection, filter=None, sort=None):
    """Find the first document matching filter, or None"""
    model = get_collection(collection)
    return _build_query(model, filter, sort).first()


def count(collection, filter=None):
    """Count documents matching filter"""
    model = get_collection(collection)
    return _build_query(model, filter).count()


def count_by(collection, field, filter=None):
    """Count documents matching filter grouped by field; returns {value: count}"""
    model = get_collection(collection)
    column = _column(model, field)
    rows = _build_query(model, filter).with_entities(column, func.count()).group_by(column).all()
    return {value: total for value, total in rows}


def insert_one(collection, document):
    """Insert a document and return the stored instance"""
    model = get_collection(collection)
    instance = model(**_check_fields(model, document))
    try:
        db.session.add(instance)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    return instance


def update_one(collection, filter, values):
    """Set values on the first document matching filter; returns matched count"""
    model = get_collection(collection)
    values = _check_fields(model, values)
    try:
        target = _build_query(model, filter).with_entities(model.id).limit(1).scalar()
        if target is None:
            return 0
        # Re-apply the filter so the guard holds at write time
        matched = _build_query(model, filter).filter(model.id == target).update(
            values, synchronize_session=False)
        db.session.commit()
        return matched
    except SQLAlchemyError:
        db.session.rollback()
        raise


def delete_one(collection, filter):
    """Delete the first document matching filter; returns deleted count"""
    model = get_collection(collection)
    try:
        target = _build_query(model, filter).with_entities(model.id).limit(1).scalar()
        if target is None:
            return 0
        deleted = model.query.filter(model.id == target).delete(synchronize_session=False)
        db.session.commit()
        return deleted
    except SQLAlchemyError:
        db.session.rollback()
        raise


def add_to_set(collection, filter, field, value, extra=None):
    """Append value to a list field unless already present; returns matched count"""
    model = get_collection(collection)
    column = _column(model, field)
    extra = _check_fields(model, extra or {})
    try:
        instance = _build_query(model, filter).with_for_update().first()
        if instance is None:
            return 0
        current = list(getattr(instance, column.key) or [])
        if value not in current:
            current.append(value)
            # Assign a new list so the JSON column is flagged dirty
            setattr(instance, column.key, current)
        for key, val in extra.items():
            setattr(instance, key, val)
        db.session.commit()
        return 1
    except SQLAlchemyError:
        db.session.rollback()
        raise


def upsert_increment(collection, key_field, key_value, field='count', touch=None):
    """
    Atomically increment a counter field, creating the document at 1 if absent

    Args:
        collection (str): Collection name
        key_field (str): Unique key field identifying the document
        key_value: Key value
        field (str): Counter field
        touch (str, optional): Timestamp field refreshed on every increment

    Returns:
        int: The counter value after the increment
    """
    model = get_collection(collection)
    table = model.__table__
    key_column = table.c[_column(model, key_field).key]
    counter = table.c[_column(model, field).key]
    now = datetime.utcnow()

    new_document = {key_column.key: key_value, counter.key: 1, 'id': str(uuid.uuid4())}
    changes = {counter.key: counter + 1}
    if touch:
        new_document[_column(model, touch).key] = now
        changes[_column(model, touch).key] = now

    dialect = get_database().engine.dialect.name
    try:
        if dialect in ('sqlite', 'postgresql'):
            if dialect == 'sqlite':
                from sqlalchemy.dialects.sqlite import insert as dialect_insert
            else:
                from sqlalchemy.dialects.postgresql import insert as dialect_insert
            stmt = dialect_insert(table).values(**new_document)
            stmt = stmt.on_conflict_do_update(index_elements=[key_column], set_=changes)
            db.session.execute(stmt)
        else:
            result = db.session.execute(
                update(table).where(key_column == key_value).values(**changes))
            if not result.rowcount:
                db.session.execute(insert(table).values(**new_document))

        # Read inside the same transaction, the row is still locked by our write
        value = db.session.execute(
            select(counter).where(key_column == key_value)).scalar_one()
        db.session.commit()
        return value
    except SQLAlchemyError:
        db.session.rollback()
        raise


def to_iso(value):
    """Format a datetime for JSON output"""
    return value.isoformat() if value else None


__all__ = [
    'init_store',
    'get_database',
    'get_collection',
    'find_many',
    'find_one',
    'count',
    'count_by',
    'insert_one',
    'update_one',
    'delete_one',
    'add_to_set',
    'upsert_increment',
    'to_iso'
]
