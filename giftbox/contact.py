from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from giftbox.helpers import ValidationError, is_valid_email
from giftbox.models import CONTACT_CATEGORIES, CONTACT_STATUSES, ContactMessage
from giftbox.notify import log, notify

MAX_NOTE_LEN = 5000


def _text(data, key):
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


def create_message(db, data, user_id=None):
    if not isinstance(data, dict):
        raise ValidationError("Invalid request body")
    name, email, message = _text(data, "name"), _text(data, "email"), _text(data, "message")
    subject, order_ref = _text(data, "subject"), _text(data, "order_ref")
    category = data.get("category")

    if not name:
        raise ValidationError("Name is required")
    if not 2 <= len(name) <= 100:
        raise ValidationError("Name must be between 2 and 100 characters")
    if not email:
        raise ValidationError("Email is required")
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")
    if not message:
        raise ValidationError("Message is required")
    if len(message) < 20:
        raise ValidationError("Message must be at least 20 characters")
    if len(message) > 5000:
        raise ValidationError("Message must be less than 5000 characters")
    if category not in CONTACT_CATEGORIES:
        raise ValidationError("Invalid category")
    if len(subject) > 200:
        raise ValidationError("Subject must be less than 200 characters")

    m = ContactMessage(user_id=user_id, name=name, email=email.lower(),
                       subject=subject or None, category=category,
                       order_ref=order_ref[:64] or None, message=message, status="NEW")
    db.add(m)
    db.commit()
    log.info(f"Contact message #{m.id} ({category}) from {m.email}")
    notify(f"New contact message #{m.id} [{category}] from {m.name} <{m.email}>")
    return m


def list_messages(db, page, limit, status=None):
    stmt = select(ContactMessage)
    if status in CONTACT_STATUSES:
        stmt = stmt.where(ContactMessage.status == status)
    total = db.scalar(select(func.count()).select_from(stmt.subquery()))
    rows = db.execute(
        stmt.options(selectinload(ContactMessage.user), selectinload(ContactMessage.handled_by))
        .order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc())
        .offset((page - 1) * limit).limit(limit)
    ).scalars().all()
    return rows, total


def update_message(db, message, data, admin_id):
    """Apply an admin status/note change.

    Moving a message to IN_PROGRESS or RESOLVED records who handled it.
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid request body")
    status = data.get("status")
    if status is not None and status not in CONTACT_STATUSES:
        raise ValidationError("Invalid status")
    if "admin_note" in data and data["admin_note"] is not None:
        note = data["admin_note"]
        if not isinstance(note, str):
            raise ValidationError("Admin note must be a string")
        if len(note.strip()) > MAX_NOTE_LEN:
            raise ValidationError(f"Admin note must be less than {MAX_NOTE_LEN} characters")

    if status is not None:
        message.status = status
        if status in ("IN_PROGRESS", "RESOLVED"):
            message.handled_by_id = admin_id
    if "admin_note" in data:
        note = (data["admin_note"] or "").strip()
        message.admin_note = note or None
    db.commit()
    return message
