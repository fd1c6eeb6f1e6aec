"""Catalog queries and the admin-side product/box editing rules."""
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload

from giftbox.helpers import ValidationError, MAX_ID, to_cents, to_count
from giftbox.models import (
    PRODUCT_CATEGORIES, Product, PreMadeBox, PreMadeBoxItem, BoxType, OrderItem,
)


def _search_filter(columns, term):
    like = f"%{term.lower()}%"
    return or_(*[func.lower(c).like(like) for c in columns])


def list_products(db, page, limit, category=None, search=None, active_only=True):
    stmt = select(Product)
    if active_only:
        stmt = stmt.where(Product.is_active.is_(True))
    if category:
        if category not in PRODUCT_CATEGORIES:
            raise ValidationError(f"Invalid category. Must be one of: {', '.join(PRODUCT_CATEGORIES)}")
        stmt = stmt.where(Product.category == category)
    if search:
        stmt = stmt.where(_search_filter([Product.name, Product.description], search))
    total = db.scalar(select(func.count()).select_from(stmt.subquery()))
    rows = db.execute(
        stmt.order_by(Product.created_at.desc(), Product.id.desc())
        .offset((page - 1) * limit).limit(limit)
    ).scalars().all()
    return rows, total


def list_boxes(db, page, limit, search=None, active_only=True):
    stmt = select(PreMadeBox)
    if active_only:
        stmt = stmt.where(PreMadeBox.is_active.is_(True))
    if search:
        stmt = stmt.where(_search_filter([PreMadeBox.name, PreMadeBox.description], search))
    total = db.scalar(select(func.count()).select_from(stmt.subquery()))
    rows = db.execute(
        stmt.options(selectinload(PreMadeBox.items).selectinload(PreMadeBoxItem.product))
        .order_by(PreMadeBox.created_at.desc(), PreMadeBox.id.desc())
        .offset((page - 1) * limit).limit(limit)
    ).scalars().all()
    return rows, total


def get_box(db, box_id):
    return db.execute(
        select(PreMadeBox).where(PreMadeBox.id == box_id)
        .options(selectinload(PreMadeBox.items).selectinload(PreMadeBoxItem.product))
    ).scalar_one_or_none()


def active_box_types(db):
    return db.execute(
        select(BoxType).where(BoxType.is_active.is_(True)).order_by(BoxType.price_cents.asc())
    ).scalars().all()


def _images(raw):
    if raw is None:
        return []
    if isinstance(raw, str):
        return [line.strip() for line in raw.splitlines() if line.strip()]
    if isinstance(raw, list):
        return [str(x) for x in raw if str(x).strip()]
    raise ValidationError("Images must be a list")


def _flag(raw):
    # missing means active; only an explicit false turns it off
    return raw is not False and raw not in ("false", "0", "off")


def parse_product(data):
    if not isinstance(data, dict):
        raise ValidationError("Invalid request body")
    name = str(data.get("name") or "").strip()
    category = data.get("category")
    if not name or data.get("price") in (None, "") or not category:
        raise ValidationError("Name, price, and category are required")
    if category not in PRODUCT_CATEGORIES:
        raise ValidationError("Invalid category")
    price = to_cents(data["price"])
    if price < 0:
        raise ValidationError("Price must be a positive number")
    stock = to_count(data.get("stock") or 0, "Stock must be a whole number")
    if stock < 0:
        raise ValidationError("Stock cannot be negative")
    return {
        "name": name,
        "description": (str(data.get("description") or "").strip() or None),
        "price_cents": price,
        "category": category,
        "stock": stock,
        "image": data.get("image") or None,
        "images": _images(data.get("images")),
        "is_active": _flag(data.get("is_active")),
    }


def save_product(db, product, fields):
    for k, v in fields.items():
        setattr(product, k, v)
    db.add(product)
    db.commit()
    return product


def delete_product(db, product_id):
    p = db.get(Product, product_id)
    if not p:
        raise ValidationError("Product not found", status=404)
    used = db.scalar(select(func.count(OrderItem.id)).where(OrderItem.product_id == product_id))
    used += db.scalar(select(func.count(PreMadeBoxItem.id)).where(PreMadeBoxItem.product_id == product_id))
    if used:
        raise ValidationError("Cannot delete product: it is being used in orders or boxes")
    db.delete(p)
    db.commit()


def parse_box(data):
    if not isinstance(data, dict):
        raise ValidationError("Invalid request body")
    name = str(data.get("name") or "").strip()
    if not name:
        raise ValidationError("Name is required and must be a non-empty string")
    if data.get("price") in (None, ""):
        raise ValidationError("Valid price is required")
    price = to_cents(data["price"])
    if price < 0:
        raise ValidationError("Price must be a positive number")
    items = data.get("items")
    if items is not None:
        if not isinstance(items, list):
            raise ValidationError("Items must be an array")
        lines = []
        for it in items:
            if not isinstance(it, dict) or "product_id" not in it:
                raise ValidationError("Invalid box item")
            pid = to_count(it["product_id"], "Invalid box item", MAX_ID)
            qty = to_count(it.get("quantity") or 1, "Invalid box item")
            lines.append((pid, qty if qty > 0 else 1))
        items = lines
    return {
        "name": name,
        "description": (str(data.get("description") or "").strip() or None),
        "price_cents": price,
        "image": data.get("image") or None,
        "images": _images(data.get("images")),
        "is_active": _flag(data.get("is_active")),
    }, items


def save_box(db, box, fields, items):
    """Apply fields; when ``items`` is given it replaces the box contents."""
    for k, v in fields.items():
        setattr(box, k, v)
    if items is not None:
        ids = {pid for pid, _ in items}
        found = set(db.execute(select(Product.id).where(Product.id.in_(ids))).scalars().all())
        missing = ids - found
        if missing:
            raise ValidationError(f"Product {min(missing)} not found", status=404)
        box.items.clear()
        for pid, qty in items:
            box.items.append(PreMadeBoxItem(product_id=pid, quantity=qty))
    db.add(box)
    db.commit()
    return box


def category_usage(db):
    counts = dict(db.execute(
        select(Product.category, func.count(Product.id)).group_by(Product.category)
    ).all())
    return {c: counts.get(c, 0) for c in PRODUCT_CATEGORIES}


def check_category_removal(db, category):
    """Categories are fixed in code; this only reports whether one is unused."""
    if category not in PRODUCT_CATEGORIES:
        raise ValidationError("Invalid category")
    in_use = db.scalar(select(func.count(Product.id)).where(Product.category == category))
    if in_use:
        raise ValidationError(
            f"Cannot delete category. {in_use} product(s) are using this category.",
            details={"product_count": in_use})
    return {"message": "Category is unused and can be retired from the category list.",
            "requires_code_change": True}
