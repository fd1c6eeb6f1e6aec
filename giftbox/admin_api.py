"""Admin JSON API. Every route needs the ADMIN role."""
from flask import Blueprint, request, jsonify, current_app
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from giftbox import catalog
from giftbox.api import json_body, handle_validation, handle_unexpected
from giftbox.auth import admin_required, current_user_id
from giftbox.checkout import load_order
from giftbox.contact import list_messages, update_message
from giftbox.db import main_session
from giftbox.helpers import ValidationError, parse_pagination, clean_search, pagination_info
from giftbox.models import (ORDER_STATUSES, Product, PreMadeBox, Order, User, ContactMessage)
from giftbox.notify import log
from giftbox.serialize import product_dict, box_dict, order_dict, contact_dict
from giftbox.uploads import save_image

admin_api_bp = Blueprint("admin_api", __name__, url_prefix="/api/admin")
admin_api_bp.register_error_handler(ValidationError, handle_validation)
admin_api_bp.register_error_handler(Exception, handle_unexpected)

USER_SORTS = ("created_at", "email", "name", "orders")


@admin_api_bp.before_request
@admin_required
def guard():
    return None


# --------------------------- PRODUCTS ---------------------------
@admin_api_bp.get("/products")
def products():
    page, limit = parse_pagination(request.args)
    search = clean_search(request.args.get("search"))
    with main_session() as db:
        rows, total = catalog.list_products(db, page, limit, search=search, active_only=False)
        return jsonify({"products": [product_dict(p) for p in rows],
                        "pagination": pagination_info(page, limit, total)})


@admin_api_bp.post("/products")
def product_create():
    fields = catalog.parse_product(json_body())
    with main_session() as db:
        p = catalog.save_product(db, Product(), fields)
        log.info(f"Product #{p.id} created: {p.name}")
        return jsonify({"product": product_dict(p)}), 201


@admin_api_bp.put("/products/<int:pid>")
def product_update(pid):
    fields = catalog.parse_product(json_body())
    with main_session() as db:
        p = db.get(Product, pid)
        if not p:
            return jsonify({"error": "Product not found"}), 404
        catalog.save_product(db, p, fields)
        return jsonify({"product": product_dict(p)})


@admin_api_bp.delete("/products/<int:pid>")
def product_delete(pid):
    with main_session() as db:
        try:
            catalog.delete_product(db, pid)
        except IntegrityError:
            db.rollback()
            raise ValidationError("Cannot delete product: it is being used in orders or boxes")
    log.info(f"Product #{pid} deleted")
    return jsonify({"success": True})


# --------------------------- BOXES ---------------------------
@admin_api_bp.get("/premade-boxes")
def boxes():
    page, limit = parse_pagination(request.args)
    search = clean_search(request.args.get("search"))
    with main_session() as db:
        rows, total = catalog.list_boxes(db, page, limit, search=search, active_only=False)
        return jsonify({"boxes": [box_dict(b) for b in rows],
                        "pagination": pagination_info(page, limit, total)})


@admin_api_bp.post("/premade-boxes")
def box_create():
    fields, items = catalog.parse_box(json_body())
    with main_session() as db:
        box = catalog.save_box(db, PreMadeBox(), fields, items or [])
        log.info(f"Pre-made box #{box.id} created: {box.name}")
        return jsonify({"box": box_dict(catalog.get_box(db, box.id))}), 201


@admin_api_bp.put("/premade-boxes/<int:box_id>")
def box_update(box_id):
    fields, items = catalog.parse_box(json_body())
    with main_session() as db:
        box = catalog.get_box(db, box_id)
        if not box:
            return jsonify({"error": "Pre-made box not found"}), 404
        catalog.save_box(db, box, fields, items)
        return jsonify({"box": box_dict(catalog.get_box(db, box_id))})


@admin_api_bp.delete("/premade-boxes/<int:box_id>")
def box_delete(box_id):
    with main_session() as db:
        box = db.get(PreMadeBox, box_id)
        if not box:
            return jsonify({"error": "Pre-made box not found"}), 404
        box.is_active = False
        db.commit()
    log.info(f"Pre-made box #{box_id} deactivated")
    return jsonify({"success": True})


# --------------------------- CATEGORIES ---------------------------
@admin_api_bp.get("/categories")
def categories():
    with main_session() as db:
        return jsonify({"categories": catalog.category_usage(db)})


@admin_api_bp.delete("/categories/<category>")
def category_delete(category):
    with main_session() as db:
        return jsonify(catalog.check_category_removal(db, category))


# --------------------------- CONTACT MESSAGES ---------------------------
@admin_api_bp.get("/contact-messages")
def contact_messages():
    page, limit = parse_pagination(request.args)
    with main_session() as db:
        rows, total = list_messages(db, page, limit, status=request.args.get("status"))
        return jsonify({"messages": [contact_dict(m) for m in rows],
                        "pagination": pagination_info(page, limit, total)})


@admin_api_bp.get("/contact-messages/<int:mid>")
def contact_message(mid):
    with main_session() as db:
        m = db.get(ContactMessage, mid)
        if not m:
            return jsonify({"error": "Message not found"}), 404
        return jsonify({"message": contact_dict(m)})


@admin_api_bp.patch("/contact-messages/<int:mid>")
def contact_message_update(mid):
    body = json_body()
    with main_session() as db:
        m = db.get(ContactMessage, mid)
        if not m:
            return jsonify({"error": "Message not found"}), 404
        update_message(db, m, body, current_user_id())
        return jsonify({"message": contact_dict(m)})


# --------------------------- ORDERS ---------------------------
def orders_page(db, page, limit, status=None):
    stmt = select(Order)
    if status in ORDER_STATUSES:
        stmt = stmt.where(Order.status == status)
    total = db.scalar(select(func.count()).select_from(stmt.subquery()))
    rows = db.execute(
        stmt.options(selectinload(Order.user), selectinload(Order.delivery),
                     selectinload(Order.payment), selectinload(Order.items),
                     selectinload(Order.premade_box), selectinload(Order.box_type))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit).limit(limit)
    ).scalars().all()
    return rows, total


def set_order_status(db, order, status):
    if status not in ORDER_STATUSES:
        raise ValidationError("Invalid request data",
                              details=[{"field": "status",
                                        "message": f"Must be one of: {', '.join(ORDER_STATUSES)}"}])
    previous, order.status = order.status, status
    db.commit()
    log.info(f"Order #{order.id} status {previous} -> {status}")


@admin_api_bp.get("/orders")
def orders():
    page, limit = parse_pagination(request.args)
    with main_session() as db:
        rows, total = orders_page(db, page, limit, status=request.args.get("status"))
        return jsonify({"orders": [order_dict(o) for o in rows],
                        "pagination": pagination_info(page, limit, total)})


@admin_api_bp.patch("/orders/<int:order_id>")
def order_update(order_id):
    body = json_body()
    with main_session() as db:
        order = db.get(Order, order_id)
        if not order:
            return jsonify({"error": "Order not found"}), 404
        if body.get("status") is not None:
            set_order_status(db, order, body["status"])
        return jsonify({"order": order_dict(load_order(db, order_id))})


# --------------------------- USERS ---------------------------
def list_users(db, sort_by="created_at", sort_order="desc", search=None):
    if sort_by not in USER_SORTS:
        raise ValidationError(f"Invalid sort_by. Must be one of: {', '.join(USER_SORTS)}")
    if sort_order not in ("asc", "desc"):
        raise ValidationError("Invalid sort_order. Must be asc or desc")
    order_count = func.count(Order.id).label("order_count")
    stmt = select(User, order_count).outerjoin(Order, Order.user_id == User.id).group_by(User.id)
    if search:
        like = f"%{search.lower()}%"
        stmt = stmt.where(or_(func.lower(User.email).like(like), func.lower(User.name).like(like)))
    key = order_count if sort_by == "orders" else getattr(User, sort_by)
    stmt = stmt.order_by(key.asc() if sort_order == "asc" else key.desc(), User.id.asc())
    return db.execute(stmt).all()


@admin_api_bp.get("/users")
def users():
    search = clean_search(request.args.get("search"))
    with main_session() as db:
        rows = list_users(db, request.args.get("sort_by", "created_at"),
                          request.args.get("sort_order", "desc"), search)
        return jsonify({"users": [
            {"id": u.id, "email": u.email, "name": u.name, "role": u.role,
             "created_at": u.created_at.isoformat() if u.created_at else None,
             "order_count": n}
            for u, n in rows
        ]})


# --------------------------- UPLOADS ---------------------------
@admin_api_bp.post("/upload")
def upload():
    cfg = current_app.config
    file = request.files.get("file")
    filename, size = save_image(file, cfg["UPLOAD_DIR"], cfg["MAX_UPLOAD_BYTES"])
    log.info(f"Uploaded {filename} ({size} bytes)")
    return jsonify({"url": f"/uploads/{filename}", "filename": filename,
                    "size": size, "type": file.mimetype})
