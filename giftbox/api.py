"""Public JSON API."""
from flask import Blueprint, request, jsonify, session, current_app
from flask_login import login_required, current_user
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from werkzeug.exceptions import HTTPException

from giftbox import catalog
from giftbox.auth import current_user_id, check_password, hash_password, MIN_PASSWORD_LEN
from giftbox.checkout import place_order, complete_delivery, load_order
from giftbox.contact import create_message
from giftbox.db import main_session
from giftbox.helpers import (ValidationError, parse_pagination, clean_search, pagination_info,
                             MAX_COUNT, MAX_ID, to_count)
from giftbox.models import Product, BoxType, Order, OrderItem, User
from giftbox.notify import log, notify
from giftbox.serialize import (product_dict, box_dict, box_type_dict, order_dict)
from giftbox.stores import CartStore, CustomBoxStore

api_bp = Blueprint("api", __name__, url_prefix="/api")

PUBLIC_CACHE = "public, s-maxage=60, stale-while-revalidate=300"
PRIVATE_CACHE = "private, s-maxage=30, stale-while-revalidate=60"


@api_bp.errorhandler(ValidationError)
def handle_validation(e):
    return e.response()


@api_bp.errorhandler(Exception)
def handle_unexpected(e):
    if isinstance(e, HTTPException):
        return jsonify({"error": e.description}), e.code
    log.exception(f"Unhandled API error on {request.method} {request.path}")
    return jsonify({"error": "Internal server error", "message": str(e)}), 500


def json_body():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Invalid request body")
    return body


# --------------------------- CATALOG ---------------------------
@api_bp.get("/products")
def products():
    page, limit = parse_pagination(request.args)
    search = clean_search(request.args.get("search"))
    with main_session() as db:
        rows, total = catalog.list_products(db, page, limit,
                                            category=request.args.get("category") or None,
                                            search=search)
        resp = jsonify({"products": [product_dict(p) for p in rows],
                        "pagination": pagination_info(page, limit, total)})
    resp.headers["Cache-Control"] = PUBLIC_CACHE
    return resp


@api_bp.get("/products/<int:pid>")
def product(pid):
    with main_session() as db:
        p = db.get(Product, pid)
        if not p:
            return jsonify({"error": "Product not found"}), 404
        if not p.is_active:
            return jsonify({"error": "Product not available"}), 404
        return jsonify({"product": product_dict(p)})


@api_bp.get("/premade-boxes")
def premade_boxes():
    page, limit = parse_pagination(request.args)
    with main_session() as db:
        rows, total = catalog.list_boxes(db, page, limit)
        resp = jsonify({"boxes": [box_dict(b) for b in rows],
                        "pagination": pagination_info(page, limit, total)})
    resp.headers["Cache-Control"] = PUBLIC_CACHE
    return resp


@api_bp.get("/premade-boxes/<int:box_id>")
def premade_box(box_id):
    with main_session() as db:
        box = catalog.get_box(db, box_id)
        if not box:
            return jsonify({"error": "Pre-made box not found"}), 404
        if not box.is_active:
            return jsonify({"error": "Pre-made box is not available"}), 404
        return jsonify({"box": box_dict(box)})


@api_bp.get("/box-types")
def box_types():
    with main_session() as db:
        return jsonify({"box_types": [box_type_dict(t) for t in catalog.active_box_types(db)]})


@api_bp.post("/contact")
def contact():
    with main_session() as db:
        m = create_message(db, json_body(), user_id=current_user_id())
        return jsonify({"message": "Contact message sent successfully", "id": m.id}), 201


# --------------------------- CHECKOUT / ORDERS ---------------------------
@api_bp.post("/checkout")
def checkout():
    payload = json_body()
    try:
        with main_session() as db:
            order_id = place_order(db, payload, current_user_id(), current_app.config)
    except ValidationError:
        raise
    except Exception as e:
        log.exception("Checkout failed")
        notify(f"Checkout failed: {e}")
        return jsonify({"error": "Failed to process checkout", "message": str(e)}), 500
    return jsonify({"order_id": order_id,
                    "message": "Order created successfully. You will be contacted via "
                               "WhatsApp for payment."}), 201


@api_bp.get("/orders")
@login_required
def my_orders():
    with main_session() as db:
        rows = db.execute(
            select(Order).where(Order.user_id == current_user_id())
            .options(selectinload(Order.items).selectinload(OrderItem.product),
                     selectinload(Order.payment), selectinload(Order.delivery),
                     selectinload(Order.premade_box), selectinload(Order.box_type))
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).scalars().all()
        resp = jsonify({"orders": [order_dict(o) for o in rows]})
    resp.headers["Cache-Control"] = PRIVATE_CACHE
    return resp


@api_bp.post("/orders")
def create_order():
    payload = json_body()
    with main_session() as db:
        order_id = place_order(db, payload, current_user_id(), current_app.config,
                               full_delivery=False)
    with main_session() as db:
        return jsonify({"message": "Order created successfully",
                        "order": order_dict(load_order(db, order_id))}), 201


def _check_order_access(order):
    """Guest orders are open to anyone holding the id; owned ones are not."""
    if order.user_id is None:
        return None
    if not current_user.is_authenticated:
        return jsonify({"error": "Unauthorized. Please sign in to view orders."}), 401
    if not current_user.is_admin and order.user_id != current_user_id():
        return jsonify({"error": "Forbidden. You do not have permission to view this order."}), 403
    return None


@api_bp.get("/orders/<int:order_id>")
def order_detail(order_id):
    with main_session() as db:
        order = load_order(db, order_id)
        if not order:
            return jsonify({"error": "Order not found"}), 404
        denied = _check_order_access(order)
        if denied:
            return denied
        return jsonify({"order": order_dict(order)})


@api_bp.patch("/orders/<int:order_id>/complete")
def order_complete(order_id):
    body = json_body()
    with main_session() as db:
        order = load_order(db, order_id)
        if not order:
            return jsonify({"error": "Order not found"}), 404
        if order.user_id is not None and order.user_id != current_user_id():
            if not current_user.is_authenticated:
                return jsonify({"error": "Unauthorized"}), 401
            return jsonify({"error": "Forbidden"}), 403
        complete_delivery(db, order, body.get("delivery"), current_app.config["DEFAULT_COUNTRY"])
        db.commit()
        log.info(f"Delivery details completed for order #{order_id}")
        return jsonify({"message": "Order completed successfully",
                        "order": order_dict(load_order(db, order_id))})


# --------------------------- ACCOUNT ---------------------------
@api_bp.patch("/user/profile")
@login_required
def update_profile():
    name = json_body().get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name is required")
    with main_session() as db:
        u = db.get(User, current_user_id())
        u.name = name.strip()[:200]
        db.commit()
        return jsonify({"message": "Profile updated successfully",
                        "user": {"id": u.id, "email": u.email, "name": u.name, "image": u.image}})


@api_bp.patch("/user/password")
@login_required
def change_password():
    body = json_body()
    current, new = body.get("current_password"), body.get("new_password")
    if not current or not new:
        raise ValidationError("Current password and new password are required")
    if len(new) < MIN_PASSWORD_LEN:
        raise ValidationError(f"New password must be at least {MIN_PASSWORD_LEN} characters")
    with main_session() as db:
        u = db.get(User, current_user_id())
        if not u.password_hash:
            raise ValidationError("Password change is not available for this account type")
        if not check_password(current, u.password_hash):
            raise ValidationError("Current password is incorrect")
        u.password_hash = hash_password(new)
        db.commit()
    return jsonify({"message": "Password changed successfully"})


@api_bp.get("/debug/session")
def debug_session():
    if not current_user.is_authenticated:
        return jsonify({"authenticated": False})
    return jsonify({"authenticated": True, "user": {
        "id": current_user_id(), "email": current_user.email, "role": current_user.role}})


# --------------------------- STORES ---------------------------
def _int_field(body, key, limit=MAX_COUNT):
    return to_count(body.get(key), f"{key} must be a whole number", limit)


def register_store_routes(bp, prefix, store_cls):
    """Expose a session store as ``/<prefix>`` JSON endpoints."""
    name = prefix.replace("-", "_")

    def show():
        return jsonify(store_cls(session).to_dict())

    def clear():
        store_cls(session).clear()
        return jsonify(store_cls(session).to_dict())

    def add_item():
        body = json_body()
        pid = _int_field(body, "product_id", MAX_ID)
        qty = _int_field(body, "quantity") if body.get("quantity") is not None else 1
        if qty < 1:
            raise ValidationError("Quantity must be positive")
        with main_session() as db:
            p = db.get(Product, pid)
            if not p or not p.is_active:
                raise ValidationError(f"Product {pid} not found", status=404)
            store_cls(session).add_item(p.id, qty, p.price_cents, p.name, p.image)
        return jsonify(store_cls(session).to_dict()), 201

    def update_item(product_id):
        qty = _int_field(json_body(), "quantity")
        store_cls(session).update_quantity(product_id, qty)
        return jsonify(store_cls(session).to_dict())

    def remove_item(product_id):
        store_cls(session).remove_item(product_id)
        return jsonify(store_cls(session).to_dict())

    def set_postcard():
        text = json_body().get("postcard_text") or ""
        if not isinstance(text, str) or len(text) > 500:
            raise ValidationError("Postcard text must be at most 500 characters")
        store_cls(session).set_postcard_text(text.strip())
        return jsonify(store_cls(session).to_dict())

    bp.add_url_rule(f"/{prefix}", f"{name}_show", show, methods=["GET"])
    bp.add_url_rule(f"/{prefix}", f"{name}_clear", clear, methods=["DELETE"])
    bp.add_url_rule(f"/{prefix}/items", f"{name}_add", add_item, methods=["POST"])
    bp.add_url_rule(f"/{prefix}/items/<int:product_id>", f"{name}_update", update_item,
                    methods=["PATCH"])
    bp.add_url_rule(f"/{prefix}/items/<int:product_id>", f"{name}_remove", remove_item,
                    methods=["DELETE"])
    bp.add_url_rule(f"/{prefix}/postcard", f"{name}_postcard", set_postcard, methods=["PUT"])


register_store_routes(api_bp, "cart", CartStore)
register_store_routes(api_bp, "custom-box", CustomBoxStore)


@api_bp.put("/custom-box/box-type")
def custom_box_type():
    raw = json_body().get("box_type_id")
    store = CustomBoxStore(session)
    if raw is None:
        store.set_box_type(None)
        return jsonify(store.to_dict())
    box_type_id = to_count(raw, "Invalid box type", MAX_ID)
    with main_session() as db:
        t = db.get(BoxType, box_type_id)
        if not t or not t.is_active:
            raise ValidationError("Box type not found", status=404)
        store.set_box_type(box_type_dict(t))
    return jsonify(store.to_dict())
