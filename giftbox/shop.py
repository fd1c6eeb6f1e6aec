"""Storefront pages, served under ``/<locale>``."""
from flask import (Blueprint, render_template, request, redirect, url_for, flash, abort,
                   session, current_app)
from flask_login import login_required, current_user
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from giftbox import catalog
from giftbox.auth import current_user_id, check_password, hash_password, MIN_PASSWORD_LEN
from giftbox.checkout import place_order, complete_delivery, load_order
from giftbox.contact import create_message
from giftbox.db import main_session
from giftbox.helpers import ValidationError, parse_pagination, clean_search, is_safe_url
from giftbox.i18n import localize
from giftbox.models import PRODUCT_CATEGORIES, CONTACT_CATEGORIES, Product, BoxType, Order, User
from giftbox.notify import log
from giftbox.serialize import box_type_dict
from giftbox.stores import CartStore, CustomBoxStore

shop_bp = localize(Blueprint("shop", __name__, url_prefix="/<locale>"))

DELIVERY_FIELDS = ("full_name", "email", "phone", "address", "place_type", "country")
INTERESTS = ("sports", "music", "reading", "gaming", "art", "technology", "fashion",
             "cooking", "travel", "movies", "photography", "fitness")
OCCASIONS = ("birthday", "anniversary", "valentines", "wedding", "graduation", "new_baby",
             "thank_you", "get_well", "congratulations", "christmas", "just_because", "custom")


def _flash_error(e: ValidationError):
    if e.details and isinstance(e.details, list):
        detail = "; ".join(f"{d['field']}: {d['message']}" for d in e.details)
        flash(f"{e.message}. {detail}", "danger")
    else:
        flash(e.message, "danger")


def _back(default):
    target = request.form.get("next")
    return redirect(target if is_safe_url(target) else default)


def _can_view(order):
    if order.user_id is None:
        return True
    return current_user.is_authenticated and (
        current_user.is_admin or order.user_id == current_user_id())


# --------------------------- CATALOG ---------------------------
@shop_bp.get("/")
def index():
    with main_session() as db:
        boxes, _ = catalog.list_boxes(db, 1, 4)
        products, _ = catalog.list_products(db, 1, 8)
        return render_template("index.html", boxes=boxes, products=products)


@shop_bp.get("/products")
def products():
    category = request.args.get("category") or None
    try:
        page, limit = parse_pagination(request.args, default_limit=12)
        search = clean_search(request.args.get("search"))
        with main_session() as db:
            rows, total = catalog.list_products(db, page, limit, category=category, search=search)
            return render_template("products.html", products=rows, total=total, page=page,
                                   pages=(total + limit - 1) // limit, category=category,
                                   search=search or "", categories=PRODUCT_CATEGORIES)
    except ValidationError as e:
        _flash_error(e)
        return redirect(url_for("shop.products"))


@shop_bp.get("/products/<int:pid>")
def product(pid):
    with main_session() as db:
        p = db.get(Product, pid)
        if not p or not p.is_active:
            abort(404)
        return render_template("product.html", p=p)


@shop_bp.get("/premade-boxes")
def premade_boxes():
    try:
        page, limit = parse_pagination(request.args, default_limit=12)
    except ValidationError as e:
        _flash_error(e)
        return redirect(url_for("shop.premade_boxes"))
    with main_session() as db:
        rows, total = catalog.list_boxes(db, page, limit)
        return render_template("boxes.html", boxes=rows, page=page,
                               pages=(total + limit - 1) // limit)


@shop_bp.get("/premade-boxes/<int:box_id>")
def premade_box(box_id):
    with main_session() as db:
        box = catalog.get_box(db, box_id)
        if not box or not box.is_active:
            abort(404)
        return render_template("box.html", box=box)


# --------------------------- CART & CUSTOM BOX ---------------------------
def _add_to_store(store, default_next):
    pid = request.form.get("product_id", type=int)
    qty = max(1, request.form.get("quantity", type=int, default=1))
    if not pid:
        abort(400)
    with main_session() as db:
        p = db.get(Product, pid)
        if not p or not p.is_active:
            abort(404)
        store.add_item(p.id, qty, p.price_cents, p.name, p.image)
    flash("Added.", "success")
    return _back(default_next)


def _update_store(store):
    for key, value in request.form.items():
        if key.startswith("qty_"):
            try:
                pid, q = int(key.split("_", 1)[1]), int(value or "0")
            except ValueError:
                continue
            store.update_quantity(pid, q)
    if "postcard_text" in request.form:
        store.set_postcard_text(request.form["postcard_text"].strip()[:500])


@shop_bp.get("/cart")
def cart_view():
    return render_template("cart.html", cart=CartStore(session))


@shop_bp.post("/cart/add")
def cart_add():
    return _add_to_store(CartStore(session), url_for("shop.cart_view"))


@shop_bp.post("/cart/update")
def cart_update():
    _update_store(CartStore(session))
    flash("Cart updated.", "success")
    return redirect(url_for("shop.cart_view"))


@shop_bp.post("/cart/remove/<int:pid>")
def cart_remove(pid):
    CartStore(session).remove_item(pid)
    return redirect(url_for("shop.cart_view"))


@shop_bp.get("/custom-box")
def custom_box():
    category = request.args.get("category")
    if category not in PRODUCT_CATEGORIES:
        category = None
    with main_session() as db:
        products, _ = catalog.list_products(db, 1, 100, category=category)
        return render_template("custom_box.html", box=CustomBoxStore(session),
                               products=products, box_types=catalog.active_box_types(db),
                               category=category, categories=PRODUCT_CATEGORIES)


@shop_bp.post("/custom-box/add")
def custom_box_add():
    return _add_to_store(CustomBoxStore(session), url_for("shop.custom_box"))


@shop_bp.post("/custom-box/update")
def custom_box_update():
    _update_store(CustomBoxStore(session))
    return redirect(url_for("shop.custom_box"))


@shop_bp.post("/custom-box/remove/<int:pid>")
def custom_box_remove(pid):
    CustomBoxStore(session).remove_item(pid)
    return redirect(url_for("shop.custom_box"))


@shop_bp.post("/custom-box/box-type")
def custom_box_type():
    box = CustomBoxStore(session)
    tid = request.form.get("box_type_id", type=int)
    if not tid:
        box.set_box_type(None)
        return redirect(url_for("shop.custom_box"))
    with main_session() as db:
        t = db.get(BoxType, tid)
        if not t or not t.is_active:
            abort(404)
        box.set_box_type(box_type_dict(t))
    return redirect(url_for("shop.custom_box"))


@shop_bp.post("/custom-box/clear")
def custom_box_clear():
    CustomBoxStore(session).clear_box()
    return redirect(url_for("shop.custom_box"))


# --------------------------- MYSTERY BOX ---------------------------
@shop_bp.route("/mystery-box", methods=["GET", "POST"])
def mystery_box():
    cfg = current_app.config
    if request.method == "GET":
        return render_template("mystery_box.html", interests=INTERESTS, occasions=OCCASIONS,
                               min_budget=cfg["MYSTERY_MIN_BUDGET"], form={})
    occasion = request.form.get("occasion", "")
    if occasion == "custom":
        occasion = request.form.get("custom_occasion", "").strip()
    payload = {
        "order_type": "MYSTERY",
        "recipient_gender": request.form.get("recipient_gender") or None,
        "recipient_age": request.form.get("recipient_age") or None,
        "budget": request.form.get("budget"),
        "interests": [i for i in request.form.getlist("interests") if i in INTERESTS],
        "occasion": occasion or None,
        "comments": request.form.get("comments") or None,
    }
    try:
        with main_session() as db:
            order_id = place_order(db, payload, current_user_id(), cfg, full_delivery=False)
    except ValidationError as e:
        _flash_error(e)
        return (render_template("mystery_box.html", interests=INTERESTS, occasions=OCCASIONS,
                                min_budget=cfg["MYSTERY_MIN_BUDGET"], form=request.form), 400)
    return redirect(url_for("shop.checkout", order_id=order_id))


# --------------------------- CHECKOUT ---------------------------
def _checkout_source():
    """Work out what is being checked out from the query string and stores."""
    order_id = request.args.get("order_id", type=int)
    box_id = request.args.get("box_id", type=int)
    if order_id:
        return "MYSTERY", order_id
    if box_id:
        return "PREMADE", box_id
    custom = CustomBoxStore(session)
    if custom.items:
        return "CUSTOM", custom
    return "CART", CartStore(session)


@shop_bp.get("/checkout")
def checkout():
    kind, source = _checkout_source()
    with main_session() as db:
        ctx = {"kind": kind, "form": {"country": current_app.config["DEFAULT_COUNTRY"]}}
        if kind == "MYSTERY":
            order = load_order(db, source)
            if not order or order.order_type != "MYSTERY" or not _can_view(order):
                abort(404)
            ctx["order"] = order
        elif kind == "PREMADE":
            box = catalog.get_box(db, source)
            if not box or not box.is_active:
                abort(404)
            ctx["box"] = box
        else:
            if not source.items:
                flash("Cart is empty.", "warning")
                return redirect(url_for("shop.index"))
            ctx["store"] = source
        return render_template("checkout.html", **ctx)


@shop_bp.post("/checkout")
def checkout_post():
    cfg = current_app.config
    kind, source = _checkout_source()
    delivery = {k: request.form.get(k, "") for k in DELIVERY_FIELDS}
    try:
        with main_session() as db:
            if kind == "MYSTERY":
                order = load_order(db, source)
                if not order or order.order_type != "MYSTERY" or not _can_view(order):
                    abort(404)
                complete_delivery(db, order, delivery, cfg["DEFAULT_COUNTRY"], strict=True)
                db.commit()
                order_id = order.id
            elif kind == "PREMADE":
                order_id = place_order(db, {"order_type": "PREMADE", "premade_box_id": source,
                                            "delivery": delivery}, current_user_id(), cfg)
            else:
                payload = {
                    "order_type": "CUSTOM",
                    "items": [{"product_id": it["product_id"], "quantity": it["quantity"]}
                              for it in source.items],
                    "postcard_text": source.postcard_text or None,
                    "delivery": delivery,
                }
                if kind == "CUSTOM" and source.box_type:
                    payload["box_type_id"] = source.box_type["id"]
                order_id = place_order(db, payload, current_user_id(), cfg)
    except ValidationError as e:
        _flash_error(e)
        return redirect(request.full_path.rstrip("?"))

    if kind == "CUSTOM":
        source.clear_box()
    elif kind == "CART":
        source.clear()
    return redirect(url_for("shop.checkout_success", order_id=order_id))


@shop_bp.get("/checkout/success")
def checkout_success():
    order_id = request.args.get("order_id", type=int)
    if not order_id:
        return redirect(url_for("shop.index"))
    with main_session() as db:
        order = load_order(db, order_id)
        if not order or not _can_view(order):
            abort(404)
        return render_template("success.html", order=order,
                               whatsapp=current_app.config["WHATSAPP_NUMBER"])


@shop_bp.get("/checkout/cancel")
def checkout_cancel():
    return render_template("cancel.html")


# --------------------------- ACCOUNT ---------------------------
@shop_bp.get("/orders")
@login_required
def orders():
    with main_session() as db:
        rows = db.execute(
            select(Order).where(Order.user_id == current_user_id())
            .options(selectinload(Order.items), selectinload(Order.payment))
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).scalars().all()
        return render_template("orders.html", orders=rows)


@shop_bp.get("/orders/<int:order_id>")
@login_required
def order_detail(order_id):
    with main_session() as db:
        order = load_order(db, order_id)
        if not order or not _can_view(order):
            abort(404)
        return render_template("order.html", order=order)


@shop_bp.get("/profile")
@login_required
def profile():
    with main_session() as db:
        return render_template("profile.html", user=db.get(User, current_user_id()))


@shop_bp.post("/profile")
@login_required
def profile_post():
    name = request.form.get("name", "").strip()
    if not name:
        flash("Name is required", "danger")
        return redirect(url_for("shop.profile"))
    with main_session() as db:
        db.get(User, current_user_id()).name = name[:200]
        db.commit()
    flash("Profile updated successfully", "success")
    return redirect(url_for("shop.profile"))


@shop_bp.post("/profile/password")
@login_required
def profile_password():
    current = request.form.get("current_password", "")
    new = request.form.get("new_password", "")
    with main_session() as db:
        u = db.get(User, current_user_id())
        if not u.password_hash:
            flash("Password change is not available for this account type", "danger")
        elif not check_password(current, u.password_hash):
            flash("Current password is incorrect", "danger")
        elif len(new) < MIN_PASSWORD_LEN:
            flash(f"New password must be at least {MIN_PASSWORD_LEN} characters", "danger")
        else:
            u.password_hash = hash_password(new)
            db.commit()
            log.info(f"Password changed for user {u.id}")
            flash("Password changed successfully", "success")
    return redirect(url_for("shop.profile"))


# --------------------------- CONTACT ---------------------------
@shop_bp.route("/contact", methods=["GET", "POST"])
def contact():
    if request.method == "GET":
        return render_template("contact.html", categories=CONTACT_CATEGORIES, form={})
    try:
        with main_session() as db:
            create_message(db, request.form.to_dict(), user_id=current_user_id())
    except ValidationError as e:
        _flash_error(e)
        return render_template("contact.html", categories=CONTACT_CATEGORIES,
                               form=request.form), 400
    flash("Contact message sent successfully", "success")
    return redirect(url_for("shop.contact"))
