"""Back-office pages under ``/admin``."""
from flask import Blueprint, render_template, request, redirect, url_for, flash, abort, current_app
from flask_login import current_user
from sqlalchemy import select, func

from giftbox import catalog
from giftbox.admin_api import orders_page, set_order_status, list_users, USER_SORTS
from giftbox.auth import current_user_id
from giftbox.checkout import load_order
from giftbox.contact import list_messages, update_message
from giftbox.db import main_session
from giftbox.helpers import ValidationError, parse_pagination, clean_search
from giftbox.models import (PRODUCT_CATEGORIES, ORDER_STATUSES, CONTACT_STATUSES, Product,
                            PreMadeBox, User, Order, ContactMessage)
from giftbox.notify import log

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

PAGE_SIZE = 20


@admin_bp.before_request
def require_admin():
    locale = current_app.config["DEFAULT_LOCALE"]
    if not current_user.is_authenticated:
        return redirect(f"/{locale}/login?next=/admin")
    if not current_user.is_admin:
        return redirect(f"/{locale}/")
    return None


def _paging():
    try:
        page, limit = parse_pagination(request.args, default_limit=PAGE_SIZE)
        return page, limit, clean_search(request.args.get("search"))
    except ValidationError as e:
        flash(e.message, "danger")
        return 1, PAGE_SIZE, None


def _pages(total, limit):
    return max(1, (total + limit - 1) // limit)


def _checkbox(name):
    return "on" if request.form.get(name) else "off"


@admin_bp.get("/")
def dashboard():
    with main_session() as db:
        counts = {
            "products": db.scalar(select(func.count(Product.id))),
            "boxes": db.scalar(select(func.count(PreMadeBox.id))),
            "users": db.scalar(select(func.count(User.id))),
            "orders": db.scalar(select(func.count(Order.id))),
            "new_messages": db.scalar(select(func.count(ContactMessage.id))
                                      .where(ContactMessage.status == "NEW")),
        }
        recent, _ = orders_page(db, 1, 5)
        return render_template("admin/dashboard.html", counts=counts, recent=recent)


# --------------------------- PRODUCTS ---------------------------
@admin_bp.get("/products")
def products():
    page, limit, search = _paging()
    with main_session() as db:
        rows, total = catalog.list_products(db, page, limit, search=search, active_only=False)
        return render_template("admin/products.html", products=rows, page=page,
                               pages=_pages(total, limit), search=search or "")


@admin_bp.route("/products/new", methods=["GET", "POST"])
@admin_bp.route("/products/<int:pid>/edit", methods=["GET", "POST"])
def product_form(pid=None):
    with main_session() as db:
        p = db.get(Product, pid) if pid else Product(is_active=True, stock=0, images=[])
        if p is None:
            abort(404)
        if request.method == "POST":
            data = request.form.to_dict()
            data["is_active"] = _checkbox("is_active")
            try:
                catalog.save_product(db, p, catalog.parse_product(data))
            except ValidationError as e:
                flash(e.message, "danger")
                return render_template("admin/product_form.html", p=p, form=request.form,
                                       categories=PRODUCT_CATEGORIES), 400
            log.info(f"Product #{p.id} saved by admin {current_user_id()}")
            flash("Product saved.", "success")
            return redirect(url_for("admin.products"))
        return render_template("admin/product_form.html", p=p, form=None,
                               categories=PRODUCT_CATEGORIES)


@admin_bp.post("/products/<int:pid>/delete")
def product_delete(pid):
    with main_session() as db:
        try:
            catalog.delete_product(db, pid)
        except ValidationError as e:
            flash(e.message, "danger")
            return redirect(url_for("admin.products"))
    log.info(f"Product #{pid} deleted")
    flash("Product deleted.", "success")
    return redirect(url_for("admin.products"))


# --------------------------- BOXES ---------------------------
@admin_bp.get("/boxes")
def boxes():
    page, limit, search = _paging()
    with main_session() as db:
        rows, total = catalog.list_boxes(db, page, limit, search=search, active_only=False)
        return render_template("admin/boxes.html", boxes=rows, page=page,
                               pages=_pages(total, limit), search=search or "")


def _box_lines():
    lines = []
    for pid, qty in zip(request.form.getlist("item_product_id"),
                        request.form.getlist("item_quantity")):
        if pid.strip():
            lines.append({"product_id": pid, "quantity": qty or 1})
    return lines


@admin_bp.route("/boxes/new", methods=["GET", "POST"])
@admin_bp.route("/boxes/<int:box_id>/edit", methods=["GET", "POST"])
def box_form(box_id=None):
    with main_session() as db:
        box = catalog.get_box(db, box_id) if box_id else PreMadeBox(is_active=True, images=[])
        if box is None:
            abort(404)
        all_products, _ = catalog.list_products(db, 1, 100, active_only=False)
        if request.method == "POST":
            data = request.form.to_dict()
            data["is_active"] = _checkbox("is_active")
            data["items"] = _box_lines()
            try:
                fields, items = catalog.parse_box(data)
                catalog.save_box(db, box, fields, items)
            except ValidationError as e:
                db.rollback()
                flash(e.message, "danger")
                return render_template("admin/box_form.html", box=box, form=request.form,
                                       products=all_products), 400
            log.info(f"Pre-made box #{box.id} saved by admin {current_user_id()}")
            flash("Box saved.", "success")
            return redirect(url_for("admin.boxes"))
        return render_template("admin/box_form.html", box=box, form=None, products=all_products)


@admin_bp.post("/boxes/<int:box_id>/deactivate")
def box_deactivate(box_id):
    with main_session() as db:
        box = db.get(PreMadeBox, box_id)
        if not box:
            abort(404)
        box.is_active = False
        db.commit()
    log.info(f"Pre-made box #{box_id} deactivated")
    flash("Box deactivated.", "success")
    return redirect(url_for("admin.boxes"))


# --------------------------- CATEGORIES ---------------------------
@admin_bp.get("/categories")
def categories():
    with main_session() as db:
        return render_template("admin/categories.html", usage=catalog.category_usage(db))


@admin_bp.post("/categories/<category>/delete")
def category_delete(category):
    with main_session() as db:
        try:
            result = catalog.check_category_removal(db, category)
            flash(result["message"], "success")
        except ValidationError as e:
            flash(e.message, "danger")
    return redirect(url_for("admin.categories"))


# --------------------------- CONTACT MESSAGES ---------------------------
@admin_bp.get("/messages")
def messages():
    page, limit, _ = _paging()
    status = request.args.get("status") or None
    with main_session() as db:
        rows, total = list_messages(db, page, limit, status=status)
        return render_template("admin/messages.html", messages=rows, page=page,
                               pages=_pages(total, limit), status=status,
                               statuses=CONTACT_STATUSES)


@admin_bp.route("/messages/<int:mid>", methods=["GET", "POST"])
def message(mid):
    with main_session() as db:
        m = db.get(ContactMessage, mid)
        if not m:
            abort(404)
        if request.method == "POST":
            try:
                update_message(db, m, {"status": request.form.get("status") or None,
                                       "admin_note": request.form.get("admin_note", "")},
                               current_user_id())
                flash("Message updated.", "success")
            except ValidationError as e:
                flash(e.message, "danger")
            return redirect(url_for("admin.message", mid=mid))
        return render_template("admin/message.html", m=m, statuses=CONTACT_STATUSES)


# --------------------------- ORDERS ---------------------------
@admin_bp.get("/orders")
def orders():
    page, limit, _ = _paging()
    status = request.args.get("status") or None
    with main_session() as db:
        rows, total = orders_page(db, page, limit, status=status)
        return render_template("admin/orders.html", orders=rows, page=page,
                               pages=_pages(total, limit), status=status,
                               statuses=ORDER_STATUSES)


@admin_bp.route("/orders/<int:order_id>", methods=["GET", "POST"])
def order(order_id):
    with main_session() as db:
        o = load_order(db, order_id)
        if not o:
            abort(404)
        if request.method == "POST":
            try:
                set_order_status(db, o, request.form.get("status"))
                flash("Order status updated.", "success")
            except ValidationError as e:
                flash(e.message, "danger")
            return redirect(url_for("admin.order", order_id=order_id))
        return render_template("admin/order.html", o=o, statuses=ORDER_STATUSES)


# --------------------------- USERS ---------------------------
@admin_bp.get("/users")
def users():
    search = request.args.get("search") or None
    sort_by = request.args.get("sort_by", "created_at")
    sort_order = request.args.get("sort_order", "desc")
    with main_session() as db:
        try:
            rows = list_users(db, sort_by, sort_order, clean_search(search))
        except ValidationError as e:
            flash(e.message, "danger")
            rows = list_users(db)
        return render_template("admin/users.html", users=rows, search=search or "",
                               sort_by=sort_by, sort_order=sort_order, sorts=USER_SORTS)
