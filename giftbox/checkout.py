"""Order placement for the three order types.

Prices always come from the database; whatever price the client sends is
ignored. An order, its items, its delivery and its payment are written in one
transaction together with any stock decrement.
"""
import time

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from giftbox.helpers import ValidationError, MAX_ID, is_valid_email, to_cents, to_count
from giftbox.models import (
    ORDER_TYPES, Product, PreMadeBox, PreMadeBoxItem, BoxType,
    Order, OrderItem, Delivery, Payment,
)
from giftbox.notify import log, notify

MYSTERY_ADDRESS_PLACEHOLDER = "To be provided"
MAX_POSTCARD_LEN = 500
WHATSAPP_NOTE = "Awaiting WhatsApp contact for payment"


def compute_totals(order_type, subtotal_cents, tax_percent, shipping_cents):
    """Return ``(tax, shipping, total)`` in cents.

    Mystery boxes carry neither tax nor shipping: staff price the finished box.
    Tax is rounded half-up to the cent.
    """
    if order_type == "MYSTERY":
        return 0, 0, subtotal_cents
    tax = (subtotal_cents * tax_percent + 50) // 100
    return tax, shipping_cents, subtotal_cents + tax + shipping_cents


def _str(raw, field):
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raise ValidationError(f"{field} must be a string")
    return raw.strip()


def parse_delivery(raw, default_country, strict=True):
    """Validate delivery details.

    ``strict`` is the checkout form: every contact field is required. The
    relaxed form only needs an address.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValidationError("Invalid delivery information")
    d = {
        "full_name": _str(raw.get("full_name"), "full_name"),
        "email": _str(raw.get("email"), "email"),
        "phone": _str(raw.get("phone"), "phone"),
        "address": _str(raw.get("address"), "address"),
        "place_type": _str(raw.get("place_type"), "place_type"),
        "country": _str(raw.get("country"), "country") or default_country,
    }
    problems = []
    if strict:
        if not 2 <= len(d["full_name"]) <= 100:
            problems.append({"field": "delivery.full_name", "message": "Must be 2 to 100 characters"})
        if not is_valid_email(d["email"]):
            problems.append({"field": "delivery.email", "message": "Invalid email"})
        if len(d["phone"]) < 7:
            problems.append({"field": "delivery.phone", "message": "Must be at least 7 characters"})
        if not 5 <= len(d["address"]) <= 200:
            problems.append({"field": "delivery.address", "message": "Must be 5 to 200 characters"})
    elif not d["address"]:
        raise ValidationError("Delivery address is required")
    if len(d["place_type"]) > 50:
        problems.append({"field": "delivery.place_type", "message": "At most 50 characters"})
    if problems:
        raise ValidationError("Invalid request data", details=problems)
    for key in ("full_name", "email", "phone", "place_type"):
        d[key] = d[key] or None
    return d


def parse_items(raw):
    """Normalize ``[{product_id, quantity}]``, merging repeated products."""
    if not isinstance(raw, list) or not raw:
        raise ValidationError("Items are required for custom order")
    merged = {}
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValidationError("Invalid item")
        pid = to_count(entry.get("product_id"), "Invalid item", MAX_ID)
        qty = to_count(entry.get("quantity", 1), "Quantity must be a whole number")
        if qty < 1:
            raise ValidationError("Quantity must be positive")
        merged[pid] = merged.get(pid, 0) + qty
    return list(merged.items())


def parse_mystery(payload, min_budget):
    if payload.get("budget") in (None, ""):
        raise ValidationError(f"Budget must be at least {min_budget} AZN")
    budget = to_cents(payload["budget"])
    if budget < min_budget * 100:
        raise ValidationError(f"Budget must be at least {min_budget} AZN")

    age = payload.get("recipient_age")
    if age not in (None, ""):
        try:
            age = int(age)
        except (TypeError, ValueError, OverflowError):
            raise ValidationError("Recipient age must be a number")
        if not 1 <= age <= 120:
            raise ValidationError("Recipient age must be between 1 and 120")
    else:
        age = None

    interests = payload.get("interests")
    if isinstance(interests, (list, tuple)):
        interests = ", ".join(str(i).strip() for i in interests if str(i).strip())
    interests = _str(interests, "interests") or None

    return budget, {
        "recipient_gender": _str(payload.get("recipient_gender"), "recipient_gender")[:20] or None,
        "recipient_age": age,
        "recipient_occasion": _str(payload.get("occasion"), "occasion")[:100] or None,
        "recipient_interests": interests,
        "recipient_comments": _str(payload.get("comments"), "comments") or None,
    }


def _premade_lines(db, box_id):
    box = db.execute(
        select(PreMadeBox)
        .where(PreMadeBox.id == box_id)
        .options(selectinload(PreMadeBox.items).selectinload(PreMadeBoxItem.product))
    ).scalar_one_or_none()
    if not box or not box.is_active:
        raise ValidationError("Pre-made box not found or inactive", status=404)
    lines = [(it.product_id, it.quantity, it.product.price_cents) for it in box.items]
    return box.price_cents, lines


def _custom_lines(db, items):
    ids = [pid for pid, _ in items]
    products = {
        p.id: p for p in db.execute(
            select(Product).where(Product.id.in_(ids), Product.is_active.is_(True))
        ).scalars().all()
    }
    subtotal, lines = 0, []
    for pid, qty in items:
        p = products.get(pid)
        if not p:
            raise ValidationError(f"Product {pid} not found", status=404)
        if p.stock < qty:
            raise ValidationError(f"Insufficient stock for {p.name}")
        subtotal += p.price_cents * qty
        lines.append((p.id, qty, p.price_cents))
    return subtotal, lines


def _decrement_stock(db, product_id, qty):
    res = db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= qty)
        .values(stock=Product.stock - qty)
    )
    if res.rowcount != 1:
        name = db.scalar(select(Product.name).where(Product.id == product_id))
        raise ValidationError(f"Insufficient stock for {name}")


def place_order(db, payload, user_id, config, full_delivery=True):
    """Create an order from a checkout payload; returns the new order id.

    Raises ``ValidationError`` for anything the customer must fix; the
    transaction is rolled back in that case.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid request body")
    order_type = payload.get("order_type")
    if order_type not in ORDER_TYPES:
        raise ValidationError("Invalid order type")

    raw_delivery = payload.get("delivery") or {}
    if not isinstance(raw_delivery, dict):
        raise ValidationError("Invalid delivery information")
    if full_delivery:
        delivery = parse_delivery(raw_delivery, config["DEFAULT_COUNTRY"])
    elif order_type == "MYSTERY" and not raw_delivery.get("address"):
        raw = dict(raw_delivery, address=MYSTERY_ADDRESS_PLACEHOLDER)
        delivery = parse_delivery(raw, config["DEFAULT_COUNTRY"], strict=False)
    else:
        delivery = parse_delivery(raw_delivery, config["DEFAULT_COUNTRY"], strict=False)

    postcard = _str(payload.get("postcard_text"), "postcard_text") or None
    if postcard and len(postcard) > MAX_POSTCARD_LEN:
        raise ValidationError(f"Postcard text must be at most {MAX_POSTCARD_LEN} characters")

    with db.begin():
        premade_box_id, box_type_id, profile, lines = None, None, {}, []
        if order_type == "PREMADE":
            premade_box_id = to_count(payload.get("premade_box_id"), "Pre-made box ID is required",
                                      MAX_ID)
            subtotal, lines = _premade_lines(db, premade_box_id)
        elif order_type == "CUSTOM":
            subtotal, lines = _custom_lines(db, parse_items(payload.get("items")))
            if payload.get("box_type_id") not in (None, ""):
                box_type_id = to_count(payload["box_type_id"], "Invalid box type", MAX_ID)
                bt = db.get(BoxType, box_type_id)
                if not bt or not bt.is_active:
                    raise ValidationError("Box type not found", status=404)
        else:
            subtotal, profile = parse_mystery(payload, config["MYSTERY_MIN_BUDGET"])

        tax, shipping, total = compute_totals(order_type, subtotal,
                                              config["TAX_RATE_PERCENT"],
                                              config["SHIPPING_COST_CENTS"])
        order = Order(user_id=user_id, order_type=order_type, status="PENDING",
                      subtotal_cents=subtotal, tax_cents=tax, shipping_cents=shipping,
                      total_cents=total, premade_box_id=premade_box_id,
                      box_type_id=box_type_id, postcard_text=postcard, **profile)
        db.add(order)
        db.flush()

        for product_id, qty, price in lines:
            db.add(OrderItem(order_id=order.id, product_id=product_id,
                             quantity=qty, unit_price_cents=price))
            if order_type == "CUSTOM":
                _decrement_stock(db, product_id, qty)

        db.add(Delivery(order_id=order.id, status="PENDING", **delivery))
        db.add(Payment(
            order_id=order.id, amount_cents=total, currency=config["CURRENCY"],
            status="PENDING", provider="WHATSAPP",
            provider_ref=f"whatsapp_pending_{int(time.time() * 1000)}",
            details={"payment_method": "WHATSAPP", "note": WHATSAPP_NOTE,
                     "customer_phone": delivery["phone"]},
        ))
        order_id = order.id

    log.info(f"Order #{order_id} created ({order_type}, total {total} cents, user {user_id})")
    notify(f"New {order_type} order #{order_id}: {total/100:.2f} {config['CURRENCY']}, "
           f"contact {delivery['phone'] or delivery['email'] or 'n/a'} on WhatsApp")
    return order_id


def complete_delivery(db, order, raw, default_country, strict=False):
    """Fill in delivery details for an order placed without them (mystery flow)."""
    d = parse_delivery(raw, default_country, strict=strict)
    if order.delivery is None:
        order.delivery = Delivery(status="PENDING", **d)
    else:
        for key, value in d.items():
            setattr(order.delivery, key, value)
    if order.payment is not None:
        details = dict(order.payment.details or {})
        details["customer_phone"] = d["phone"]
        order.payment.details = details
    return order


def load_order(db, order_id):
    return db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(
            selectinload(Order.items).selectinload(OrderItem.product),
            selectinload(Order.delivery),
            selectinload(Order.payment),
            selectinload(Order.premade_box),
            selectinload(Order.box_type),
        )
    ).scalar_one_or_none()
