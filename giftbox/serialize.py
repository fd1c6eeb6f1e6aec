"""JSON shapes returned by the API."""


def _iso(dt):
    return dt.isoformat() if dt else None


def product_dict(p):
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "price_cents": p.price_cents,
        "category": p.category,
        "stock": p.stock,
        "image": p.image,
        "images": p.images or [],
        "is_active": p.is_active,
        "created_at": _iso(p.created_at),
    }


def product_brief(p):
    return {"id": p.id, "name": p.name, "image": p.image,
            "images": p.images or [], "price_cents": p.price_cents}


def box_dict(b):
    return {
        "id": b.id,
        "name": b.name,
        "description": b.description,
        "price_cents": b.price_cents,
        "image": b.image,
        "images": b.images or [],
        "is_active": b.is_active,
        "created_at": _iso(b.created_at),
        "items": [
            {"id": it.id, "quantity": it.quantity, "product": product_brief(it.product)}
            for it in b.items
        ],
    }


def box_type_dict(t):
    return {
        "id": t.id,
        "name": t.name,
        "description": t.description,
        "price_cents": t.price_cents,
        "size": t.size,
        "capacity": t.capacity,
        "image": t.image,
        "images": t.images or [],
    }


def delivery_dict(d):
    if d is None:
        return None
    return {
        "id": d.id,
        "status": d.status,
        "full_name": d.full_name,
        "email": d.email,
        "phone": d.phone,
        "address": d.address,
        "place_type": d.place_type,
        "country": d.country,
    }


def payment_dict(p):
    if p is None:
        return None
    return {
        "id": p.id,
        "amount_cents": p.amount_cents,
        "currency": p.currency,
        "status": p.status,
        "provider": p.provider,
        "provider_ref": p.provider_ref,
    }


def order_dict(o):
    data = {
        "id": o.id,
        "user_id": o.user_id,
        "order_type": o.order_type,
        "status": o.status,
        "subtotal_cents": o.subtotal_cents,
        "tax_cents": o.tax_cents,
        "shipping_cents": o.shipping_cents,
        "total_cents": o.total_cents,
        "postcard_text": o.postcard_text,
        "created_at": _iso(o.created_at),
        "updated_at": _iso(o.updated_at),
        "items": [
            {
                "id": it.id,
                "quantity": it.quantity,
                "unit_price_cents": it.unit_price_cents,
                "product": product_brief(it.product) if it.product else None,
            }
            for it in o.items
        ],
        "payment": payment_dict(o.payment),
        "delivery": delivery_dict(o.delivery),
        "premade_box": None,
        "box_type": box_type_dict(o.box_type) if o.box_type else None,
    }
    if o.premade_box:
        b = o.premade_box
        data["premade_box"] = {"id": b.id, "name": b.name, "price_cents": b.price_cents,
                               "image": b.image, "images": b.images or []}
    if o.order_type == "MYSTERY":
        data["recipient"] = {
            "gender": o.recipient_gender,
            "age": o.recipient_age,
            "occasion": o.recipient_occasion,
            "interests": o.recipient_interests,
            "comments": o.recipient_comments,
        }
    return data


def user_brief(u):
    if u is None:
        return None
    return {"id": u.id, "name": u.name, "email": u.email}


def contact_dict(m):
    return {
        "id": m.id,
        "name": m.name,
        "email": m.email,
        "subject": m.subject,
        "category": m.category,
        "order_ref": m.order_ref,
        "message": m.message,
        "status": m.status,
        "admin_note": m.admin_note,
        "user": user_brief(m.user),
        "handled_by": user_brief(m.handled_by),
        "created_at": _iso(m.created_at),
        "updated_at": _iso(m.updated_at),
    }
