"""Demo catalog. Rows are upserted by name so the seed can be re-run."""
from sqlalchemy import select

from giftbox.models import Product, PreMadeBox, PreMadeBoxItem, BoxType


def _img(seed, size=600):
    return f"https://picsum.photos/seed/{seed}/{size}/{size}"


PRODUCTS = [
    dict(name="Lego Classic Creative Set", description="Colorful bricks for endless building fun",
         price_cents=4599, category="TOYS", stock=50, image=_img("lego")),
    dict(name="Remote Control Car", description="Fast RC car with rechargeable battery",
         price_cents=2999, category="TOYS", stock=30, image=_img("rccar")),
    dict(name="Jigsaw Puzzle 1000 Pieces", description="Landscape puzzle for the whole family",
         price_cents=1999, category="TOYS", stock=25, image=_img("puzzle")),
    dict(name="Leather Wallet", description="Genuine leather bifold wallet",
         price_cents=3499, category="ACCESSORIES", stock=40, image=_img("wallet")),
    dict(name="Silk Scarf", description="Soft silk scarf with a floral print",
         price_cents=2499, category="ACCESSORIES", stock=35, image=_img("scarf")),
    dict(name="Designer Sunglasses", description="UV400 sunglasses in a hard case",
         price_cents=4999, category="ACCESSORIES", stock=20, image=_img("sunglasses")),
    dict(name="Luxury Face Cream Set", description="Day and night cream duo",
         price_cents=3999, category="COSMETICS", stock=45, image=_img("facecream")),
    dict(name="Lipstick Set - 5 Colors", description="Long-lasting matte shades",
         price_cents=2799, category="COSMETICS", stock=30, image=_img("lipstick")),
    dict(name="Perfume - Floral Essence", description="Eau de parfum, 50 ml",
         price_cents=5499, category="COSMETICS", stock=25, image=_img("perfume")),
    dict(name="Premium Chocolate Box", description="Assorted Belgian chocolates",
         price_cents=1999, category="SWEETS", stock=60, image=_img("chocolate")),
    dict(name="Gourmet Cookie Assortment", description="Butter cookies in a tin",
         price_cents=1499, category="SWEETS", stock=50, image=_img("cookies")),
    dict(name="Artisan Candy Collection", description="Handmade hard candies",
         price_cents=1299, category="SWEETS", stock=40, image=_img("candy")),
    dict(name="Bath & Body Gift Set", description="Shower gel, lotion and bath salts",
         price_cents=2999, category="HYGIENE", stock=35, image=_img("bathbody")),
    dict(name="Premium Shampoo & Conditioner", description="Sulfate-free hair care pair",
         price_cents=2499, category="HYGIENE", stock=30, image=_img("shampoo")),
    dict(name="Skincare Essentials Kit", description="Cleanser, toner and serum",
         price_cents=4499, category="HYGIENE", stock=28, image=_img("skincare")),
    dict(name="Aromatherapy Candle Set", description="Three soy candles with essential oils",
         price_cents=2299, category="OTHER", stock=40, image=_img("candles")),
    dict(name="Journal & Pen Set", description="Hardcover journal with a metal pen",
         price_cents=1899, category="OTHER", stock=25, image=_img("journal")),
]

BOXES = [
    dict(name="Kids Fun Box", price_cents=4999, image=_img("kidsbox"),
         description="Perfect gift box for kids! Includes toys, sweets, and fun accessories.",
         items=[("Lego Classic Creative Set", 1), ("Premium Chocolate Box", 1),
                ("Gourmet Cookie Assortment", 1)]),
    dict(name="Beauty & Wellness Box", price_cents=7999, image=_img("beautybox"),
         description="Luxury beauty and self-care products for the perfect pampering experience.",
         items=[("Luxury Face Cream Set", 1), ("Lipstick Set - 5 Colors", 1),
                ("Perfume - Floral Essence", 1), ("Bath & Body Gift Set", 1)]),
    dict(name="Sweet Treats Box", price_cents=3499, image=_img("sweetbox"),
         description="A delightful collection of premium sweets and chocolates for any sweet tooth!",
         items=[("Premium Chocolate Box", 2), ("Gourmet Cookie Assortment", 1),
                ("Artisan Candy Collection", 1)]),
    dict(name="Luxury Gift Box", price_cents=12999, image=_img("luxurybox"),
         description="Premium collection of high-end products. Perfect for special occasions.",
         items=[("Leather Wallet", 1), ("Silk Scarf", 1), ("Designer Sunglasses", 1),
                ("Perfume - Floral Essence", 1), ("Journal & Pen Set", 1)]),
    dict(name="Self-Care Box", price_cents=6499, image=_img("selfcarebox"),
         description="Everything you need for a relaxing self-care day. Treat yourself!",
         items=[("Bath & Body Gift Set", 1), ("Skincare Essentials Kit", 1),
                ("Aromatherapy Candle Set", 1), ("Premium Chocolate Box", 1)]),
]

BOX_TYPES = [
    dict(name="Small Gift Box", price_cents=599, size="Small (20x15x10 cm)", capacity=3,
         description="Perfect for small gifts and single items. Compact and elegant design."),
    dict(name="Medium Gift Box", price_cents=999, size="Medium (30x20x15 cm)", capacity=6,
         description="Ideal size for multiple items. Great for curated gift collections."),
    dict(name="Large Gift Box", price_cents=1499, size="Large (40x30x20 cm)", capacity=10,
         description="Spacious box for larger gifts or multiple items. Premium quality construction."),
    dict(name="Extra Large Gift Box", price_cents=1999, size="Extra Large (50x35x25 cm)",
         capacity=15,
         description="Maximum capacity for grand gifts. Perfect for special occasions and luxury items."),
]


def _upsert(db, model, d):
    existing = db.execute(select(model).where(model.name == d["name"])).scalar_one_or_none()
    if existing:
        for k, v in d.items():
            setattr(existing, k, v)
        return existing
    obj = model(**d)
    db.add(obj)
    return obj


def seed_catalog(db):
    """Returns ``(products, boxes, box_types)`` counts."""
    by_name = {}
    for d in PRODUCTS:
        by_name[d["name"]] = _upsert(db, Product, dict(d, images=[d["image"]]))
    db.flush()

    for d in BOXES:
        fields = {k: v for k, v in d.items() if k != "items"}
        box = _upsert(db, PreMadeBox, dict(fields, images=[d["image"]]))
        box.items.clear()
        for name, qty in d["items"]:
            box.items.append(PreMadeBoxItem(product_id=by_name[name].id, quantity=qty))

    for d in BOX_TYPES:
        _upsert(db, BoxType, dict(d, images=[]))
    db.commit()
    return len(PRODUCTS), len(BOXES), len(BOX_TYPES)
