from datetime import datetime
from sqlalchemy import (Column, Integer, String, Text, DateTime, ForeignKey,
                        Boolean, JSON, CheckConstraint)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

ROLES = ("USER", "ADMIN")
PRODUCT_CATEGORIES = ("TOYS", "ACCESSORIES", "COSMETICS", "SWEETS", "HYGIENE", "OTHER")
ORDER_TYPES = ("PREMADE", "CUSTOM", "MYSTERY")
ORDER_STATUSES = ("PENDING", "CONFIRMED", "PROCESSING", "SHIPPED", "DELIVERED", "CANCELLED")
PAYMENT_STATUSES = ("PENDING", "PAID", "FAILED", "CANCELLED", "REFUNDED")
PAYMENT_PROVIDERS = ("WHATSAPP",)
DELIVERY_STATUSES = ("PENDING", "SHIPPED", "DELIVERED", "FAILED")
CONTACT_CATEGORIES = ("WEBSITE", "ORDER", "BOX_REQUEST", "PAYMENT", "DELIVERY", "OTHER")
CONTACT_STATUSES = ("NEW", "IN_PROGRESS", "RESOLVED", "CLOSED")


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    email = Column(String(200), unique=True, nullable=False)
    name = Column(String(200))
    password_hash = Column(String(200))  # null for Google-only accounts
    image = Column(String(500))
    role = Column(String(20), nullable=False, default="USER")  # USER|ADMIN
    created_at = Column(DateTime, default=datetime.utcnow)
    orders = relationship("Order", back_populates="user")

    @property
    def is_admin(self):
        return self.role == "ADMIN"


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_products_stock"),)
    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    price_cents = Column(Integer, nullable=False, default=0)
    category = Column(String(30), nullable=False, default="OTHER")
    stock = Column(Integer, nullable=False, default=0)
    image = Column(String(500))
    images = Column(JSON, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class PreMadeBox(Base):
    __tablename__ = "premade_boxes"
    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    price_cents = Column(Integer, nullable=False, default=0)
    image = Column(String(500))
    images = Column(JSON, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    items = relationship("PreMadeBoxItem", back_populates="box", cascade="all, delete-orphan")


class PreMadeBoxItem(Base):
    __tablename__ = "premade_box_items"
    id = Column(Integer, primary_key=True)
    box_id = Column(Integer, ForeignKey("premade_boxes.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    box = relationship("PreMadeBox", back_populates="items")
    product = relationship("Product")


class BoxType(Base):
    __tablename__ = "box_types"
    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    price_cents = Column(Integer, nullable=False, default=0)
    size = Column(String(100))
    capacity = Column(Integer, nullable=False, default=1)
    image = Column(String(500))
    images = Column(JSON, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Order(Base):
    __tablename__ = "orders"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"))  # null for guest orders
    order_type = Column(String(20), nullable=False)  # PREMADE|CUSTOM|MYSTERY
    status = Column(String(20), nullable=False, default="PENDING")
    subtotal_cents = Column(Integer, nullable=False, default=0)
    tax_cents = Column(Integer, nullable=False, default=0)
    shipping_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False, default=0)
    premade_box_id = Column(Integer, ForeignKey("premade_boxes.id"))
    box_type_id = Column(Integer, ForeignKey("box_types.id"))
    postcard_text = Column(Text)
    recipient_gender = Column(String(20))
    recipient_age = Column(Integer)
    recipient_occasion = Column(String(100))
    recipient_interests = Column(Text)
    recipient_comments = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    delivery = relationship("Delivery", back_populates="order", uselist=False,
                            cascade="all, delete-orphan")
    payment = relationship("Payment", back_populates="order", uselist=False,
                           cascade="all, delete-orphan")
    premade_box = relationship("PreMadeBox")
    box_type = relationship("BoxType")


class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"))
    quantity = Column(Integer, nullable=False, default=1)
    unit_price_cents = Column(Integer, nullable=False, default=0)
    order = relationship("Order", back_populates="items")
    product = relationship("Product")


class Delivery(Base):
    __tablename__ = "deliveries"
    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), unique=True, nullable=False)
    status = Column(String(20), nullable=False, default="PENDING")
    full_name = Column(String(100))
    email = Column(String(200))
    phone = Column(String(50))
    address = Column(String(200), nullable=False)
    place_type = Column(String(50))
    country = Column(String(100), nullable=False, default="Azerbaijan")
    order = relationship("Order", back_populates="delivery")


class Payment(Base):
    __tablename__ = "payments"
    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), unique=True, nullable=False)
    amount_cents = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="AZN")
    status = Column(String(20), nullable=False, default="PENDING")
    provider = Column(String(20), nullable=False, default="WHATSAPP")
    provider_ref = Column(String(128))
    details = Column(JSON)
    created_at = Column(DateTime, default=datetime.utcnow)
    order = relationship("Order", back_populates="payment")


class ContactMessage(Base):
    __tablename__ = "contact_messages"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"))
    name = Column(String(100), nullable=False)
    email = Column(String(200), nullable=False)
    subject = Column(String(200))
    category = Column(String(20), nullable=False, default="OTHER")
    order_ref = Column(String(64))  # free text, customers may mistype it
    message = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="NEW")
    admin_note = Column(Text)
    handled_by_id = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    user = relationship("User", foreign_keys=[user_id])
    handled_by = relationship("User", foreign_keys=[handled_by_id])
