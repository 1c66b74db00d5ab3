import uuid
from datetime import datetime, timezone

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from . import db
from .constants import OrderStatus, OrderType, ProductRequestStatus, ROLE_HOME, UserRole


def generate_uuid():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(150), nullable=False)
    phone = db.Column(db.String(30))
    role = db.Column(db.String(30), nullable=False, default=UserRole.CONSUMER)
    # Flask-Login reads this through UserMixin.is_active
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    shop = db.relationship("Shop", back_populates="owner", uselist=False)
    addresses = db.relationship(
        "ConsumerAddress", back_populates="consumer", cascade="all, delete-orphan",
        order_by="ConsumerAddress.created_at",
    )

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def home_endpoint(self):
        return ROLE_HOME.get(self.role, "main.index")

    def has_role(self, *roles):
        return self.role in roles

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"


class Shop(db.Model):
    __tablename__ = "shops"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    owner_id = db.Column(db.String(36), db.ForeignKey("users.id"), unique=True, nullable=False)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text)
    address = db.Column(db.String(255), nullable=False)
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    delivery_range_km = db.Column(db.Float, nullable=False, default=5)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_approved = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    owner = db.relationship("User", back_populates="shop")
    products = db.relationship("ShopProduct", back_populates="shop", cascade="all, delete-orphan")
    product_requests = db.relationship("ProductRequest", back_populates="shop", cascade="all, delete-orphan")
    orders = db.relationship("Order", back_populates="shop")
    reviews = db.relationship("ShopReview", back_populates="shop", cascade="all, delete-orphan")

    @property
    def is_visible(self):
        return self.is_active and self.is_approved

    @property
    def review_count(self):
        return len(self.reviews)

    @property
    def rating(self):
        if not self.reviews:
            return 0
        average = sum(review.rating for review in self.reviews) / len(self.reviews)
        return round(average, 1)

    def to_dict(self):
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "description": self.description,
            "address": self.address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "delivery_range_km": self.delivery_range_km,
            "is_active": self.is_active,
            "is_approved": self.is_approved,
            "rating": self.rating,
            "review_count": self.review_count,
        }

    def __repr__(self):
        return f"<Shop {self.name}>"


class GlobalProduct(db.Model):
    __tablename__ = "global_products"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(100), nullable=False)
    base_unit = db.Column(db.String(30), nullable=False)
    image_url = db.Column(db.String(500))
    is_approved = db.Column(db.Boolean, nullable=False, default=False)
    created_by = db.Column(db.String(36), db.ForeignKey("users.id"))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    creator = db.relationship("User")
    shop_products = db.relationship("ShopProduct", back_populates="global_product")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "base_unit": self.base_unit,
            "image_url": self.image_url,
            "is_approved": self.is_approved,
        }


class ShopProduct(db.Model):
    __tablename__ = "shop_products"
    __table_args__ = (
        db.UniqueConstraint("shop_id", "global_product_id", name="uq_shop_products_shop_global_product"),
        db.CheckConstraint("stock_quantity >= 0", name="ck_shop_products_stock_non_negative"),
    )

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    shop_id = db.Column(db.String(36), db.ForeignKey("shops.id"), nullable=False)
    global_product_id = db.Column(db.String(36), db.ForeignKey("global_products.id"), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    is_available = db.Column(db.Boolean, nullable=False, default=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    shop = db.relationship("Shop", back_populates="products")
    global_product = db.relationship("GlobalProduct", back_populates="shop_products")

    @property
    def name(self):
        return self.global_product.name

    def to_dict(self):
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "global_product_id": self.global_product_id,
            "name": self.global_product.name,
            "category": self.global_product.category,
            "base_unit": self.global_product.base_unit,
            "price": float(self.price),
            "stock_quantity": self.stock_quantity,
            "is_available": self.is_available,
        }


class ProductRequest(db.Model):
    __tablename__ = "product_requests"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    shop_id = db.Column(db.String(36), db.ForeignKey("shops.id"), nullable=False)
    product_name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(100))
    base_unit = db.Column(db.String(30))
    status = db.Column(db.String(20), nullable=False, default=ProductRequestStatus.PENDING)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    shop = db.relationship("Shop", back_populates="product_requests")


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    consumer_id = db.Column(db.String(36), db.ForeignKey("users.id"))
    shop_id = db.Column(db.String(36), db.ForeignKey("shops.id"), nullable=False)
    order_type = db.Column(db.String(20), nullable=False, default=OrderType.PICKUP)
    status = db.Column(db.String(30), nullable=False, default=OrderStatus.PENDING, index=True)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    payment_method = db.Column(db.String(20))
    invoice_number = db.Column(db.String(40), unique=True)
    delivery_address = db.Column(db.String(255))
    delivery_latitude = db.Column(db.Float)
    delivery_longitude = db.Column(db.Float)
    guest_name = db.Column(db.String(150))
    guest_email = db.Column(db.String(255))
    guest_phone = db.Column(db.String(30))
    assigned_delivery_partner_id = db.Column(db.String(36), db.ForeignKey("users.id"))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    completed_at = db.Column(db.DateTime(timezone=True))

    consumer = db.relationship("User", foreign_keys=[consumer_id])
    delivery_partner = db.relationship("User", foreign_keys=[assigned_delivery_partner_id])
    shop = db.relationship("Shop", back_populates="orders")
    items = db.relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    review = db.relationship("ShopReview", back_populates="order", uselist=False)

    @property
    def is_guest(self):
        return self.consumer_id is None

    @property
    def customer_name(self):
        if self.consumer is not None:
            return self.consumer.full_name
        if self.order_type == OrderType.WALK_IN:
            return "Walk-in customer"
        return self.guest_name

    def to_dict(self):
        return {
            "id": self.id,
            "shop_id": self.shop_id,
            "consumer_id": self.consumer_id,
            "order_type": self.order_type,
            "status": self.status,
            "total_amount": float(self.total_amount),
            "payment_method": self.payment_method,
            "invoice_number": self.invoice_number,
            "delivery_address": self.delivery_address,
            "assigned_delivery_partner_id": self.assigned_delivery_partner_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "items": [item.to_dict() for item in self.items],
        }

    def __repr__(self):
        return f"<Order {self.id[:8]} {self.status}>"


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id"), nullable=False)
    shop_product_id = db.Column(db.String(36), db.ForeignKey("shop_products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    subtotal = db.Column(db.Numeric(10, 2), nullable=False)

    order = db.relationship("Order", back_populates="items")
    shop_product = db.relationship("ShopProduct")

    def to_dict(self):
        return {
            "shop_product_id": self.shop_product_id,
            "name": self.shop_product.global_product.name if self.shop_product else None,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
            "subtotal": float(self.subtotal),
        }


class ShopReview(db.Model):
    __tablename__ = "shop_reviews"
    __table_args__ = (
        db.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_shop_reviews_rating_range"),
    )

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    shop_id = db.Column(db.String(36), db.ForeignKey("shops.id"), nullable=False)
    consumer_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id"), unique=True, nullable=False)
    rating = db.Column(db.Integer, nullable=False)
    review_text = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    shop = db.relationship("Shop", back_populates="reviews")
    consumer = db.relationship("User")
    order = db.relationship("Order", back_populates="review")


class ConsumerAddress(db.Model):
    __tablename__ = "consumer_addresses"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    consumer_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    label = db.Column(db.String(50), nullable=False)
    address = db.Column(db.String(255), nullable=False)
    latitude = db.Column(db.Float, nullable=False, default=0)
    longitude = db.Column(db.Float, nullable=False, default=0)
    is_default = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    consumer = db.relationship("User", back_populates="addresses")
