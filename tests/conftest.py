from types import SimpleNamespace

import pytest

from grocery_hub import create_app, db
from grocery_hub.constants import UserRole
from grocery_hub.models import GlobalProduct, Shop, ShopProduct, User

PASSWORD = "secret123"

# Colombo Fort
SHOP_LAT = 6.9344
SHOP_LNG = 79.8428


@pytest.fixture
def app(tmp_path):
    app = create_app("testing", {"UPLOAD_FOLDER": str(tmp_path / "uploads")})
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    """An app context for calling services directly."""
    with app.test_request_context():
        yield app


def make_user(email, role, full_name=None, is_active=True):
    user = User(email=email, full_name=full_name or email.split("@")[0].title(), role=role, is_active=is_active)
    user.set_password(PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def seed(app):
    """Users of every role, an approved shop in Colombo and two listed products."""
    with app.app_context():
        admin = make_user("admin@freshmart.lk", UserRole.ADMIN, "Ada Admin")
        owner = make_user("owner@freshmart.lk", UserRole.SHOP_OWNER, "Sam Owner")
        consumer = make_user("nimal@freshmart.lk", UserRole.CONSUMER, "Nimal Perera")
        partner = make_user("rider@freshmart.lk", UserRole.DELIVERY_PARTNER, "Ravi Rider")

        shop = Shop(
            owner_id=owner.id,
            name="Fort Fresh Mart",
            description="Vegetables and dairy",
            address="12 York Street, Colombo 01",
            latitude=SHOP_LAT,
            longitude=SHOP_LNG,
            delivery_range_km=5,
            is_active=True,
            is_approved=True,
        )
        rice = GlobalProduct(name="Samba Rice", category="Pantry Staples", base_unit="kg", is_approved=True, created_by=admin.id)
        milk = GlobalProduct(name="Fresh Milk", category="Dairy & Eggs", base_unit="L", is_approved=True, created_by=admin.id)
        db.session.add_all([shop, rice, milk])
        db.session.commit()

        rice_listing = ShopProduct(shop_id=shop.id, global_product_id=rice.id, price=250, stock_quantity=10)
        milk_listing = ShopProduct(shop_id=shop.id, global_product_id=milk.id, price=420.50, stock_quantity=3)
        db.session.add_all([rice_listing, milk_listing])
        db.session.commit()

        return SimpleNamespace(
            admin_id=admin.id,
            owner_id=owner.id,
            consumer_id=consumer.id,
            partner_id=partner.id,
            shop_id=shop.id,
            rice_id=rice.id,
            milk_id=milk.id,
            rice_listing_id=rice_listing.id,
            milk_listing_id=milk_listing.id,
        )


def login(client, email, password=PASSWORD):
    return client.post("/auth/login", data={"email": email, "password": password})


@pytest.fixture
def as_admin(client, seed):
    login(client, "admin@freshmart.lk")
    return client


@pytest.fixture
def as_owner(client, seed):
    login(client, "owner@freshmart.lk")
    return client


@pytest.fixture
def as_consumer(client, seed):
    login(client, "nimal@freshmart.lk")
    return client


@pytest.fixture
def as_partner(client, seed):
    login(client, "rider@freshmart.lk")
    return client
