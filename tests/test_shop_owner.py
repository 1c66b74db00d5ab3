from grocery_hub import db
from grocery_hub.constants import UserRole
from grocery_hub.models import GlobalProduct, Order, ProductRequest, Shop, ShopProduct

from .conftest import login, make_user


def test_owner_without_shop_is_sent_to_create_shop(app, client):
    with app.app_context():
        make_user("newowner@freshmart.lk", UserRole.SHOP_OWNER)
    login(client, "newowner@freshmart.lk")

    response = client.get("/shop-owner/")
    assert response.headers["Location"].endswith("/shop-owner/create-shop")

    response = client.post("/shop-owner/create-shop", data={
        "name": "Dehiwala Greens",
        "description": "",
        "address": "22 Galle Road, Dehiwala",
        "latitude": "6.8511",
        "longitude": "79.8653",
        "delivery_range_km": "3",
    })
    assert response.status_code == 302

    with app.app_context():
        shop = Shop.query.filter_by(name="Dehiwala Greens").one()
        assert shop.is_approved is False
        assert shop.delivery_range_km == 3

    response = client.get("/shop-owner/")
    assert b"waiting for admin approval" in response.data
    assert client.get("/shop-owner/create-shop").status_code == 302


def test_dashboard_summary(as_owner):
    response = as_owner.get("/shop-owner/")
    assert response.status_code == 200
    assert b"Fort Fresh Mart" in response.data
    assert b"No orders yet" in response.data


def test_settings_update(app, as_owner, seed):
    response = as_owner.post("/shop-owner/settings", data={
        "name": "Fort Fresh Mart & Deli",
        "description": "Now with a deli",
        "address": "12 York Street, Colombo 01",
        "latitude": "6.9344",
        "longitude": "79.8428",
        "delivery_range_km": "7.5",
    })
    assert response.status_code == 302

    with app.app_context():
        shop = db.session.get(Shop, seed.shop_id)
        assert shop.name == "Fort Fresh Mart & Deli"
        assert shop.delivery_range_km == 7.5
        # Unchecked box closes the shop
        assert shop.is_active is False


def test_add_product_from_catalogue(app, as_owner, seed):
    with app.app_context():
        dhal = GlobalProduct(name="Red Dhal", category="Pantry Staples", base_unit="kg", is_approved=True)
        hidden = GlobalProduct(name="Unapproved Thing", category="Other", base_unit="piece", is_approved=False)
        db.session.add_all([dhal, hidden])
        db.session.commit()
        dhal_id = dhal.id

    page = as_owner.get("/shop-owner/products/add")
    assert b"Red Dhal" in page.data
    assert b"Unapproved Thing" not in page.data
    assert b"Samba Rice" not in page.data

    response = as_owner.post("/shop-owner/products/add", data={
        "global_product_id": dhal_id, "price": "310.00", "stock_quantity": "25",
    })
    assert response.status_code == 302

    with app.app_context():
        listing = ShopProduct.query.filter_by(shop_id=seed.shop_id, global_product_id=dhal_id).one()
        assert listing.stock_quantity == 25
        assert float(listing.price) == 310.0


def test_edit_listing(app, as_owner, seed):
    as_owner.post(f"/shop-owner/products/{seed.rice_listing_id}/edit", data={
        "price": "265.00", "stock_quantity": "0",
    })
    with app.app_context():
        listing = db.session.get(ShopProduct, seed.rice_listing_id)
        assert float(listing.price) == 265.0
        assert listing.stock_quantity == 0
        assert listing.is_available is False


def test_request_product(app, as_owner, seed):
    as_owner.post("/shop-owner/products/request", data={
        "product_name": "Kithul Jaggery",
        "description": "Traditional",
        "category": "Pantry Staples",
        "base_unit": "pack",
    })
    with app.app_context():
        product_request = ProductRequest.query.filter_by(product_name="Kithul Jaggery").one()
        assert product_request.status == "pending"
        assert product_request.shop_id == seed.shop_id

    assert b"Kithul Jaggery" in as_owner.get("/shop-owner/products").data


def test_pos_sale_and_receipt(app, as_owner, seed):
    page = as_owner.get("/shop-owner/pos")
    assert b"Samba Rice" in page.data

    response = as_owner.post("/shop-owner/pos", data={
        "product_id": [seed.rice_listing_id, seed.milk_listing_id],
        "quantity": ["2", "0"],
        "payment_method": "cash",
    })
    assert response.status_code == 302

    with app.app_context():
        order = Order.query.one()
        assert order.order_type == "walk_in"
        assert order.status == "completed"
        assert order.payment_method == "cash"
        assert len(order.items) == 1
        assert db.session.get(ShopProduct, seed.rice_listing_id).stock_quantity == 8
        invoice = order.invoice_number

    receipt = as_owner.get(response.headers["Location"])
    assert invoice.encode() in receipt.data


def test_pos_with_no_items_is_refused(app, as_owner, seed):
    response = as_owner.post("/shop-owner/pos", data={
        "product_id": [seed.rice_listing_id], "quantity": ["0"], "payment_method": "card",
    })
    assert response.status_code == 200
    assert b"Cart is empty" in response.data


def test_order_management(app, client, seed):
    login(client, "nimal@freshmart.lk")
    client.post(f"/consumer/shops/{seed.shop_id}/cart", data={"shop_product_id": seed.rice_listing_id, "quantity": "2"})
    client.post(f"/consumer/cart/{seed.shop_id}/checkout", data={
        "order_type": "delivery", "delivery_address": "5 Galle Road, Colombo 03",
    })
    client.get("/auth/logout")

    login(client, "owner@freshmart.lk")
    with app.app_context():
        order_id = Order.query.one().id

    page = client.get("/shop-owner/orders?status=pending")
    assert b"Mark Confirmed" in page.data

    response = client.post(f"/shop-owner/orders/{order_id}/status", data={"status": "ready"}, follow_redirects=True)
    assert b"next status is confirmed" in response.data

    for status in ("confirmed", "preparing", "ready"):
        client.post(f"/shop-owner/orders/{order_id}/status", data={"status": status})

    page = client.get("/shop-owner/orders")
    assert b"Ravi Rider" in page.data

    client.post(f"/shop-owner/orders/{order_id}/assign", data={"delivery_partner_id": seed.partner_id})
    with app.app_context():
        order = db.session.get(Order, order_id)
        assert order.status == "out_for_delivery"
        assert order.assigned_delivery_partner_id == seed.partner_id


def test_reports_page(as_owner):
    response = as_owner.get("/shop-owner/reports")
    assert response.status_code == 200
    assert b"No sales yet" in response.data
