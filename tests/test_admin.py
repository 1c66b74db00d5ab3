import io

from grocery_hub import db
from grocery_hub.models import GlobalProduct, ProductRequest, Shop, User


def test_dashboard_lists_pending_work(app, as_admin, seed):
    with app.app_context():
        db.session.add(Shop(
            owner_id=seed.consumer_id, name="Pending Pantry", address="Kandy Road",
            latitude=7.0, longitude=80.0, is_approved=False,
        ))
        db.session.add(ProductRequest(shop_id=seed.shop_id, product_name="Kithul Treacle"))
        db.session.commit()

    response = as_admin.get("/admin/")
    assert response.status_code == 200
    assert b"Pending Pantry" in response.data
    assert b"Kithul Treacle" in response.data


def test_shop_actions(app, as_admin, seed):
    as_admin.post(f"/admin/shops/{seed.shop_id}/deactivate")
    with app.app_context():
        assert db.session.get(Shop, seed.shop_id).is_active is False

    as_admin.post(f"/admin/shops/{seed.shop_id}/reject")
    with app.app_context():
        shop = db.session.get(Shop, seed.shop_id)
        assert shop.is_approved is False
        assert shop.is_active is False

    as_admin.post(f"/admin/shops/{seed.shop_id}/approve")
    as_admin.post(f"/admin/shops/{seed.shop_id}/activate")
    with app.app_context():
        assert db.session.get(Shop, seed.shop_id).is_visible


def test_unknown_shop_action_is_refused(app, as_admin, seed):
    response = as_admin.post(f"/admin/shops/{seed.shop_id}/explode", follow_redirects=True)
    assert b"Invalid action" in response.data


def test_toggle_user(app, as_admin, seed):
    as_admin.post(f"/admin/users/{seed.consumer_id}/toggle")
    with app.app_context():
        assert db.session.get(User, seed.consumer_id).is_active is False

    response = as_admin.get("/admin/users?role=consumer")
    assert b"Suspended" in response.data


def test_admin_cannot_suspend_self(app, as_admin, seed):
    response = as_admin.post(f"/admin/users/{seed.admin_id}/toggle", follow_redirects=True)
    assert b"cannot suspend your own account" in response.data
    with app.app_context():
        assert db.session.get(User, seed.admin_id).is_active is True


def test_product_list_filters(as_admin, seed):
    response = as_admin.get("/admin/products?q=rice")
    assert b"Samba Rice" in response.data
    assert b"Fresh Milk" not in response.data

    response = as_admin.get("/admin/products?category=Dairy+%26+Eggs")
    assert b"Fresh Milk" in response.data
    assert b"Samba Rice" not in response.data


def test_create_product_with_image(app, as_admin, seed):
    response = as_admin.post(
        "/admin/products/new",
        data={
            "name": "Red Onions",
            "description": "Local red onions",
            "category": "Fruits & Vegetables",
            "base_unit": "kg",
            "image": (io.BytesIO(b"\x89PNG fake image"), "onions.png"),
            "image_url": "",
        },
        content_type="multipart/form-data",
    )
    assert response.status_code == 302

    with app.app_context():
        product = GlobalProduct.query.filter_by(name="Red Onions").one()
        assert product.is_approved is True
        assert product.image_url.startswith("/uploads/products/")

    image = as_admin.get(product.image_url)
    assert image.status_code == 200
    assert image.data == b"\x89PNG fake image"


def test_create_product_rejects_bad_file_type(app, as_admin, seed):
    response = as_admin.post(
        "/admin/products/new",
        data={
            "name": "Bad Upload",
            "category": "Other",
            "base_unit": "piece",
            "image": (io.BytesIO(b"MZ"), "virus.exe"),
        },
        content_type="multipart/form-data",
    )
    assert response.status_code == 200
    with app.app_context():
        assert GlobalProduct.query.filter_by(name="Bad Upload").first() is None


def test_edit_and_approve_product(app, as_admin, seed):
    with app.app_context():
        product = GlobalProduct(name="Kithul", category="Other", base_unit="piece", is_approved=False)
        db.session.add(product)
        db.session.commit()
        product_id = product.id

    as_admin.post(f"/admin/products/{product_id}/edit", data={
        "name": "Kithul Treacle",
        "category": "Pantry Staples",
        "base_unit": "ml",
        "description": "",
        "image_url": "",
    })
    as_admin.post(f"/admin/products/{product_id}/approve")

    with app.app_context():
        product = db.session.get(GlobalProduct, product_id)
        assert product.name == "Kithul Treacle"
        assert product.base_unit == "ml"
        assert product.is_approved is True


def test_approving_request_creates_catalogue_product(app, as_admin, seed):
    with app.app_context():
        product_request = ProductRequest(shop_id=seed.shop_id, product_name="Jaggery", category="Pantry Staples")
        db.session.add(product_request)
        db.session.commit()
        request_id = product_request.id

    as_admin.post(f"/admin/requests/{request_id}/approve")

    with app.app_context():
        assert db.session.get(ProductRequest, request_id).status == "approved"
        product = GlobalProduct.query.filter_by(name="Jaggery").one()
        assert product.is_approved is True
        assert product.base_unit == "piece"

    response = as_admin.post(f"/admin/requests/{request_id}/reject", follow_redirects=True)
    assert b"already been approved" in response.data


def test_rejecting_request(app, as_admin, seed):
    with app.app_context():
        product_request = ProductRequest(shop_id=seed.shop_id, product_name="Durian")
        db.session.add(product_request)
        db.session.commit()
        request_id = product_request.id

    as_admin.post(f"/admin/requests/{request_id}/reject")

    with app.app_context():
        assert db.session.get(ProductRequest, request_id).status == "rejected"
        assert GlobalProduct.query.filter_by(name="Durian").first() is None
