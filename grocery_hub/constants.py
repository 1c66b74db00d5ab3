class UserRole:
    ADMIN = "admin"
    SHOP_OWNER = "shop_owner"
    CONSUMER = "consumer"
    DELIVERY_PARTNER = "delivery_partner"

    ALL = (ADMIN, SHOP_OWNER, CONSUMER, DELIVERY_PARTNER)


class OrderStatus:
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    ALL = (PENDING, CONFIRMED, PREPARING, READY, OUT_FOR_DELIVERY, DELIVERED, COMPLETED, CANCELLED)
    FINISHED = (DELIVERED, COMPLETED)
    TERMINAL = (DELIVERED, COMPLETED, CANCELLED)


class OrderType:
    DELIVERY = "delivery"
    PICKUP = "pickup"
    WALK_IN = "walk_in"

    ALL = (DELIVERY, PICKUP, WALK_IN)


class ProductRequestStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentMethod:
    CASH = "cash"
    CARD = "card"

    ALL = (CASH, CARD)


# Dashboard endpoint per role
ROLE_HOME = {
    UserRole.ADMIN: "admin.dashboard",
    UserRole.SHOP_OWNER: "shop_owner.dashboard",
    UserRole.CONSUMER: "consumer.dashboard",
    UserRole.DELIVERY_PARTNER: "delivery.dashboard",
}

ROLE_LABELS = {
    UserRole.ADMIN: "Admin",
    UserRole.SHOP_OWNER: "Shop Owner",
    UserRole.CONSUMER: "Consumer",
    UserRole.DELIVERY_PARTNER: "Delivery Partner",
}

PRODUCT_CATEGORIES = [
    "Fruits & Vegetables",
    "Dairy & Eggs",
    "Meat & Seafood",
    "Bakery",
    "Beverages",
    "Snacks",
    "Pantry Staples",
    "Frozen Foods",
    "Personal Care",
    "Household",
    "Other",
]

BASE_UNITS = ["kg", "g", "lb", "oz", "L", "ml", "piece", "dozen", "pack", "bundle", "box"]

SORT_OPTIONS = ("distance", "rating", "name")
