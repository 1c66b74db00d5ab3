from flask_wtf import FlaskForm
from flask_wtf.file import FileAllowed, FileField
from wtforms import (
    BooleanField, DecimalField, FloatField, HiddenField, IntegerField, PasswordField,
    RadioField, SelectField, StringField, SubmitField, TextAreaField,
)
from wtforms.validators import DataRequired, Email, EqualTo, InputRequired, Length, NumberRange, Optional

from .constants import BASE_UNITS, PRODUCT_CATEGORIES, OrderType, PaymentMethod, UserRole

CATEGORY_CHOICES = [(category, category) for category in PRODUCT_CATEGORIES]
UNIT_CHOICES = [(unit, unit) for unit in BASE_UNITS]


class LoginForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField("Password", validators=[DataRequired()])
    submit = SubmitField("Sign In")


class RegisterForm(FlaskForm):
    full_name = StringField("Full Name", validators=[DataRequired(), Length(max=150)])
    email = StringField("Email", validators=[DataRequired(), Email(), Length(max=255)])
    phone = StringField("Phone", validators=[DataRequired(), Length(max=30)])
    role = SelectField("I am a", choices=[
        (UserRole.CONSUMER, "Consumer"),
        (UserRole.SHOP_OWNER, "Shop Owner"),
        (UserRole.DELIVERY_PARTNER, "Delivery Partner"),
    ], default=UserRole.CONSUMER)
    password = PasswordField("Password", validators=[
        DataRequired(), Length(min=6, message="Password must be at least 6 characters"),
    ])
    confirm_password = PasswordField("Confirm Password", validators=[
        DataRequired(), EqualTo("password", message="Passwords do not match"),
    ])
    submit = SubmitField("Create Account")


class ShopForm(FlaskForm):
    name = StringField("Shop Name", validators=[DataRequired(), Length(max=150)])
    description = TextAreaField("Description", validators=[Optional()])
    address = StringField("Address", validators=[DataRequired(), Length(max=255)])
    latitude = FloatField("Latitude", validators=[
        InputRequired(message="Latitude is required"), NumberRange(min=-90, max=90),
    ])
    longitude = FloatField("Longitude", validators=[
        InputRequired(message="Longitude is required"), NumberRange(min=-180, max=180),
    ])
    delivery_range_km = FloatField("Delivery Range (km)", default=5, validators=[
        DataRequired(), NumberRange(min=0.1, max=100),
    ])
    submit = SubmitField("Create Shop")


class ShopSettingsForm(ShopForm):
    is_active = BooleanField("Shop is open for orders")
    submit = SubmitField("Save Settings")


class GlobalProductForm(FlaskForm):
    name = StringField("Product Name", validators=[DataRequired(), Length(max=200)])
    description = TextAreaField("Description", validators=[Optional()])
    category = SelectField("Category", choices=CATEGORY_CHOICES, validators=[DataRequired()])
    base_unit = SelectField("Base Unit", choices=UNIT_CHOICES, validators=[DataRequired()])
    image = FileField("Image", validators=[FileAllowed(["jpg", "jpeg", "png", "webp"], "Images only")])
    image_url = StringField("Image URL", validators=[Optional(), Length(max=500)])
    submit = SubmitField("Save Product")


class ProductRequestForm(FlaskForm):
    product_name = StringField("Product Name", validators=[DataRequired(), Length(max=200)])
    description = TextAreaField("Description", validators=[Optional()])
    category = SelectField("Category", choices=CATEGORY_CHOICES)
    base_unit = SelectField("Base Unit", choices=UNIT_CHOICES, default="piece")
    submit = SubmitField("Send Request")


class AddShopProductForm(FlaskForm):
    global_product_id = SelectField("Product", validators=[DataRequired()], choices=[])
    price = DecimalField("Price", places=2, validators=[InputRequired(), NumberRange(min=0)])
    stock_quantity = IntegerField("Stock Quantity", default=0, validators=[NumberRange(min=0)])
    submit = SubmitField("Add to Shop")


class ShopProductForm(FlaskForm):
    price = DecimalField("Price", places=2, validators=[InputRequired(), NumberRange(min=0)])
    stock_quantity = IntegerField("Stock Quantity", validators=[NumberRange(min=0)])
    is_available = BooleanField("Available")
    submit = SubmitField("Update")


class CheckoutForm(FlaskForm):
    order_type = RadioField("Order Type", choices=[
        (OrderType.DELIVERY, "Delivery"),
        (OrderType.PICKUP, "Pickup"),
    ], default=OrderType.PICKUP)
    delivery_address = StringField("Delivery Address", validators=[Optional(), Length(max=255)])
    guest_name = StringField("Your Name", validators=[Optional(), Length(max=150)])
    guest_email = StringField("Email", validators=[Optional(), Email()])
    guest_phone = StringField("Phone", validators=[Optional(), Length(max=30)])
    submit = SubmitField("Place Order")


class ProfileForm(FlaskForm):
    full_name = StringField("Full Name", validators=[DataRequired(), Length(max=150)])
    phone = StringField("Phone", validators=[Optional(), Length(max=30)])
    submit = SubmitField("Save Profile")


class AddressForm(FlaskForm):
    label = StringField("Label", validators=[DataRequired(), Length(max=50)])
    address = StringField("Address", validators=[DataRequired(), Length(max=255)])
    is_default = BooleanField("Set as default")
    submit = SubmitField("Add Address")


class ReviewForm(FlaskForm):
    order_id = HiddenField(validators=[DataRequired()])
    rating = IntegerField("Rating", default=5, validators=[DataRequired(), NumberRange(min=1, max=5)])
    review_text = TextAreaField("Review", validators=[Optional(), Length(max=1000)])
    submit = SubmitField("Submit Review")


class POSCheckoutForm(FlaskForm):
    payment_method = RadioField("Payment Method", choices=[
        (PaymentMethod.CASH, "Cash"),
        (PaymentMethod.CARD, "Card"),
    ], default=PaymentMethod.CASH)
    submit = SubmitField("Complete Sale")
