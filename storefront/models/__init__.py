# package marker for storefront.models

# Import all models so every table is registered on Base.metadata
from storefront.models.countries import Country
from storefront.models.states import State
from storefront.models.cities import City
from storefront.models.pincodes import Pincode
from storefront.models.shipping import ShippingRate
from storefront.models.addresses import Address
from storefront.models.categories import Category
from storefront.models.products import Product
from storefront.models.product_details import ProductDetail
from storefront.models.faqs import ProductFaq
from storefront.models.reviews import ProductReview
from storefront.models.coupons import Coupon
from storefront.models.payment import PaymentGateway
from storefront.models.user import User

__all__ = [
    "Country",
    "State",
    "City",
    "Pincode",
    "ShippingRate",
    "Address",
    "Category",
    "Product",
    "ProductDetail",
    "ProductFaq",
    "ProductReview",
    "Coupon",
    "PaymentGateway",
    "User",
]
