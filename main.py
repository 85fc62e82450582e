from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv
import os

from storefront.database import Base, engine
from storefront.core.errors import http_exception_handler, validation_exception_handler

# import models so they are registered on the metadata
import storefront.models  # noqa: F401

from storefront.routes.countries import router as countries_router
from storefront.routes.states import router as states_router
from storefront.routes.cities import router as cities_router
from storefront.routes.pincodes import router as pincodes_router
from storefront.routes.shipping import router as shipping_router
from storefront.routes.addresses import router as addresses_router
from storefront.routes.categories import router as categories_router
from storefront.routes.products import router as products_router
from storefront.routes.inventory import router as inventory_router
from storefront.routes.product_details import router as product_details_router
from storefront.routes.faqs import router as faqs_router
from storefront.routes.reviews import router as reviews_router
from storefront.routes.storefront import router as storefront_router
from storefront.routes.coupons import router as coupons_router
from storefront.routes.payment import router as payment_router
from storefront.routes.upload import router as upload_router
from storefront.routes.auth import router as auth_router
from storefront.routes.users import router as users_router
from storefront.routes.checkout import router as checkout_router

load_dotenv()

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")

app = FastAPI(title="Storefront API")

# Error bodies carry a top-level message; validation failures are 400s
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Create uploads directory if it doesn't exist
os.makedirs(UPLOAD_DIR, exist_ok=True)

# Mount uploaded images
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for development
    allow_credentials=True,
    allow_methods=["*"],  # Allows all methods
    allow_headers=["*"],  # Allows all headers
)

# Create tables (after models are imported)
Base.metadata.create_all(bind=engine)

app.include_router(countries_router, prefix="/api/locations/country", tags=["locations"])
app.include_router(states_router, prefix="/api/locations/state", tags=["locations"])
app.include_router(cities_router, prefix="/api/locations/city", tags=["locations"])
app.include_router(pincodes_router, prefix="/api/locations/pincode", tags=["locations"])
app.include_router(shipping_router, prefix="/api/locations/shipping", tags=["shipping"])
app.include_router(addresses_router, prefix="/api/address", tags=["address"])
app.include_router(categories_router, prefix="/api/products/product-category", tags=["categories"])
app.include_router(products_router, prefix="/api/products/create-product", tags=["products"])
app.include_router(inventory_router, prefix="/api/products/inventory", tags=["inventory"])
app.include_router(product_details_router, prefix="/api/products/product-detail", tags=["product-details"])
app.include_router(faqs_router, prefix="/api/products/product-faq", tags=["product-faq"])
app.include_router(reviews_router, prefix="/api/products/product-review", tags=["product-review"])
app.include_router(storefront_router, prefix="/api/user", tags=["storefront"])
app.include_router(coupons_router, prefix="/api/coupon", tags=["coupons"])
app.include_router(payment_router, prefix="/api/payment", tags=["payment"])
app.include_router(upload_router, prefix="/api/upload", tags=["upload"])
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(users_router, prefix="/api/users", tags=["users"])
app.include_router(checkout_router, prefix="/api/checkout", tags=["checkout"])

@app.get("/")
def read_root():
    return {"status": "ok"}
