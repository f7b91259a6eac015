# backend/main.py
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

load_dotenv()

from config import settings
from database import init_db

# Router imports
from routes.payments import router as payments_router
from routes.discounts import router as discounts_router
from routes.orders import router as orders_router
from routes.cart import router as cart_router
from routes.wishlist import router as wishlist_router
from routes.admin import router as admin_router
from routes.stats import router as stats_router
from routes.logs import router as logs_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialization
init_db()

app = FastAPI(title="Shoplane Storefront API", version="1.0.0")

# CORS Configuration
# Storefront URL from the environment, plus the local Vite dev server
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173"
]

if settings.FRONTEND_URL:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router registration
app.include_router(payments_router)
app.include_router(discounts_router)
app.include_router(orders_router)
app.include_router(cart_router)
app.include_router(wishlist_router)
app.include_router(admin_router)
app.include_router(stats_router)
app.include_router(logs_router)

@app.get("/")
def read_root():
    return {"message": "Shoplane Storefront API is running"}
