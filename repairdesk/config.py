"""
Configuration

Environment-driven settings for the repairdesk backend.
Values are read once at import time; .env is loaded by main.py before import.
"""

import os
import logging

# Storage backend: "mongo" (default) or "memory"
TICKET_STORE = os.getenv("TICKET_STORE", "mongo").lower()

# MongoDB connection
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB = os.getenv("MONGODB_DB", "car_repair")
MONGODB_CONNECT_TIMEOUT_MS = int(os.getenv("MONGODB_CONNECT_TIMEOUT_MS", "10000"))
MONGODB_SOCKET_TIMEOUT_MS = int(os.getenv("MONGODB_SOCKET_TIMEOUT_MS", "45000"))
MONGODB_MAX_POOL_SIZE = int(os.getenv("MONGODB_MAX_POOL_SIZE", "50"))
MONGODB_MIN_POOL_SIZE = int(os.getenv("MONGODB_MIN_POOL_SIZE", "10"))
MONGODB_MAX_IDLE_TIME_MS = int(os.getenv("MONGODB_MAX_IDLE_TIME_MS", "60000"))
MONGODB_CONNECT_RETRIES = int(os.getenv("MONGODB_CONNECT_RETRIES", "3"))

# Collections
TICKETS_COLLECTION = "tickets"
SERVICES_COLLECTION = "services"
SERVICE_CATEGORIES_COLLECTION = "serviceCategories"
APPOINTMENTS_COLLECTION = "appointments"
EMPLOYEES_COLLECTION = "employees"
EXPENSES_COLLECTION = "expenses"
PRODUCTS_COLLECTION = "products"
CATEGORIES_COLLECTION = "categories"

# Shop wall-clock zone (IANA name, e.g. Asia/Kuwait); empty uses the server's local zone
SHOP_TIMEZONE = os.getenv("SHOP_TIMEZONE", "").strip()

# HTTP
NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
PORT = int(os.getenv("PORT", "8000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging():
    """Configure root logging once for the process"""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
