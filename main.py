"""
Repairdesk Backend - Main Application

Ticket tracking, sales analytics and back office (appointments, staff,
inventory) for an automotive repair & detailing shop.
"""

from contextlib import asynccontextmanager
from dotenv import load_dotenv

# Load .env before repairdesk.config reads the environment
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from repairdesk import config
from repairdesk.routers import (
    analytics,
    appointments,
    catalog,
    categories,
    customers,
    employees,
    inventory,
    products,
    search,
    tickets,
)
from repairdesk.services.ticket_store import get_ticket_store

config.configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    logger.info("Starting Repairdesk Backend...")
    store = get_ticket_store()
    await store.connect()
    yield
    # Shutdown
    logger.info("Shutting down Repairdesk Backend...")
    await store.close()


# Initialize FastAPI app
app = FastAPI(
    title="Repairdesk API",
    description="Tickets, customers and sales analytics for a repair & detailing shop",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware (CORS_ORIGINS, comma-separated)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(tickets.router, prefix="/api/tickets", tags=["Tickets"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])
app.include_router(customers.router, prefix="/api/customers", tags=["Customers"])
app.include_router(search.router, prefix="/api/search", tags=["Search"])
app.include_router(catalog.router, prefix="/api/services", tags=["Service Catalog"])
app.include_router(appointments.router, prefix="/api/appointments", tags=["Appointments"])
app.include_router(employees.router, prefix="/api/employees", tags=["Employees"])
app.include_router(inventory.router, prefix="/api/inventory", tags=["Inventory"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(categories.router, prefix="/api/categories", tags=["Product Categories"])


@app.get("/")
def read_root():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "Repairdesk Backend",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Detailed health check"""
    return {
        "status": "healthy",
        "store": get_ticket_store().name,
        "database": config.MONGODB_DB
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=config.PORT, reload=True)
