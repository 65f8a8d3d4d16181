"""
Inventory Service

Back-office documents: purchase expenses, the editable service catalog,
stocked products and product categories.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from repairdesk.models.schemas import (
    CatalogServiceIn,
    CatalogServiceUpdate,
    ExpenseCreate,
    ExpenseUpdate,
    ProductIn,
)
from repairdesk.services.dates import localize, local_now

# Catalog listing order
CATALOG_SORT = [("category", 1), ("nameEn", 1)]


def _stamp(now: Optional[datetime]) -> datetime:
    return localize(now) if now is not None else local_now()


# ============== Expenses ==============

def build_expense_document(expense: ExpenseCreate, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "name": expense.name,
        "quantity": expense.quantity,
        "cost": expense.cost,
        "category": expense.category,
        "note": expense.note or "",
        "createdAt": _stamp(now),
    }


def build_expense_update(expense: ExpenseUpdate, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "name": expense.name,
        "quantity": expense.quantity,
        "cost": expense.cost,
        "note": expense.note or "",
        "updatedAt": _stamp(now),
    }


# ============== Catalog services ==============

def build_catalog_service(service: CatalogServiceIn) -> Dict[str, Any]:
    return service.model_dump(by_alias=True, exclude_none=True, mode="python")


def build_catalog_service_update(service: CatalogServiceUpdate) -> Dict[str, Any]:
    return service.model_dump(by_alias=True, exclude_unset=True, mode="python")


# ============== Products ==============

def has_price(product: ProductIn) -> bool:
    return (product.price_per_piece or 0) > 0 or (product.price_per_meter or 0) > 0


def _product_fields(product: ProductIn) -> Dict[str, Any]:
    """Stored product fields; non-positive prices and blank names are left out"""
    fields: Dict[str, Any] = {
        "nameEn": product.name_en or None,
        "nameAr": product.name_ar or None,
        "category": product.category or None,
        "pricePerPiece": product.price_per_piece if (product.price_per_piece or 0) > 0 else None,
        "pricePerMeter": product.price_per_meter if (product.price_per_meter or 0) > 0 else None,
    }
    fields = {key: value for key, value in fields.items() if value is not None}
    fields["stock"] = product.stock or 0
    fields["description"] = product.description or ""
    return fields


def build_product_document(product: ProductIn, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = _stamp(now)
    document = _product_fields(product)
    document["createdAt"] = now
    document["updatedAt"] = now
    return document


def build_product_update(product: ProductIn, now: Optional[datetime] = None) -> Dict[str, Any]:
    """$set fields; name falls back to the English name and dropped prices are cleared"""
    fields = _product_fields(product)
    fields.setdefault("pricePerPiece", None)
    fields.setdefault("pricePerMeter", None)
    fields["name"] = product.name or product.name_en or ""
    fields["updatedAt"] = _stamp(now)
    return fields


# ============== Categories ==============

def category_view(document: Dict[str, Any]) -> Dict[str, Any]:
    return {"_id": str(document["_id"]), "name": document.get("name") or ""}
