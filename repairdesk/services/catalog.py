"""
Service Catalog

Services and categories offered by the shop. The database collections are
authoritative; the built-in catalog is served when they are empty.
"""

from typing import Any, Dict, List, Tuple

DEFAULT_SERVICE_CATEGORIES: List[Dict[str, Any]] = [
    {"id": "protection", "nameEn": "Vehicle Protection", "nameAr": "حماية السيارة", "icon": "shield-car"},
    {"id": "polish", "nameEn": "Polishing", "nameAr": "تلميع", "icon": "sparkles"},
    {"id": "customization", "nameEn": "Customization", "nameAr": "تخصيص", "icon": "palette"},
]


def _service(service_id, name_en, name_ar, price, category, hours):
    return {
        "id": service_id,
        "nameEn": name_en,
        "nameAr": name_ar,
        "price": price,
        "category": category,
        "estimatedHours": hours,
    }


DEFAULT_SERVICES: List[Dict[str, Any]] = [
    _service("full-body-protection", "Full Body Protection", "حماية كاملة للسيارة", 50, "protection", 8),
    _service("hood-protection", "Hood Protection", "حماية كبوت", 70, "protection", 1.5),
    _service("quarter-protection", "Quarter Panel Protection", "حماية ربع", 120, "protection", 2),
    _service("matte-protection", "Matte Protection", "حماية مطفي", 800, "protection", 6),
    _service("black-matte-protection", "Black Matte Protection", "حماية أسود مطفي", 800, "protection", 6),
    _service("black-glossy-protection", "Black Glossy Protection", "حماية أسود لميع", 800, "protection", 6),
    _service("blackout", "Blackout (Trim Color Change)", "بلاك اوت", 450, "customization", 2.5),
    _service("caliper-painting", "Caliper Painting", "صبغ كليبرات", 100, "customization", 2),
    _service("diamond-flooring", "Diamond Flooring", "أرضية دياموند", 120, "customization", 3),
    _service("thermal-tint", "Thermal Tint", "تظليل حراري", 180, "protection", 3),
    _service("thermal-tint-vanet", "Thermal Tint (Vanet)", "تظليل حراري (وانيت)", 280, "protection", 3),
    _service("windshield-protection", "Windshield Protection", "حماية جام", 30, "protection", 1.5),
    _service("exterior-polish", "Exterior Polish", "بوليش خارجي", 30, "polish", 2),
    _service("interior-exterior-polish", "Interior & Exterior Polish", "تلميع داخلي + خارجي", 150, "polish", 5),
    _service("protection-removal", "Protection Removal", "إزالة حماية", 50, "protection", 2),
    # Priced per chosen color
    _service("full-color-change", "Full Color Change Wrap", "ستكر كامل (تغيير لون)", None, "customization", 16),
]


def resolve_catalog(
    services: List[Dict[str, Any]],
    categories: List[Dict[str, Any]]
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Stored catalog, falling back to the built-in one per collection"""
    return (
        services or [dict(s) for s in DEFAULT_SERVICES],
        categories or [dict(c) for c in DEFAULT_SERVICE_CATEGORIES],
    )
