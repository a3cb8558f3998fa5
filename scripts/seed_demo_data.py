"""
Seed the demo catalogue and alerts.

Runs on startup for the memory backend (SEED_DEMO_DATA=true), or by hand
against whichever backend STORAGE_BACKEND selects:

    python scripts/seed_demo_data.py
"""

import sys
from datetime import timedelta
from pathlib import Path

# Add project root to path so we can import modules
project_dir = Path(__file__).parent.parent
if str(project_dir) not in sys.path:
    sys.path.insert(0, str(project_dir))

import structlog

from models.base import utc_now
from repositories import get_repository

logger = structlog.get_logger(__name__)


DEMO_PRODUCTS = [
    {
        "id": "123e4567-e89b-12d3-a456-426614174000",
        "name": "Premium Coffee Beans",
        "sku": "PCB-001",
        "barcode": "1234567890123",
        "category": "Beverages",
        "quantity": 150,
        "min_threshold": 20,
        "price": 24.99,
        "cost": 18.50,
        "supplier": "Global Coffee Co.",
        "description": "High-quality arabica coffee beans sourced from Colombia",
        "unit": "kg",
        "expiration_date": "2024-12-31",
        "location": "Warehouse A, Shelf 3",
        "created_at": "2024-01-15T10:30:00+00:00",
        "updated_at": "2024-01-20T14:45:00+00:00",
        "last_updated": "2024-01-20T14:45:00+00:00",
    },
    {
        "id": "223e4567-e89b-12d3-a456-426614174001",
        "name": "Organic Green Tea",
        "sku": "OGT-002",
        "barcode": "2345678901234",
        "category": "Beverages",
        "quantity": 8,
        "min_threshold": 15,
        "price": 12.99,
        "cost": 9.50,
        "supplier": "Organic Tea Ltd.",
        "description": "Premium organic green tea leaves",
        "unit": "box",
        "expiration_date": "2025-06-30",
        "location": "Warehouse A, Shelf 2",
        "created_at": "2024-01-10T09:15:00+00:00",
        "updated_at": "2024-01-18T11:20:00+00:00",
        "last_updated": "2024-01-18T11:20:00+00:00",
    },
    {
        "id": "323e4567-e89b-12d3-a456-426614174002",
        "name": "Whole Wheat Flour",
        "sku": "WWF-003",
        "barcode": None,
        "category": "Baking",
        "quantity": 45,
        "min_threshold": 10,
        "price": 8.99,
        "cost": 6.50,
        "supplier": "Mills & Grains Co.",
        "description": "100% whole wheat flour for baking",
        "unit": "kg",
        "expiration_date": "2024-11-15",
        "location": "Warehouse B, Shelf 1",
        "created_at": "2024-01-12T14:00:00+00:00",
        "updated_at": "2024-01-19T16:30:00+00:00",
        "last_updated": "2024-01-19T16:30:00+00:00",
    },
]


def demo_alerts() -> list[dict]:
    """Alerts stamped relative to now, newest first."""
    now = utc_now()
    return [
        {
            "id": "alert-001",
            "type": "low-stock",
            "severity": "medium",
            "product_id": "223e4567-e89b-12d3-a456-426614174001",
            "product_name": "Organic Green Tea",
            "message": "Organic Green Tea stock is running low (8 remaining, threshold: 15)",
            "details": "Current stock level is below the minimum threshold. Consider reordering soon.",
            "action_required": True,
            "created_at": (now - timedelta(hours=2)).isoformat(),
            "expires_at": None,
        },
        {
            "id": "alert-002",
            "type": "forecast-warning",
            "severity": "low",
            "product_id": "123e4567-e89b-12d3-a456-426614174000",
            "product_name": "Premium Coffee Beans",
            "message": "Expected increase in demand for Premium Coffee Beans next week",
            "details": "Forecasting suggests 25% increase in demand. Current stock should be sufficient.",
            "action_required": False,
            "created_at": (now - timedelta(hours=4)).isoformat(),
            "expires_at": None,
        },
        {
            "id": "alert-003",
            "type": "system",
            "severity": "low",
            "product_id": None,
            "product_name": None,
            "message": "Weekly inventory report is ready for review",
            "details": "Your automated weekly inventory summary has been generated.",
            "action_required": False,
            "created_at": (now - timedelta(hours=6)).isoformat(),
            "expires_at": None,
        },
    ]


def seed_demo_data() -> dict:
    """
    Insert or replace the demo records.

    Idempotent: records keep fixed ids, so re-running overwrites them.

    Returns:
        Counts of seeded records per table
    """
    products = get_repository("products")
    alerts = get_repository("alerts")

    for product in DEMO_PRODUCTS:
        products.put(dict(product))
    seeded_alerts = demo_alerts()
    for alert in seeded_alerts:
        alerts.put(alert)

    counts = {"products": len(DEMO_PRODUCTS), "alerts": len(seeded_alerts)}
    logger.info("demo_data_seeded", **counts)
    return counts


if __name__ == "__main__":
    result = seed_demo_data()
    print(f"✓ Seeded {result['products']} products and {result['alerts']} alerts")
