# Overview: Default reference data for newly onboarded farms.

from __future__ import annotations

from ..extensions import db
from ..models import Customer, ProductType

DEFAULT_PRODUCT_TYPES = (
    {"name": "Mực ống", "description": "Mực ống tươi sống", "unit": "kg"},
    {"name": "Mực nang", "description": "Mực nang tươi sống", "unit": "kg"},
    {"name": "Mực lá", "description": "Mực lá tươi sống", "unit": "kg"},
)

DEFAULT_CUSTOMERS = (
    {
        "name": "Nhà hàng Hải Sản Xanh",
        "phone": "0123456789",
        "address": "123 Đường Biển, Quận 1, TP.HCM",
        "description": "Nhà hàng chuyên về hải sản",
    },
    {
        "name": "Công ty Thực Phẩm Sạch",
        "phone": "0987654321",
        "address": "456 Đường Thủy Sản, Quận 4, TP.HCM",
        "description": "Công ty phân phối thực phẩm",
    },
    {
        "name": "Chợ Hải Sản Trung Tâm",
        "phone": "0369852147",
        "address": "789 Đường Chợ, Quận 5, TP.HCM",
        "description": "Chợ đầu mối hải sản",
    },
)


def seed_farm_defaults(farm_id: int, *, skip_existing: bool = False) -> dict:
    """
    Add the default product types and customers to one farm.

    Flushes but does not commit: onboarding runs this inside its own
    transaction. With skip_existing, names already present in the farm are
    left alone (used by the CLI to top up an existing farm).
    """
    existing_types: set[str] = set()
    existing_customers: set[str] = set()
    if skip_existing:
        existing_types = {
            name for (name,) in db.session.query(ProductType.name).filter(ProductType.farm_id == farm_id)
        }
        existing_customers = {
            name for (name,) in db.session.query(Customer.name).filter(Customer.farm_id == farm_id)
        }

    created = {"product_types": 0, "customers": 0}

    for defaults in DEFAULT_PRODUCT_TYPES:
        if defaults["name"] in existing_types:
            continue
        db.session.add(ProductType(farm_id=farm_id, **defaults))
        created["product_types"] += 1

    for defaults in DEFAULT_CUSTOMERS:
        if defaults["name"] in existing_customers:
            continue
        db.session.add(Customer(farm_id=farm_id, **defaults))
        created["customers"] += 1

    db.session.flush()
    return created
