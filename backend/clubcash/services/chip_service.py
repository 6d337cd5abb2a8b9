# Overview: Chip types and chip inventory valuation.

from __future__ import annotations

from ..errors import ValidationError
from ..extensions import db
from ..models import ChipType
from ..money import require_positive_cents


# Denominations seeded by `flask chips seed`
DEFAULT_CHIP_TYPES = [
    ("white", 100),
    ("red", 500),
    ("green", 2500),
    ("black", 10000),
    ("purple", 50000),
]


def total_value(inventory: dict | None, chip_types: list[ChipType]) -> int:
    """
    Value a chip inventory (chip_type_id -> count) in cents.

    Ids with no matching chip type are skipped: inventories saved before a
    chip type was removed still value what is known.
    """
    if not inventory:
        return 0
    by_id = {str(ct.id): ct.value_cents for ct in chip_types}
    total = 0
    for chip_type_id, count in inventory.items():
        value = by_id.get(str(chip_type_id))
        if value is None:
            continue
        total += int(count) * value
    return total


def normalize_inventory(inventory: dict) -> dict:
    """Validate counts and key the map by str(chip_type_id) for JSON storage."""
    if not isinstance(inventory, dict):
        raise ValidationError("Chip inventory must be an object of chip_type_id -> count")
    cleaned = {}
    for chip_type_id, count in inventory.items():
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValidationError(f"Chip count for {chip_type_id} must be a non-negative integer")
        cleaned[str(chip_type_id)] = count
    return cleaned


def list_chip_types() -> list[ChipType]:
    return db.session.query(ChipType).order_by(ChipType.sort_order, ChipType.id).all()


def create_chip_type(color: str, value_cents: int, sort_order: int | None = None) -> ChipType:
    color = (color or "").strip()
    if not color:
        raise ValidationError("Chip color is required")
    require_positive_cents(value_cents, "value_cents")

    if sort_order is None:
        sort_order = (db.session.query(db.func.max(ChipType.sort_order)).scalar() or 0) + 1

    chip_type = ChipType(color=color, value_cents=value_cents, sort_order=sort_order)
    db.session.add(chip_type)
    db.session.commit()
    return chip_type


def seed_default_chip_types() -> int:
    """Create the default denominations if no chip types exist. Returns rows created."""
    if db.session.query(ChipType).count():
        return 0
    for position, (color, value_cents) in enumerate(DEFAULT_CHIP_TYPES, start=1):
        db.session.add(ChipType(color=color, value_cents=value_cents, sort_order=position))
    db.session.commit()
    return len(DEFAULT_CHIP_TYPES)
