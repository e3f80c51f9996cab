from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from app.schemas.portfolio import HoldingEntry


class HoldingValidationError(ValueError):
    def __init__(self, errors: Dict[str, str]) -> None:
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors


def parse_amount(amount_text: Any) -> Optional[float]:
    """Return the amount as a positive finite float, or None if it is not one."""
    try:
        amount = float(str(amount_text).strip())
    except ValueError:
        return None
    if not math.isfinite(amount) or amount <= 0:
        return None
    return amount


def validate_holding(name: str, amount_text: Any) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not name or not name.strip():
        errors["name"] = "Name is required"
    if parse_amount(amount_text) is None:
        errors["amount"] = "Amount must be a positive number"
    return errors


class HoldingsStore:
    """Ordered, in-memory portfolio rows. Lives as long as the app state."""

    def __init__(self) -> None:
        self._rows: List[HoldingEntry] = []

    def __len__(self) -> int:
        return len(self._rows)

    def list(self) -> List[HoldingEntry]:
        return list(self._rows)

    def get(self, holding_id: str) -> Optional[HoldingEntry]:
        for row in self._rows:
            if row.id == holding_id:
                return row
        return None

    def add(self, name: str, amount_text: Any) -> HoldingEntry:
        errors = validate_holding(name, amount_text)
        if errors:
            raise HoldingValidationError(errors)

        # TODO: value stays 0.0 until holdings are priced from the snapshot list
        entry = HoldingEntry(
            id=uuid4().hex,
            name=name.strip(),
            amount=parse_amount(amount_text),
            value=0.0,
        )
        self._rows.append(entry)
        return entry

    def delete(self, indexes: Iterable[int]) -> List[HoldingEntry]:
        positions = set(indexes)
        bad = sorted(i for i in positions if i < 0 or i >= len(self._rows))
        if bad:
            raise IndexError(f"Holding index out of range: {bad}")

        removed = [row for i, row in enumerate(self._rows) if i in positions]
        self._rows = [row for i, row in enumerate(self._rows) if i not in positions]
        return removed

    def remove(self, holding_id: str) -> Optional[HoldingEntry]:
        row = self.get(holding_id)
        if row is not None:
            self._rows.remove(row)
        return row

    def total_value(self) -> float:
        return sum(row.value for row in self._rows)
