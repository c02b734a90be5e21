"""
Budget progress calculation.

Progress is always derived from a budget amount and the line items booked
against it; nothing here touches the database.
"""
from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Dict, Any

from homebudget.app.models.models import ExpenseType, BudgetHealthStatus

OVER_BUDGET_THRESHOLD = 90.0
WARNING_THRESHOLD = 70.0

CENT = Decimal("0.01")


def round2(value: float) -> float:
    """Round to two decimals, half-up on the cent"""
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


def percentage_of(part: float, whole: float) -> float:
    """part/whole as a 2dp percentage; 0 when whole is not positive"""
    if not whole or whole <= 0:
        return 0.0
    return round2(part / whole * 100)


def health_status(percentage: float) -> BudgetHealthStatus:
    if percentage >= OVER_BUDGET_THRESHOLD:
        return BudgetHealthStatus.OVER_BUDGET
    if percentage >= WARNING_THRESHOLD:
        return BudgetHealthStatus.WARNING
    return BudgetHealthStatus.ON_TRACK


def is_spend(item) -> bool:
    """Only EXPENSE-type line items count as spending"""
    return getattr(item, "type", ExpenseType.EXPENSE) == ExpenseType.EXPENSE


def total_spent(items: Iterable) -> float:
    return sum(item.amount for item in items if is_spend(item))


@dataclass
class BudgetProgress:
    total_spent: float
    remaining: float
    percentage: float
    status: BudgetHealthStatus

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


def calculate_progress(amount: float, items: Iterable) -> BudgetProgress:
    """
    Compute spent/remaining/percentage/status for a budget.

    Args:
        amount: The budget amount
        items: Line items (anything with ``amount`` and ``type``);
            INCOME and TRANSFER items are ignored

    Returns:
        BudgetProgress with all money values rounded to the cent
    """
    spent = total_spent(items)
    percentage = percentage_of(spent, amount)
    return BudgetProgress(
        total_spent=round2(spent),
        remaining=round2(amount - spent),
        percentage=percentage,
        status=health_status(percentage),
    )
