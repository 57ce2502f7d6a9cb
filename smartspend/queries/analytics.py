"""
Spending Analytics

DESIGN DECISION: Reports are computed, never stored.
Every figure below is a Decimal sum over the transactions the storage
collaborator returns for one scope. Nothing is estimated or cached, so a
report always reflects exactly what was saved.

Months are "YYYY-MM" strings matched against the transaction date.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional

from smartspend.models.budget import Budget, BudgetStatus, MonthlyTotals
from smartspend.models.transaction import StorageScope, Transaction, TransactionType
from smartspend.services.storage import ReceiptStorageInterface


PERCENTAGE_CAP = Decimal("100")


def _in_month(transaction: Transaction, month: Optional[str]) -> bool:
    return month is None or transaction.date.isoformat().startswith(month)


def _sum(transactions) -> Decimal:
    return sum((t.amount for t in transactions), Decimal("0"))


class SpendingAnalytics:
    """
    Aggregates over stored transactions.

    Backs the check_spending, show_reports and show_budget commands.
    """

    def __init__(self, storage: ReceiptStorageInterface):
        self._storage = storage

    async def _of_type(
        self,
        scope: StorageScope,
        transaction_type: TransactionType,
        month: Optional[str],
        category: Optional[str] = None,
    ) -> list[Transaction]:
        transactions = await self._storage.list_transactions(
            scope,
            transaction_type=transaction_type,
            category=category,
        )
        return [t for t in transactions if _in_month(t, month)]

    async def total_expenses(
        self,
        scope: StorageScope,
        month: Optional[str] = None,
    ) -> Decimal:
        """Sum of expenses, optionally for one month."""
        return _sum(await self._of_type(scope, TransactionType.EXPENSE, month))

    async def total_income(
        self,
        scope: StorageScope,
        month: Optional[str] = None,
    ) -> Decimal:
        """Sum of income, optionally for one month."""
        return _sum(await self._of_type(scope, TransactionType.INCOME, month))

    async def category_spending(
        self,
        scope: StorageScope,
        category: str,
        month: Optional[str] = None,
    ) -> Decimal:
        """Expenses in one category (case-insensitive), optionally for one month."""
        return _sum(await self._of_type(
            scope, TransactionType.EXPENSE, month, category=category
        ))

    async def expenses_by_category(
        self,
        scope: StorageScope,
        month: Optional[str] = None,
    ) -> dict[str, Decimal]:
        """Expense totals keyed by category, in first-seen order."""
        totals: dict[str, Decimal] = {}
        for t in await self._of_type(scope, TransactionType.EXPENSE, month):
            totals[t.category] = totals.get(t.category, Decimal("0")) + t.amount
        return totals

    async def monthly_totals(self, scope: StorageScope) -> list[MonthlyTotals]:
        """Income and expense per month, oldest month first."""
        months: dict[str, dict[str, Decimal]] = defaultdict(
            lambda: {"income": Decimal("0"), "expense": Decimal("0")}
        )
        for t in await self._storage.list_transactions(scope):
            bucket = months[t.date.isoformat()[:7]]
            if t.type == TransactionType.INCOME:
                bucket["income"] += t.amount
            else:
                bucket["expense"] += t.amount

        return [
            MonthlyTotals(month=month, **sums)
            for month, sums in sorted(months.items())
        ]

    async def budget_status(
        self,
        scope: StorageScope,
        budgets: list[Budget],
        today: Optional[date] = None,
    ) -> list[BudgetStatus]:
        """
        Compare each budget with the current month's expenses.

        The budget's own `month` is informational; spending is always read
        for the month containing `today`.
        """
        current_month = (today or date.today()).isoformat()[:7]
        spent_by_category = await self.expenses_by_category(scope, current_month)

        statuses = []
        for budget in budgets:
            spent = spent_by_category.get(budget.category, Decimal("0"))
            percentage = min(PERCENTAGE_CAP, spent / budget.limit * 100)
            statuses.append(BudgetStatus(
                **budget.model_dump(),
                spent=spent,
                remaining=budget.limit - spent,
                percentage=float(percentage),
            ))
        return statuses
