"""
Budget Service

Owns the in-memory budget database for the session and is the only
thing that talks to the active store.

DESIGN DECISION: Mutations are optimistic.
1. The cached record is changed in place, immediately
2. A background task persists the full record for that month
3. The task's outcome is published as a notification - never raised,
   never rolled back

The cache is the source of truth for the session. The store is never
read back after a write, and a failed save leaves the change in memory;
the next successful save of that month carries it.

Loading is the one place that waits: select_month awaits the fetch so
nothing renders a record that late-arriving data would replace.
"""

import asyncio
from typing import Any, Callable, Iterable, Optional

import structlog
from pydantic import BaseModel

from budget_advisor.audit import AuditLogger
from budget_advisor.models.budget import (
    ExpenseCategory,
    ExpenseItem,
    IncomeItem,
    IncomeKind,
    MonthKey,
    MonthRecord,
    coerce_item_id,
    default_month_record,
    new_item_id,
)
from budget_advisor.services.notifications import NotificationCenter
from budget_advisor.services.storage import (
    BudgetStorageInterface,
    StorageError,
    UnauthenticatedError,
)


logger = structlog.get_logger(__name__)


class BudgetServiceError(Exception):
    """Base exception for budget service operations."""
    pass


class NoActiveMonthError(BudgetServiceError):
    """current() was called before any month was selected."""
    pass


class MonthLoadError(BudgetServiceError):
    """The store failed (not "not found") while loading a month."""

    def __init__(self, month_key: str, cause: StorageError):
        super().__init__(f"Could not load {month_key}: {cause}")
        self.month_key = month_key
        self.cause = cause


class PersistOutcome(BaseModel):
    """Result of one background save."""

    month_key: str
    success: bool
    error_message: Optional[str] = None


class BudgetSessionState:
    """
    Everything the session knows: the selected month and every month
    loaded so far, keyed by "YYYY-MM". Months are never evicted.
    """

    def __init__(self):
        self.active_key: Optional[MonthKey] = None
        self.cache: dict[str, MonthRecord] = {}
        # Bumped by every select_month; only the newest one may activate
        self.selection: int = 0


def _fresh_id(existing: Iterable[int]) -> int:
    taken = set(existing)
    item_id = new_item_id()
    while item_id in taken:
        item_id = new_item_id()
    return item_id


class BudgetService:
    """
    Month selection, cached reads and optimistic line-item edits.

    Every mutating operation returns the asyncio.Task that persists
    the month (add_expense_item returns None for a missing category);
    awaiting it is optional. Mutations need a running loop.
    """

    def __init__(
        self,
        storage: BudgetStorageInterface,
        notifications: Optional[NotificationCenter] = None,
        audit_logger: Optional[AuditLogger] = None,
        state: Optional[BudgetSessionState] = None,
    ):
        self._storage = storage
        self._notifications = notifications or NotificationCenter()
        self._audit_logger = audit_logger or AuditLogger()
        self._state = state or BudgetSessionState()
        self._pending: set[asyncio.Task] = set()

    @property
    def storage(self) -> BudgetStorageInterface:
        return self._storage

    @property
    def notifications(self) -> NotificationCenter:
        return self._notifications

    @property
    def active_key(self) -> Optional[MonthKey]:
        return self._state.active_key

    def cached_months(self) -> list[MonthKey]:
        return sorted(MonthKey.parse(key) for key in self._state.cache)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def select_month(self, key: MonthKey | str) -> MonthRecord:
        """
        Make a month the active one, loading it if needed.

        A month the store has never seen gets the default record, which
        is saved straight away. A store failure leaves the previously
        active month in place and raises MonthLoadError.

        If another month is selected while this one is loading, the later
        selection stays active; this record is still cached and returned.
        """
        key = MonthKey.coerce(key)
        month_key = str(key)
        self._state.selection += 1
        selection = self._state.selection

        cached = self._state.cache.get(month_key)
        if cached is not None:
            self._state.active_key = key
            return cached

        try:
            record = await self._storage.fetch(key)
        except StorageError as e:
            self._audit_logger.log_month_load_failed(month_key, e)
            self._notifications.error(f"Could not load {month_key}: {e}", month_key=month_key)
            raise MonthLoadError(month_key, e)

        # Another select of the same month may have finished while we waited
        cached = self._state.cache.get(month_key)
        if cached is not None:
            record = cached
        elif record is None:
            record = default_month_record()
            self._state.cache[month_key] = record
            self._audit_logger.log_month_created(month_key, self._storage.name)
            self._schedule_persist(key, record)
        else:
            self._state.cache[month_key] = record
            self._audit_logger.log_month_loaded(month_key, self._storage.name)

        if selection == self._state.selection:
            self._state.active_key = key
        else:
            logger.info("stale_month_selection_ignored", month_key=month_key)

        return record

    def current(self) -> MonthRecord:
        """The active month's record."""
        key = self._state.active_key
        if key is None or str(key) not in self._state.cache:
            raise NoActiveMonthError("No month has been selected yet")
        return self._state.cache[str(key)]

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _schedule_persist(
        self,
        key: MonthKey,
        record: MonthRecord,
        success_message: Optional[str] = None,
    ) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(
            self._persist(key, record, success_message)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _persist(
        self,
        key: MonthKey,
        record: MonthRecord,
        success_message: Optional[str],
    ) -> PersistOutcome:
        month_key = str(key)
        try:
            await self._storage.persist(key, record)
        except UnauthenticatedError as e:
            self._audit_logger.log_save_failed(month_key, e)
            self._notifications.error("Save failed: no active session", month_key=month_key)
            return PersistOutcome(month_key=month_key, success=False, error_message=str(e))
        except StorageError as e:
            self._audit_logger.log_save_failed(month_key, e)
            self._notifications.error(f"Save Failed: {e}", month_key=month_key)
            return PersistOutcome(month_key=month_key, success=False, error_message=str(e))
        except Exception as e:
            # Nothing may escape a background save
            logger.exception("unexpected_save_error", month_key=month_key)
            self._audit_logger.log_error(type(e).__name__, str(e), month_key=month_key)
            self._notifications.error(f"Save Failed: {e}", month_key=month_key)
            return PersistOutcome(month_key=month_key, success=False, error_message=str(e))

        self._audit_logger.log_record_saved(month_key, self._storage.name)
        if success_message:
            self._notifications.success(success_message, month_key=month_key)
        return PersistOutcome(month_key=month_key, success=True)

    async def flush(self) -> list[PersistOutcome]:
        """Wait for every in-flight save and return their outcomes."""
        if not self._pending:
            return []
        return list(await asyncio.gather(*list(self._pending)))

    def mutate(
        self,
        fn: Callable[[MonthRecord], Any],
        success_message: Optional[str] = None,
    ) -> asyncio.Task:
        """
        Apply fn to the active record in place, then save it in the background.

        The change is visible to current() as soon as this returns.
        """
        asyncio.get_running_loop()  # fail before touching the cache
        key = self._state.active_key
        record = self.current()
        fn(record)
        return self._schedule_persist(key, record, success_message)

    # -------------------------------------------------------------------------
    # Income
    # -------------------------------------------------------------------------

    def add_income(self, kind: IncomeKind | str, name: str, amount: Any) -> asyncio.Task:
        kind = IncomeKind(kind)
        existing = self.current().income_list(kind)
        item = IncomeItem(id=_fresh_id(i.id for i in existing), name=name, amount=amount)

        task = self.mutate(
            lambda record: record.income_list(kind).append(item),
            "Saved successfully",
        )
        self._audit_logger.log_item_added(str(self.active_key), f"income.{kind.value}", item.id)
        return task

    def edit_income(
        self,
        kind: IncomeKind | str,
        item_id: Any,
        name: str,
        amount: Any,
    ) -> asyncio.Task:
        """Replace an income item's name and amount; unknown ids are ignored."""
        kind = IncomeKind(kind)
        target_id = coerce_item_id(item_id)
        template = IncomeItem(id=0, name=name, amount=amount)

        def apply(record: MonthRecord) -> None:
            items = record.income_list(kind)
            for index, item in enumerate(items):
                if item.id == target_id:
                    items[index] = template.model_copy(update={"id": item.id})
                    return

        task = self.mutate(apply, "Saved successfully")
        self._audit_logger.log_item_edited(str(self.active_key), f"income.{kind.value}", item_id)
        return task

    def delete_income(self, kind: IncomeKind | str, item_id: Any) -> asyncio.Task:
        kind = IncomeKind(kind)
        target_id = coerce_item_id(item_id)

        def apply(record: MonthRecord) -> None:
            items = record.income_list(kind)
            items[:] = [item for item in items if item.id != target_id]

        task = self.mutate(apply, "Item deleted")
        self._audit_logger.log_item_deleted(str(self.active_key), f"income.{kind.value}", item_id)
        return task

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    def add_expense_item(
        self,
        category_id: str,
        name: str,
        projected: Any,
        actual: Any = 0,
    ) -> Optional[asyncio.Task]:
        """
        Append an item to a category.

        A missing category is ignored: nothing is saved, audited or
        announced, and None is returned instead of a save task.
        """
        category = self.current().find_category(category_id)
        existing = [i.id for i in category.items] if category else []
        item = ExpenseItem(
            id=_fresh_id(existing),
            name=name,
            projected=projected,
            actual=actual,
        )
        if category is None:
            logger.info("expense_category_not_found", category_id=category_id)
            return None

        task = self.mutate(
            lambda record: record.find_category(category_id).items.append(item),
            "Saved successfully",
        )
        self._audit_logger.log_item_added(str(self.active_key), f"expenses.{category_id}", item.id)
        return task

    def edit_expense_item(
        self,
        category_id: str,
        item_id: Any,
        name: str,
        projected: Any,
        actual: Any = None,
    ) -> asyncio.Task:
        """Update an expense item; actual is kept when not given."""
        target_id = coerce_item_id(item_id)
        template = ExpenseItem(
            id=0,
            name=name,
            projected=projected,
            actual=0 if actual is None else actual,
        )

        def apply(record: MonthRecord) -> None:
            category = record.find_category(category_id)
            if category is None:
                return
            for index, item in enumerate(category.items):
                if item.id == target_id:
                    update = {"id": item.id}
                    if actual is None:
                        update["actual"] = item.actual
                    category.items[index] = template.model_copy(update=update)
                    return

        task = self.mutate(apply, "Saved successfully")
        self._audit_logger.log_item_edited(str(self.active_key), f"expenses.{category_id}", item_id)
        return task

    def delete_expense_item(self, category_id: str, item_id: Any) -> asyncio.Task:
        target_id = coerce_item_id(item_id)

        def apply(record: MonthRecord) -> None:
            category = record.find_category(category_id)
            if category is not None:
                category.items[:] = [item for item in category.items if item.id != target_id]

        task = self.mutate(apply, "Expense deleted")
        self._audit_logger.log_item_deleted(str(self.active_key), f"expenses.{category_id}", item_id)
        return task

    def add_category(self, name: str) -> asyncio.Task:
        existing = {category.id for category in self.current().expenses}
        category_id = f"cat_{new_item_id()}"
        while category_id in existing:
            category_id = f"cat_{new_item_id()}"
        category = ExpenseCategory(id=category_id, name=name)

        task = self.mutate(
            lambda record: record.expenses.append(category),
            "Category added",
        )
        self._audit_logger.log_category_added(str(self.active_key), category.id, category.name)
        return task
