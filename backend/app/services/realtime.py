"""Reconcile an in-memory admin list with row-level change events.

``apply_change_event`` is a pure reducer over a list of row dicts.
``RealtimeListSync`` wraps it with the bookkeeping an admin table needs:
selection pruning, device-local state pruning, status toasts and a single
full refetch whenever an event cannot be merged.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union

from backend.app.core.constants import OPENED_QUOTES_KEY
from backend.app.schemas.realtime import ChangeEvent
from backend.app.services.local_state import LocalStateStore

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
Relevance = Callable[[Row], Optional[bool]]
Notifier = Callable[[str, str], None]

PAYMENT_STATUS_MESSAGES = {
    "paid": ("Payment has been approved!", "success"),
    "failed": ("Payment has been rejected", "error"),
    "pending_approval": ("New payment awaiting approval", "info"),
}

QUOTATION_STATUS_MESSAGES = {
    "paid": ("Quotation has been paid!", "success"),
    "pending": ("Quotation is now pending", "info"),
    "approved": ("Quotation has been approved", "info"),
    "rejected": ("Quotation has been rejected", "info"),
}


class RefetchRequired(Exception):
    """The event cannot be merged locally; the list must be reloaded."""


def _row_key(row: Mapping[str, Any], key: str) -> Optional[str]:
    value = row.get(key)
    return None if value is None else str(value)


def _merge(existing: Row, incoming: Row, preserve_fields: Sequence[str]) -> Row:
    merged = {**existing, **incoming}
    for field in preserve_fields:
        if incoming.get(field) is None and field in existing:
            merged[field] = existing[field]
    return merged


def apply_change_event(
    rows: Sequence[Row],
    event: ChangeEvent,
    *,
    key: str = "id",
    is_relevant: Optional[Relevance] = None,
    preserve_fields: Sequence[str] = (),
) -> Tuple[List[Row], List[str]]:
    """Apply one change event and return ``(new_rows, removed_ids)``.

    ``is_relevant`` answers whether a row belongs in this view: True, False,
    or None when it cannot tell. An INSERT with unknown relevance raises
    :class:`RefetchRequired`. Fields named in ``preserve_fields`` keep their
    current value when the incoming payload omits them or sends null.
    """
    current = [dict(row) for row in rows]

    if event.event_type == "DELETE":
        record = event.old or {}
        row_id = _row_key(record, key)
        if row_id is None:
            raise RefetchRequired("DELETE event without a row id")
        remaining = [row for row in current if _row_key(row, key) != row_id]
        return remaining, [row_id]

    record = event.new
    if not record:
        raise RefetchRequired(f"{event.event_type} event without a new row")
    row_id = _row_key(record, key)
    if row_id is None:
        raise RefetchRequired(f"{event.event_type} event without a row id")

    index = next((i for i, row in enumerate(current) if _row_key(row, key) == row_id), None)
    relevant = is_relevant(record) if is_relevant else True

    if event.event_type == "INSERT":
        if relevant is None:
            raise RefetchRequired("relevance of inserted row is unknown")
        if not relevant:
            return current, []
        if index is not None:
            current[index] = _merge(current[index], dict(record), preserve_fields)
            return current, []
        return [dict(record)] + current, []

    if index is not None:
        current[index] = _merge(current[index], dict(record), preserve_fields)
        return current, []
    if relevant is False:
        return current, []
    current.append(dict(record))
    return current, []


class RealtimeListSync:
    def __init__(
        self,
        refetch: Callable[[], Iterable[Row]],
        *,
        key: str = "id",
        is_relevant: Optional[Relevance] = None,
        preserve_fields: Sequence[str] = (),
        local_store: Optional[LocalStateStore] = None,
        local_keys: Sequence[str] = (),
        notify: Optional[Notifier] = None,
        status_messages: Optional[Mapping[str, Tuple[str, str]]] = None,
        status_fallback: Optional[str] = None,
        insert_message: Optional[str] = None,
        delete_message: Optional[str] = None,
        name: str = "rows",
    ):
        self.rows: List[Row] = []
        self.selected: Set[str] = set()
        self.key = key
        self.is_relevant = is_relevant
        self.preserve_fields = tuple(preserve_fields)
        self.local_store = local_store
        self.local_keys = tuple(local_keys)
        self.status_messages = dict(status_messages or {})
        self.status_fallback = status_fallback
        self.insert_message = insert_message
        self.delete_message = delete_message
        self.name = name
        self._refetch = refetch
        self._notify = notify
        self.refetch_count = 0

    def reload(self) -> List[Row]:
        self.rows = [dict(row) for row in self._refetch()]
        self.refetch_count += 1
        return self.rows

    def handle(self, payload: Union[ChangeEvent, Mapping[str, Any]]) -> None:
        """Merge one event; on any failure reload the whole list once."""
        try:
            event = payload if isinstance(payload, ChangeEvent) else ChangeEvent.model_validate(payload)
            rows, removed = apply_change_event(
                self.rows,
                event,
                key=self.key,
                is_relevant=self.is_relevant,
                preserve_fields=self.preserve_fields,
            )
            inserted = event.event_type == "INSERT" and len(rows) > len(self.rows)
            self.rows = rows
            for row_id in removed:
                self._forget(row_id)
        except RefetchRequired as exc:
            logger.info(f"[REALTIME] Reloading {self.name}: {exc}")
            self.reload()
            return
        except Exception as exc:
            logger.error(f"[REALTIME] Error handling {self.name} change, reloading: {exc}")
            self.reload()
            return

        # Notices are presentation only; a failing callback must not undo the merge.
        try:
            self._announce(event, inserted, bool(removed))
        except Exception as exc:
            logger.error(f"[REALTIME] Notification for {self.name} change failed: {exc}")

    def _forget(self, row_id: str) -> None:
        self.selected.discard(row_id)
        if self.local_store is None:
            return
        for local_key in self.local_keys:
            self.local_store.discard(local_key, row_id)

    def _announce(self, event: ChangeEvent, inserted: bool, removed: bool) -> None:
        if self._notify is None:
            return
        if inserted and self.insert_message:
            self._notify(self.insert_message, "info")
        elif removed and self.delete_message:
            self._notify(self.delete_message, "info")
        elif event.event_type == "UPDATE" and event.old is not None and event.new is not None:
            new_status = event.new.get("status")
            if new_status is None or event.old.get("status") == new_status:
                return
            if new_status in self.status_messages:
                message, level = self.status_messages[new_status]
                self._notify(message, level)
            elif self.status_fallback:
                self._notify(self.status_fallback.format(status=new_status), "info")


def payment_list_sync(application_id: str, refetch: Callable[[], Iterable[Row]], notify: Optional[Notifier] = None) -> RealtimeListSync:
    """Payments of one application; the cached exchange rate survives partial updates."""

    def is_relevant(row: Row) -> Optional[bool]:
        if row.get("application_id") is None:
            return None
        return str(row["application_id"]) == str(application_id)

    return RealtimeListSync(
        refetch,
        is_relevant=is_relevant,
        preserve_fields=("usd_to_php_rate",),
        notify=notify,
        status_messages=PAYMENT_STATUS_MESSAGES,
        name="payments",
    )


def quotation_list_sync(
    refetch: Callable[[], Iterable[Row]],
    local_store: Optional[LocalStateStore] = None,
    notify: Optional[Notifier] = None,
) -> RealtimeListSync:
    return RealtimeListSync(
        refetch,
        local_store=local_store,
        local_keys=(OPENED_QUOTES_KEY,),
        notify=notify,
        status_messages=QUOTATION_STATUS_MESSAGES,
        status_fallback="Quotation status changed to {status}",
        insert_message="New quotation received",
        delete_message="Quotation deleted",
        name="quotations",
    )


def client_list_sync(
    refetch: Callable[[], Iterable[Row]],
    notify: Optional[Notifier] = None,
) -> RealtimeListSync:
    def is_relevant(row: Row) -> Optional[bool]:
        if "role" not in row:
            return None
        return row["role"] == "client"

    return RealtimeListSync(
        refetch,
        is_relevant=is_relevant,
        notify=notify,
        insert_message="New client registered",
        name="clients",
    )
