"""Record stores for model providers and A2A agent servers.

Both kinds share one contract: insert with natural-key validation, partial
update, lookups, deletes, and the single-enabled helpers. Every public
method runs inside ``DatabaseHandle.locked()`` for its whole duration, so a
uniqueness check and the write that follows it cannot interleave with
another store call.

The single-enabled invariant is not enforced by the store. Callers run
``toggle_enabled`` then ``disable_others`` as two calls, which leaves a
window where two rows are enabled. ``enable_exclusively`` does both in one
transaction for callers that want the stronger guarantee.

Example:
    store = ModelProviderStore(handle)
    new_id = store.insert(ModelProviderCreate(model_key="deepseek", ...))
    store.update(new_id, ModelProviderPatch(enabled=True))
    store.disable_others(new_id)
"""

import logging
from typing import Any

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.orm import Session

from a2a_desk.db.connection import DatabaseHandle
from a2a_desk.db.models import AgentServer, ModelProvider, utc_now_iso
from a2a_desk.errors.domain import DuplicateKeyError, NotFoundError
from a2a_desk.services.record_types import (
    AgentServerRecord,
    ModelProviderRecord,
    build_update_assignments,
)
from a2a_desk.utils.redaction import redact_for_logging

logger = logging.getLogger(__name__)

_NO_SYNC = {"synchronize_session": False}


class RecordStore:
    """CRUD plus single-enabled helpers over one record kind.

    Subclasses set ``model`` (ORM class), ``record_type`` (pydantic read
    model), ``natural_key`` (unique column name) and ``label`` (used in
    messages).

    Args:
        handle: Shared database handle.
    """

    model: Any = None
    record_type: Any = None
    natural_key: str = ""
    label: str = ""

    def __init__(self, handle: DatabaseHandle) -> None:
        self._handle = handle

    # -- helpers -------------------------------------------------------------

    def _key_column(self):
        return getattr(self.model, self.natural_key)

    def _key_exists(self, session: Session, value: str, exclude_id: int | None = None) -> bool:
        """Check if the natural key is taken, optionally ignoring one row."""
        stmt = select(func.count()).select_from(self.model).where(self._key_column() == value)
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        return session.scalar(stmt) > 0

    def _to_record(self, row):
        return self.record_type.model_validate(row)

    def _select_one(self, *criteria):
        with self._handle.locked() as session:
            row = session.scalars(
                select(self.model).where(*criteria).order_by(self.model.id).limit(1)
            ).first()
            return self._to_record(row) if row is not None else None

    def _delete_where(self, description: str, *criteria) -> int:
        with self._handle.locked() as session:
            rowcount = session.execute(
                delete(self.model).where(*criteria).execution_options(**_NO_SYNC)
            ).rowcount
        logger.info("Deleted %s with %s, rows affected: %d", self.label, description, rowcount)
        return rowcount

    # -- create / update -----------------------------------------------------

    def insert(self, params) -> int:
        """Insert a new record.

        Args:
            params: Create model for this kind.

        Returns:
            The newly assigned id.

        Raises:
            DuplicateKeyError: If the natural key already exists. Storage is
                not touched in that case.
        """
        values = params.model_dump()
        logger.info("Insert %s params: %s", self.label, redact_for_logging(values))

        key_value = values[self.natural_key]
        with self._handle.locked() as session:
            if self._key_exists(session, key_value):
                raise DuplicateKeyError(self.label, self.natural_key, key_value)
            row = self.model(**values)
            session.add(row)
            session.flush()
            new_id = row.id

        logger.info("Inserted %s with id: %d", self.label, new_id)
        return new_id

    def update(self, record_id: int, patch) -> int:
        """Rewrite only the fields present in the patch.

        Args:
            record_id: Row id.
            patch: Patch model for this kind.

        Returns:
            Rows changed (0 or 1). An empty patch returns 0 without a write.

        Raises:
            DuplicateKeyError: If the patch moves the natural key onto a value
                another row already holds.
        """
        assignments = build_update_assignments(patch)
        logger.info(
            "Update %s params: id=%d, %s", self.label, record_id, redact_for_logging(assignments)
        )
        if not assignments:
            return 0

        assignments["updated_at"] = utc_now_iso()
        with self._handle.locked() as session:
            if self.natural_key in assignments and self._key_exists(
                session, assignments[self.natural_key], exclude_id=record_id
            ):
                raise DuplicateKeyError(
                    self.label, self.natural_key, assignments[self.natural_key]
                )
            rowcount = session.execute(
                update(self.model)
                .where(self.model.id == record_id)
                .values(**assignments)
                .execution_options(**_NO_SYNC)
            ).rowcount

        logger.info(
            "Updated %s with id: %d, rows affected: %d", self.label, record_id, rowcount
        )
        return rowcount

    # -- queries -------------------------------------------------------------

    def get_all(self) -> list:
        """Return all records ordered by ascending id."""
        with self._handle.locked() as session:
            rows = session.scalars(select(self.model).order_by(self.model.id)).all()
            return [self._to_record(r) for r in rows]

    def get_by_id(self, record_id: int):
        """Return the record with this id, or None."""
        return self._select_one(self.model.id == record_id)

    def get_enabled(self) -> list:
        """Return enabled records ordered by ascending id."""
        with self._handle.locked() as session:
            rows = session.scalars(
                select(self.model)
                .where(self.model.enabled.is_(True))
                .order_by(self.model.id)
            ).all()
            return [self._to_record(r) for r in rows]

    def require(self, record_id: int):
        """Return the record with this id.

        Raises:
            NotFoundError: If no such record exists.
        """
        record = self.get_by_id(record_id)
        if record is None:
            raise NotFoundError(self.label, record_id)
        return record

    # -- deletes -------------------------------------------------------------

    def delete_by_id(self, record_id: int) -> int:
        """Delete by id. A missing id returns 0."""
        return self._delete_where(f"id: {record_id}", self.model.id == record_id)

    # -- single-enabled helpers ----------------------------------------------

    def toggle_enabled(self, record_id: int) -> int:
        """Flip the enabled flag in place.

        Returns:
            Rows affected (0 when the id does not exist).
        """
        with self._handle.locked() as session:
            rowcount = session.execute(
                update(self.model)
                .where(self.model.id == record_id)
                .values(
                    enabled=case((self.model.enabled.is_(True), False), else_=True),
                    updated_at=utc_now_iso(),
                )
                .execution_options(**_NO_SYNC)
            ).rowcount
        logger.info(
            "Toggled enabled status for %s with id: %d, rows affected: %d",
            self.label, record_id, rowcount,
        )
        return rowcount

    def disable_others(self, except_id: int) -> int:
        """Clear enabled on every enabled row other than ``except_id``.

        Returns:
            Rows affected (0 when no other row was enabled).
        """
        with self._handle.locked() as session:
            rowcount = session.execute(
                update(self.model)
                .where(self.model.id != except_id, self.model.enabled.is_(True))
                .values(enabled=False, updated_at=utc_now_iso())
                .execution_options(**_NO_SYNC)
            ).rowcount
        logger.info("Disabled other %s rows, rows affected: %d", self.label, rowcount)
        return rowcount

    def enable_exclusively(self, record_id: int) -> int:
        """Enable one record and disable all others in a single transaction.

        Returns:
            Rows whose flag changed.

        Raises:
            NotFoundError: If the id does not exist. Nothing is changed.
        """
        now = utc_now_iso()
        with self._handle.locked() as session:
            if session.get(self.model, record_id) is None:
                raise NotFoundError(self.label, record_id)
            enabled = session.execute(
                update(self.model)
                .where(self.model.id == record_id, self.model.enabled.is_(False))
                .values(enabled=True, updated_at=now)
                .execution_options(**_NO_SYNC)
            ).rowcount
            disabled = session.execute(
                update(self.model)
                .where(self.model.id != record_id, self.model.enabled.is_(True))
                .values(enabled=False, updated_at=now)
                .execution_options(**_NO_SYNC)
            ).rowcount
        logger.info(
            "Enabled %s %d exclusively (enabled=%d, disabled=%d)",
            self.label, record_id, enabled, disabled,
        )
        return enabled + disabled


class ModelProviderStore(RecordStore):
    """Store for LLM model provider records, keyed by ``model_key``."""

    model = ModelProvider
    record_type = ModelProviderRecord
    natural_key = "model_key"
    label = "Model provider"

    def get_by_key(self, model_key: str) -> ModelProviderRecord | None:
        """Return the provider with this key, or None."""
        return self._select_one(ModelProvider.model_key == model_key)

    def delete_by_key(self, model_key: str) -> int:
        """Delete by model_key. A missing key returns 0."""
        return self._delete_where(
            f"model_key: {model_key}", ModelProvider.model_key == model_key
        )


class AgentServerStore(RecordStore):
    """Store for A2A agent server records, keyed by ``agent_card_url``."""

    model = AgentServer
    record_type = AgentServerRecord
    natural_key = "agent_card_url"
    label = "A2A server"

    def get_by_url(self, url: str) -> AgentServerRecord | None:
        """Return the server with this agent card URL, or None."""
        return self._select_one(AgentServer.agent_card_url == url)

    def get_by_name(self, name: str) -> AgentServerRecord | None:
        """Return the lowest-id server with this display name, or None."""
        return self._select_one(AgentServer.name == name)

    def delete_by_url(self, url: str) -> int:
        """Delete by agent card URL. A missing URL returns 0."""
        return self._delete_where(f"url: {url}", AgentServer.agent_card_url == url)

    def delete_by_name(self, name: str) -> int:
        """Delete every server with this display name.

        Names are not unique, so the count may exceed 1.
        """
        return self._delete_where(f"name: {name}", AgentServer.name == name)
