"""Persistence layer for user input snapshots.

The calculator remembers the last loan configuration and monthly payment of
each user. They are kept as a tiny key-value table with two named entries per
user token: ``loan_config`` (JSON) and ``monthly_payment`` (plain string).
The engine never sees this module; the web layer loads a ``LoanSnapshot``
before a computation and saves one afterwards.

The store defaults to SQLite for local development, but accepts any
SQLAlchemy-compatible URL.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine, delete, select
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from tuition_loan.data_models import DEFAULT_CONFIG, LoanSnapshot
from tuition_loan.engine import suggested_payment_for
from tuition_loan.utils import config_from_dict, config_to_dict, decimal_from_str, validate_payment

logger = logging.getLogger(__name__)

Base = declarative_base()

CONFIG_KEY = "loan_config"
PAYMENT_KEY = "monthly_payment"


class SnapshotEntryModel(Base):
    __tablename__ = "snapshot_entries"

    user_token = Column(String(64), primary_key=True)
    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


def default_snapshot() -> LoanSnapshot:
    return LoanSnapshot(config=DEFAULT_CONFIG, monthly_payment=suggested_payment_for(DEFAULT_CONFIG))


class SnapshotStore:
    """Database-backed key-value store for ``LoanSnapshot`` objects."""

    def __init__(self, url: str) -> None:
        engine_kwargs = {"future": True}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # A single shared connection keeps the in-memory database alive
            engine_kwargs.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)
        self._engine = create_engine(url, **engine_kwargs)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def _read_entries(self, user_token: str) -> Dict[str, str]:
        with self._session_factory() as session:
            rows = session.execute(
                select(SnapshotEntryModel).where(SnapshotEntryModel.user_token == user_token)
            ).scalars()
            return {row.key: row.value for row in rows}

    def load_snapshot(self, user_token: Optional[str]) -> LoanSnapshot:
        """Return the stored snapshot, falling back to defaults.

        Each entry is restored independently: an unparsable configuration
        falls back to ``DEFAULT_CONFIG`` and a missing or unparsable payment
        falls back to the suggested payment for the default configuration.
        """
        fallback = default_snapshot()
        if not user_token:
            return fallback
        entries = self._read_entries(user_token)

        config = fallback.config
        raw_config = entries.get(CONFIG_KEY)
        if raw_config is not None:
            try:
                config = config_from_dict(json.loads(raw_config))
            except (ValueError, TypeError, AttributeError) as exc:
                logger.warning("Ignoring unparsable loan config for %s: %s", user_token, exc)

        payment = fallback.monthly_payment
        raw_payment = entries.get(PAYMENT_KEY)
        if raw_payment is not None:
            try:
                payment = validate_payment(decimal_from_str(raw_payment))
            except ValueError as exc:
                logger.warning("Ignoring unparsable monthly payment for %s: %s", user_token, exc)

        return LoanSnapshot(config=config, monthly_payment=payment)

    def save_snapshot(self, user_token: str, snapshot: LoanSnapshot) -> None:
        if not user_token:
            return
        values = {
            CONFIG_KEY: json.dumps(config_to_dict(snapshot.config)),
            PAYMENT_KEY: str(snapshot.monthly_payment),
        }
        with self._session_factory() as session:
            for key, value in values.items():
                row = session.get(SnapshotEntryModel, (user_token, key))
                if row is None:
                    session.add(SnapshotEntryModel(user_token=user_token, key=key, value=value))
                else:
                    row.value = value
            session.commit()
        logger.debug("Saved snapshot for %s", user_token)

    def clear_snapshot(self, user_token: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            session.execute(delete(SnapshotEntryModel).where(SnapshotEntryModel.user_token == user_token))
            session.commit()


def create_store_from_env(url: Optional[str]) -> SnapshotStore:
    return SnapshotStore(url or "sqlite:///snapshot_data.sqlite3")
