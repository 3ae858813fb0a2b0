"""Persistence layer for saved EMI quotations.

A quotation is the set of loan terms a customer was quoted together with the
calculated summary (EMI, total interest, total payment). Quotations are kept
per user token so the web API can list, reopen and delete them. It defaults
to SQLite for local development, but accepts any SQLAlchemy-compatible URL
(e.g. PostgreSQL/MySQL).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

log = logging.getLogger(__name__)

Base = declarative_base()


class QuotationModel(Base):
    __tablename__ = "emi_quotations"

    id = Column(String(64), primary_key=True)
    user_token = Column(String(64), index=True, nullable=False)
    customer_name = Column(String(255), nullable=False)
    terms_json = Column(Text, nullable=False)
    summary_json = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class QuotationStore:
    """Database-backed quotation store."""

    def __init__(self, url: str, *, max_per_user: int = 50) -> None:
        engine_kwargs: Dict[str, Any] = {"future": True}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees an empty database
            engine_kwargs.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)
        self._engine = create_engine(url, **engine_kwargs)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_user = max_per_user

    def list_quotations(self, user_token: str) -> List[Dict[str, Any]]:
        if not user_token:
            return []
        with self._session_factory() as session:
            rows: Iterable[QuotationModel] = session.execute(
                select(QuotationModel)
                .where(QuotationModel.user_token == user_token)
                .order_by(QuotationModel.created_at.asc())
            ).scalars()
            return [self._to_dict(row) for row in rows]

    def get_quotation(self, user_token: str, quotation_id: str) -> Optional[Dict[str, Any]]:
        if not user_token:
            return None
        with self._session_factory() as session:
            row = session.get(QuotationModel, quotation_id)
            if row is None or row.user_token != user_token:
                return None
            return self._to_dict(row)

    def add_quotation(
        self, user_token: str, quotation_id: str, customer_name: str, terms: dict, summary: dict
    ) -> None:
        if not user_token:
            return
        payload = QuotationModel(
            id=quotation_id,
            user_token=user_token,
            customer_name=customer_name,
            terms_json=json.dumps(terms),
            summary_json=json.dumps(summary),
        )
        with self._session_factory() as session:
            session.add(payload)
            session.commit()
        log.info("Saved quotation %s for %s", quotation_id, customer_name)
        self._trim_user(user_token)

    def remove_quotation(self, user_token: str, quotation_id: str) -> bool:
        if not user_token:
            return False
        with self._session_factory() as session:
            row = session.get(QuotationModel, quotation_id)
            if row and row.user_token == user_token:
                session.delete(row)
                session.commit()
                return True
        return False

    def _trim_user(self, user_token: str) -> None:
        if not self._max_per_user or self._max_per_user < 0:
            return
        with self._session_factory() as session:
            rows = session.execute(
                select(QuotationModel)
                .where(QuotationModel.user_token == user_token)
                .order_by(QuotationModel.created_at.desc())
            ).scalars().all()
            if len(rows) <= self._max_per_user:
                return
            for row in rows[self._max_per_user :]:
                session.delete(row)
            session.commit()
            log.info("Trimmed %d old quotations", len(rows) - self._max_per_user)

    @staticmethod
    def _to_dict(row: QuotationModel) -> Dict[str, Any]:
        return {
            "id": row.id,
            "customer_name": row.customer_name,
            "terms": json.loads(row.terms_json),
            "summary": json.loads(row.summary_json),
            "created_at": row.created_at.isoformat(),
        }


def create_store_from_url(url: Optional[str], max_per_user: int = 50) -> QuotationStore:
    return QuotationStore(url or "sqlite:///quotation_data.sqlite3", max_per_user=max_per_user)
