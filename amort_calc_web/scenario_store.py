"""Persistence layer for saved loan scenarios.

The web app saves a scenario as its loan configuration (in the serialized
form defined by ``amort_calc.serialization``) plus the summary shown in the
scenario list. Loading a scenario restores the configuration; the schedule is
always rebuilt by the engine rather than read back. It defaults to SQLite for
local development, but accepts any SQLAlchemy-compatible URL.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

from amort_calc.data_models import LoanConfiguration
from amort_calc.serialization import ScheduleFormatError, config_from_dict, config_to_dict

logger = logging.getLogger(__name__)

Base = declarative_base()


class SavedScenarioModel(Base):
    __tablename__ = "saved_scenarios"

    id = Column(String(64), primary_key=True)
    user_token = Column(String(64), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    config_json = Column(Text, nullable=False)
    summary_json = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ScenarioStore:
    """Database-backed scenario store."""

    def __init__(self, url: str, *, max_per_user: int = 10) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_user = max_per_user

    def list_scenarios(self, user_token: str) -> List[Dict[str, Any]]:
        if not user_token:
            return []
        with self._session_factory() as session:
            rows: Iterable[SavedScenarioModel] = session.execute(
                select(SavedScenarioModel)
                .where(SavedScenarioModel.user_token == user_token)
                .order_by(SavedScenarioModel.created_at.asc())
            ).scalars()
            return [self._to_dict(row) for row in rows]

    def save_scenario(
        self,
        user_token: str,
        scenario_id: str,
        name: str,
        config: LoanConfiguration,
        summary: Dict[str, Any],
    ) -> None:
        if not user_token:
            return
        payload = SavedScenarioModel(
            id=scenario_id,
            user_token=user_token,
            name=name,
            config_json=json.dumps(config_to_dict(config)),
            summary_json=json.dumps(summary),
        )
        with self._session_factory() as session:
            session.add(payload)
            session.commit()
        self._trim_user(user_token)

    def load_config(self, user_token: str, scenario_id: str) -> Optional[LoanConfiguration]:
        """Return the saved configuration, or ``None`` if it is missing or unreadable."""
        if not user_token:
            return None
        with self._session_factory() as session:
            row = session.get(SavedScenarioModel, scenario_id)
            if row is None or row.user_token != user_token:
                return None
            raw = row.config_json
        try:
            return config_from_dict(json.loads(raw))
        except (json.JSONDecodeError, ScheduleFormatError) as exc:
            logger.warning("Saved scenario %s is corrupt: %s", scenario_id, exc)
            return None

    def remove_scenario(self, user_token: str, scenario_id: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            row = session.get(SavedScenarioModel, scenario_id)
            if row and row.user_token == user_token:
                session.delete(row)
                session.commit()

    def clear_scenarios(self, user_token: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            session.execute(
                SavedScenarioModel.__table__.delete().where(
                    SavedScenarioModel.user_token == user_token
                )
            )
            session.commit()

    def _trim_user(self, user_token: str) -> None:
        if not self._max_per_user or self._max_per_user < 0:
            return
        with self._session_factory() as session:
            rows = session.execute(
                select(SavedScenarioModel)
                .where(SavedScenarioModel.user_token == user_token)
                .order_by(SavedScenarioModel.created_at.desc())
            ).scalars().all()
            if len(rows) <= self._max_per_user:
                return
            for row in rows[self._max_per_user :]:
                session.delete(row)
            session.commit()

    @staticmethod
    def _to_dict(row: SavedScenarioModel) -> Dict[str, Any]:
        return {
            "id": row.id,
            "name": row.name,
            "summary": json.loads(row.summary_json),
            "created_at": row.created_at.isoformat(),
        }


def create_store_from_env(url: str | None) -> ScenarioStore:
    return ScenarioStore(url or "sqlite:///scenarios.sqlite3")
