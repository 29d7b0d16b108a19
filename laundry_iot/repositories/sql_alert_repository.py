"""
SQL Alert Repository - SQLAlchemy-backed maintenance alert store

The maintenance_alerts table carries a partial unique index on
(equipment_id, type) restricted to OPEN/ACKNOWLEDGED rows, so concurrent
ingestion for the same equipment cannot create two active alerts. An
IntegrityError on insert or on reactivating a closed alert surfaces as
AlertConflictError.

Storage errors other than the uniqueness conflict propagate unmodified.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

import structlog
from sqlalchemy import JSON, DateTime, Index, String, Text, case, create_engine, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from laundry_iot.errors import AlertConflictError, NotFoundError
from laundry_iot.models.alerts import (
    AlertFilters,
    AlertSeverity,
    AlertStatus,
    MaintenanceAlert,
    MaintenanceAlertType,
)
from laundry_iot.models.telemetry import ensure_aware
from laundry_iot.repositories.alert_repository import AlertRepository, _check_fields

logger = structlog.get_logger(__name__)

ACTIVE_STATUS_CLAUSE = "status IN ('OPEN', 'ACKNOWLEDGED')"

SEVERITY_ORDER = {severity.value: severity.rank for severity in AlertSeverity}


class Base(DeclarativeBase):
    pass


class AlertRecord(Base):
    """maintenance_alerts row"""

    __tablename__ = "maintenance_alerts"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    equipment_id: Mapped[str] = mapped_column(String(64), index=True)
    tenant_id: Mapped[str] = mapped_column(String(64), index=True)
    type: Mapped[str] = mapped_column(String(32))
    severity: Mapped[str] = mapped_column(String(16))
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text)
    recommendation: Mapped[str] = mapped_column(Text)
    trigger_data: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    status: Mapped[str] = mapped_column(String(16), default=AlertStatus.OPEN.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    acknowledged_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    acknowledgement_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    resolution: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index(
            "uq_active_alert_equipment_type",
            "equipment_id",
            "type",
            unique=True,
            sqlite_where=text(ACTIVE_STATUS_CLAUSE),
            postgresql_where=text(ACTIVE_STATUS_CLAUSE),
        ),
        Index("idx_tenant_severity", "tenant_id", "severity"),
    )


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return ensure_aware(value).astimezone(timezone.utc)


def _to_record(alert: MaintenanceAlert) -> AlertRecord:
    return AlertRecord(
        id=alert.id,
        equipment_id=alert.equipment_id,
        tenant_id=alert.tenant_id,
        type=alert.type.value,
        severity=alert.severity.value,
        title=alert.title,
        description=alert.description,
        recommendation=alert.recommendation,
        trigger_data=dict(alert.trigger_data),
        status=alert.status.value,
        created_at=_to_utc(alert.created_at),
        acknowledged_at=_to_utc(alert.acknowledged_at),
        acknowledgement_notes=alert.acknowledgement_notes,
        resolved_at=_to_utc(alert.resolved_at),
        resolution=alert.resolution,
    )


def _to_model(record: AlertRecord) -> MaintenanceAlert:
    # SQLite hands back naive datetimes; everything is stored as UTC
    return MaintenanceAlert(
        id=record.id,
        equipment_id=record.equipment_id,
        tenant_id=record.tenant_id,
        type=MaintenanceAlertType(record.type),
        severity=AlertSeverity(record.severity),
        title=record.title,
        description=record.description,
        recommendation=record.recommendation,
        trigger_data=dict(record.trigger_data or {}),
        status=AlertStatus(record.status),
        created_at=ensure_aware(record.created_at),
        acknowledged_at=ensure_aware(record.acknowledged_at) if record.acknowledged_at else None,
        acknowledgement_notes=record.acknowledgement_notes,
        resolved_at=ensure_aware(record.resolved_at) if record.resolved_at else None,
        resolution=record.resolution,
    )


class SqlAlertRepository(AlertRepository):
    """Repository for maintenance alerts on any SQLAlchemy database."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, url: str, echo: bool = False, create_schema: bool = True):
        engine = create_engine(url, echo=echo, future=True)
        repo = cls(engine)
        if create_schema:
            repo.create_schema()
        return repo

    @classmethod
    def from_settings(cls, database_settings, create_schema: bool = True):
        return cls.from_url(
            database_settings.url, echo=database_settings.echo, create_schema=create_schema
        )

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)
        logger.info("alert_schema_ready", url=str(self.engine.url))

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @staticmethod
    def _active_query(equipment_id: str):
        return select(AlertRecord).where(
            AlertRecord.equipment_id == equipment_id,
            AlertRecord.status.in_([s.value for s in (AlertStatus.OPEN, AlertStatus.ACKNOWLEDGED)]),
        )

    def find_open_alert(self, equipment_id, alert_type):
        with self._session() as session:
            record = session.scalars(
                self._active_query(equipment_id)
                .where(AlertRecord.type == alert_type.value)
                .limit(1)
            ).first()
            return _to_model(record) if record else None

    def find_active_alerts(self, equipment_id):
        with self._session() as session:
            records = session.scalars(
                self._active_query(equipment_id).order_by(AlertRecord.created_at)
            ).all()
            return [_to_model(r) for r in records]

    def create_alert(self, alert):
        with self._session() as session:
            session.add(_to_record(alert))
        logger.info("alert_created", alert_id=alert.id, equipment_id=alert.equipment_id)
        return alert

    def create_if_absent(self, alert):
        session = self._session_factory()
        try:
            existing = session.scalars(
                self._active_query(alert.equipment_id)
                .where(AlertRecord.type == alert.type.value)
                .limit(1)
            ).first()
            if existing is not None:
                session.rollback()
                raise AlertConflictError(alert.equipment_id, alert.type.value)

            session.add(_to_record(alert))
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                logger.info(
                    "alert_conflict",
                    equipment_id=alert.equipment_id,
                    alert_type=alert.type.value,
                )
                raise AlertConflictError(alert.equipment_id, alert.type.value) from exc
        finally:
            session.close()

        logger.info("alert_created", alert_id=alert.id, equipment_id=alert.equipment_id)
        return alert

    def get_alert(self, alert_id):
        with self._session() as session:
            record = session.get(AlertRecord, alert_id)
            return _to_model(record) if record else None

    def update_alert_status(self, alert_id, status, **fields):
        _check_fields(fields)
        with self._session() as session:
            record = session.get(AlertRecord, alert_id)
            if record is None:
                raise NotFoundError("MaintenanceAlert", alert_id)
            if status.is_active:
                other = session.scalars(
                    self._active_query(record.equipment_id)
                    .where(AlertRecord.type == record.type, AlertRecord.id != alert_id)
                    .limit(1)
                ).first()
                if other is not None:
                    raise AlertConflictError(record.equipment_id, record.type)
            record.status = status.value
            for name, value in fields.items():
                if isinstance(value, datetime):
                    value = _to_utc(value)
                setattr(record, name, value)
            try:
                session.flush()
            except IntegrityError as exc:
                logger.info(
                    "alert_conflict", equipment_id=record.equipment_id, alert_type=record.type
                )
                raise AlertConflictError(record.equipment_id, record.type) from exc
            updated = _to_model(record)
        logger.info("alert_status_updated", alert_id=alert_id, status=status.value)
        return updated

    def list_alerts(self, tenant_id, filters=None):
        filters = filters or AlertFilters()
        query = select(AlertRecord).where(AlertRecord.tenant_id == tenant_id)
        if filters.status is not None:
            query = query.where(AlertRecord.status == filters.status.value)
        if filters.severity is not None:
            query = query.where(AlertRecord.severity == filters.severity.value)
        if filters.type is not None:
            query = query.where(AlertRecord.type == filters.type.value)
        if filters.equipment_id is not None:
            query = query.where(AlertRecord.equipment_id == filters.equipment_id)
        query = query.order_by(
            case(SEVERITY_ORDER, value=AlertRecord.severity, else_=-1).desc(),
            AlertRecord.created_at.desc(),
        )
        with self._session() as session:
            return [_to_model(r) for r in session.scalars(query).all()]
