# reportflow/db/models.py
from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Column, Date, DateTime, Float, ForeignKey,
    Integer, String, Text, Time, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Employee(Base):
    __tablename__ = "employees"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    full_name = Column(String(100))
    title = Column(String(100), nullable=True)
    phone = Column(String(30), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="employee")
    __table_args__ = (CheckConstraint("role IN ('employee', 'admin')"),)
    reports = relationship("ActivityReport", back_populates="owner", foreign_keys="ActivityReport.employee_id")


class ActivityReport(Base):
    __tablename__ = "activity_reports"
    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    activity_date = Column(Date, nullable=False, index=True)
    category = Column(String(50), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    target_output = Column(Text, nullable=True)
    result_output = Column(Text, nullable=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=0)
    location = Column(String(200), nullable=True)
    obstacles = Column(Text, nullable=True)
    solution = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="Draft")
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    verifier_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    verification_note = Column(Text, nullable=True)
    quality_rating = Column(Float, nullable=True)
    is_edited = Column(Boolean, nullable=False, default=False)
    edit_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
    __table_args__ = (
        CheckConstraint("status IN ('Draft', 'Submitted', 'Verified', 'Rejected', 'NeedsRevision')"),
        CheckConstraint("quality_rating IS NULL OR (quality_rating >= 0 AND quality_rating <= 5)"),
    )
    owner = relationship("Employee", back_populates="reports", foreign_keys=[employee_id])
    verifier = relationship("Employee", foreign_keys=[verifier_id])


class SupervisorRelation(Base):
    __tablename__ = "supervisor_relations"
    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    supervisor_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    kind = Column(String(20), nullable=False, default="Direct")
    is_active = Column(Boolean, nullable=False, default=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    __table_args__ = (
        CheckConstraint("employee_id <> supervisor_id"),
        CheckConstraint("kind IN ('Direct', 'Indirect')"),
    )
    employee = relationship("Employee", foreign_keys=[employee_id])
    supervisor = relationship("Employee", foreign_keys=[supervisor_id])


class DailyAggregate(Base):
    __tablename__ = "daily_aggregates"
    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    activity_date = Column(Date, nullable=False)
    report_count = Column(Integer, nullable=False, default=0)
    total_duration_minutes = Column(Integer, nullable=False, default=0)
    verified_count = Column(Integer, nullable=False, default=0)
    pending_count = Column(Integer, nullable=False, default=0)
    rejected_count = Column(Integer, nullable=False, default=0)
    productivity_percent = Column(Float, nullable=False, default=0.0)
    average_rating = Column(Float, nullable=False, default=0.0)
    is_complete = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
    __table_args__ = (UniqueConstraint("employee_id", "activity_date", name="uq_daily_aggregate_key"),)


class MonthlyAggregate(Base):
    __tablename__ = "monthly_aggregates"
    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    report_count = Column(Integer, nullable=False, default=0)
    total_duration_minutes = Column(Integer, nullable=False, default=0)
    average_reports_per_day = Column(Float, nullable=False, default=0.0)
    verified_count = Column(Integer, nullable=False, default=0)
    pending_count = Column(Integer, nullable=False, default=0)
    rejected_count = Column(Integer, nullable=False, default=0)
    revision_count = Column(Integer, nullable=False, default=0)
    verification_percent = Column(Float, nullable=False, default=0.0)
    average_rating = Column(Float, nullable=False, default=0.0)
    category_breakdown = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
    __table_args__ = (UniqueConstraint("employee_id", "year", "month", name="uq_monthly_aggregate_key"),)


class Notification(Base):
    __tablename__ = "notifications"
    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    category = Column(String(20), nullable=False, default="Info")
    report_id = Column(Integer, ForeignKey("activity_reports.id", ondelete="SET NULL"), nullable=True)
    link = Column(String(255), nullable=True)
    action_required = Column(Boolean, nullable=False, default=False)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    __table_args__ = (CheckConstraint("category IN ('Verified', 'Rejected', 'Comment', 'Info')"),)


class DeliveryLog(Base):
    __tablename__ = "delivery_logs"
    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    phone = Column(String(30), nullable=False)
    message = Column(String(500), nullable=False)
    outcome = Column(String(10), nullable=False)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    __table_args__ = (CheckConstraint("outcome IN ('sent', 'failed')"),)


class ActivityLog(Base):
    """Audit trail of who changed what, with row snapshots before and after."""

    __tablename__ = "activity_logs"
    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    action = Column(String(20), nullable=False)
    module = Column(String(50), nullable=False, index=True)
    detail = Column(Text, nullable=True)
    data_before = Column(JSON, nullable=True)
    data_after = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(255), nullable=True)
    endpoint = Column(String(255), nullable=True)
    method = Column(String(10), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    __table_args__ = (CheckConstraint("action IN ('Create', 'Update', 'Delete')"),)
    actor = relationship("Employee")
