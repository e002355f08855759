from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    func,
    text,
    true,
)

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class OrganizationSettings(Base):
    __tablename__ = 'organization_settings'

    organization_id = Column(Integer, primary_key=True, autoincrement=False)
    utc_offset_minutes = Column(Integer, nullable=False, server_default=text('-180'))
    default_slot_minutes = Column(Integer, nullable=False, server_default=text('30'))
    default_duration_minutes = Column(Integer, nullable=False, server_default=text('30'))
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Salespeople(Base):
    __tablename__ = 'salespeople'
    __table_args__ = (
        CheckConstraint('leads_received_in_cycle >= 0', name='ck_salespeople_counter_non_negative'),
        CheckConstraint('target_share_percent >= 0', name='ck_salespeople_share_non_negative'),
        Index('idx_salespeople_org_active', 'organization_id', 'active'),
    )

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, nullable=False)
    name = Column(Text, nullable=False)
    email = Column(Text)
    whatsapp = Column(Text)
    target_share_percent = Column(Float, nullable=False, server_default=text('50'))
    active = Column(Boolean, nullable=False, server_default=true())
    leads_received_in_cycle = Column(Integer, nullable=False, server_default=text('0'))
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    availability_rules = relationship(
        'AvailabilityRules', back_populates='salesperson', cascade='all, delete-orphan', passive_deletes=True
    )
    blackouts = relationship(
        'Blackouts', back_populates='salesperson', cascade='all, delete-orphan', passive_deletes=True
    )
    appointments = relationship(
        'Appointments', back_populates='salesperson', cascade='all, delete-orphan', passive_deletes=True
    )


class AvailabilityRules(Base):
    __tablename__ = 'availability_rules'
    __table_args__ = (
        CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_availability_rules_day'),
        CheckConstraint('start_time < end_time', name='ck_availability_rules_window'),
        CheckConstraint('slot_minutes > 0', name='ck_availability_rules_slot'),
        Index('idx_availability_rules_sp_day', 'salesperson_id', 'day_of_week'),
    )

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, nullable=False)
    salesperson_id = Column(ForeignKey('salespeople.id', ondelete='CASCADE'), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday
    start_time = Column(Text, nullable=False)  # "HH:MM", local
    end_time = Column(Text, nullable=False)
    slot_minutes = Column(Integer, nullable=False, server_default=text('30'))
    created_at = Column(DateTime, server_default=func.now())

    salesperson = relationship('Salespeople', back_populates='availability_rules')


class Blackouts(Base):
    __tablename__ = 'blackouts'
    __table_args__ = (
        CheckConstraint('starts_at < ends_at', name='ck_blackouts_window'),
        Index('idx_blackouts_sp_range', 'salesperson_id', 'starts_at', 'ends_at'),
    )

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, nullable=False)
    salesperson_id = Column(ForeignKey('salespeople.id', ondelete='CASCADE'), nullable=False)
    starts_at = Column(DateTime, nullable=False)  # naive UTC
    ends_at = Column(DateTime, nullable=False)
    reason = Column(Text)
    created_at = Column(DateTime, server_default=func.now())

    salesperson = relationship('Salespeople', back_populates='blackouts')


class Appointments(Base):
    __tablename__ = 'appointments'
    __table_args__ = (
        CheckConstraint('duration_minutes > 0', name='ck_appointments_duration'),
        # One live appointment per salesperson per instant
        Index(
            'uq_appointments_sp_slot_active',
            'salesperson_id',
            'scheduled_at',
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
        Index('idx_appointments_org_scheduled', 'organization_id', 'scheduled_at'),
        Index('idx_appointments_lead', 'organization_id', 'lead_id'),
    )

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, nullable=False)
    salesperson_id = Column(ForeignKey('salespeople.id', ondelete='CASCADE'), nullable=False)
    lead_id = Column(Text)  # CRM reference, opaque
    scheduled_at = Column(DateTime, nullable=False)  # naive UTC
    duration_minutes = Column(Integer, nullable=False, server_default=text('30'))
    notes = Column(Text)
    status = Column(Text, nullable=False, server_default=text("'scheduled'"))
    cancel_reason = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    salesperson = relationship('Salespeople', back_populates='appointments')
