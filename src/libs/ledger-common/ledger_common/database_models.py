# src/libs/ledger-common/ledger_common/database_models.py
from sqlalchemy import (
    Column, Integer,
    String, Numeric, DateTime,
    Date, func,
    ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import relationship

from .db_base import Base


class ClientProfile(Base):
    __tablename__ = 'client_profiles'

    id = Column(String, primary_key=True)
    level = Column(String, nullable=False)
    organization_id = Column(String, index=True, nullable=True)
    parent_client_id = Column(String, ForeignKey('client_profiles.id'), index=True, nullable=True)
    company_name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())

    parent_client = relationship("ClientProfile", remote_side=[id], back_populates="sub_clients")
    sub_clients = relationship("ClientProfile", back_populates="parent_client")


class User(Base):
    __tablename__ = 'users'

    id = Column(String, primary_key=True)
    auth_subject = Column(String, unique=True, index=True, nullable=False)
    level = Column(String, nullable=False)
    client_profile_id = Column(String, ForeignKey('client_profiles.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())

    client_profile = relationship("ClientProfile", lazy="joined")


class MasterAccount(Base):
    __tablename__ = 'master_accounts'

    id = Column(String, primary_key=True)
    account_number = Column(String, unique=True, nullable=False)
    account_name = Column(String, nullable=False)
    client_profile_id = Column(String, ForeignKey('client_profiles.id'), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=func.now())


class ClientAccount(Base):
    __tablename__ = 'client_accounts'

    id = Column(String, primary_key=True)
    account_number = Column(String, unique=True, nullable=False)
    account_name = Column(String, nullable=False)
    client_profile_id = Column(String, ForeignKey('client_profiles.id'), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=func.now())


class Security(Base):
    __tablename__ = 'securities'

    id = Column(String, primary_key=True)
    symbol = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=func.now())


class Transaction(Base):
    __tablename__ = 'transactions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_date = Column(DateTime(timezone=True), nullable=False)
    trade_date = Column(Date, nullable=True)
    settlement_date = Column(Date, nullable=True)
    transaction_type = Column(String, nullable=False)
    security_id = Column(String, ForeignKey('securities.id'), index=True, nullable=True)
    quantity = Column(Numeric(18, 10), nullable=True)
    price = Column(Numeric(18, 10), nullable=True)
    amount = Column(Numeric(18, 10), nullable=False)
    fee = Column(Numeric(18, 10), nullable=True)
    tax = Column(Numeric(18, 10), nullable=True)
    description = Column(String, nullable=True)
    reference = Column(String, nullable=True)
    entry_status = Column(String, nullable=False, server_default='DRAFT', index=True)
    master_account_id = Column(String, ForeignKey('master_accounts.id'), index=True, nullable=True)
    client_account_id = Column(String, ForeignKey('client_accounts.id'), index=True, nullable=True)
    client_profile_id = Column(String, ForeignKey('client_profiles.id'), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=func.now())
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())

    client_profile = relationship("ClientProfile")
    master_account = relationship("MasterAccount")
    client_account = relationship("ClientAccount")
    security = relationship("Security")

    __table_args__ = (
        CheckConstraint(
            '(master_account_id IS NULL) <> (client_account_id IS NULL)',
            name='ck_transactions_exactly_one_account',
        ),
        CheckConstraint("entry_status IN ('DRAFT', 'POSTED')", name='ck_transactions_entry_status'),
        Index('ix_transactions_date_id', transaction_date.desc(), id.desc()),
        Index(
            'ix_transactions_natural_key',
            'transaction_date', 'transaction_type', 'amount', 'security_id',
        ),
    )
