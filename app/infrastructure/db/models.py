"""
SQLAlchemy models for the database.
Maps domain entities to database tables.
"""

from sqlalchemy import (
    Column, Integer, String, DateTime, Text, Boolean,
    ForeignKey, JSON, BigInteger, Enum as SQLEnum,
    Index, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.domain.models.user import UserRole
from app.domain.models.wallet import TransactionType, TransactionStatus
from app.domain.models.escrow import ContractStatus, EscrowStatus
from app.domain.models.activity import ActivityType

from .database import Base


class UserModel(Base):
    """Marketplace accounts with their wallet balance"""
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    username = Column(String(50), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255))
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.FREELANCER)
    active = Column(Boolean, default=True, nullable=False)
    permissions = Column(JSON)

    # Profile
    bio = Column(Text)
    avatar = Column(String(500))
    skills = Column(JSON)
    hourly_rate = Column(Integer)
    location = Column(String(255))

    # Minor currency units
    wallet_balance = Column(BigInteger, nullable=False, default=0)

    external_id = Column(String(255), unique=True)
    last_login = Column(DateTime(timezone=True))
    version = Column(Integer, nullable=False, default=1)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    transactions = relationship("WalletTransactionModel", back_populates="user")
    sessions = relationship("UserSessionModel", back_populates="user")

    __table_args__ = (
        CheckConstraint('wallet_balance >= 0', name='check_wallet_balance_non_negative'),
    )


class ContractModel(Base):
    """Contracts between a client and a freelancer"""
    __tablename__ = 'contracts'

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(Integer)
    proposal_id = Column(Integer)
    client_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    freelancer_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    terms = Column(Text)
    amount = Column(BigInteger, nullable=False, default=0)
    status = Column(SQLEnum(ContractStatus), nullable=False, default=ContractStatus.ACTIVE)
    start_date = Column(DateTime(timezone=True))
    end_date = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    escrow = relationship("EscrowAccountModel", back_populates="contract", uselist=False)

    __table_args__ = (
        Index('idx_contracts_client', 'client_id'),
        Index('idx_contracts_freelancer', 'freelancer_id'),
    )


class EscrowAccountModel(Base):
    """Per-contract held funds"""
    __tablename__ = 'escrow_accounts'

    id = Column(Integer, primary_key=True, autoincrement=True)
    contract_id = Column(Integer, ForeignKey('contracts.id'), nullable=False, unique=True)
    amount = Column(BigInteger, nullable=False, default=0)
    status = Column(SQLEnum(EscrowStatus), nullable=False, default=EscrowStatus.ACTIVE)
    supervisor_id = Column(Integer, ForeignKey('users.id'))
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    contract = relationship("ContractModel", back_populates="escrow")

    __table_args__ = (
        CheckConstraint('amount >= 0', name='check_escrow_amount_non_negative'),
    )


class WalletTransactionModel(Base):
    """Append-only wallet ledger"""
    __tablename__ = 'wallet_transactions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    amount = Column(BigInteger, nullable=False)
    type = Column(SQLEnum(TransactionType), nullable=False)
    status = Column(SQLEnum(TransactionStatus), nullable=False, default=TransactionStatus.PENDING)
    description = Column(Text)
    reference = Column(String(255), unique=True)
    # "metadata" is reserved on declarative classes
    extra = Column('metadata', JSON)
    contract_id = Column(Integer, ForeignKey('contracts.id'))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True))

    user = relationship("UserModel", back_populates="transactions")

    __table_args__ = (
        Index('idx_wallet_transactions_user_created', 'user_id', 'created_at'),
        Index('idx_wallet_transactions_contract', 'contract_id'),
        Index('idx_wallet_transactions_status', 'status'),
    )


class UserSessionModel(Base):
    """Opaque local login sessions"""
    __tablename__ = 'user_sessions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    token = Column(String(128), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    last_activity = Column(DateTime(timezone=True))
    user_agent = Column(String(500))
    ip_address = Column(String(64))

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("UserModel", back_populates="sessions")

    __table_args__ = (
        Index('idx_user_sessions_user', 'user_id'),
    )


class ActivityModel(Base):
    """User-facing activity feed"""
    __tablename__ = 'activities'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    type = Column(SQLEnum(ActivityType), nullable=False)
    extra = Column('metadata', JSON)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('idx_activities_user_created', 'user_id', 'created_at'),
    )


class AuditLogModel(Base):
    """Security audit trail"""
    __tablename__ = 'audit_logs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'))
    action = Column(String(100), nullable=False)
    resource = Column(String(100))
    resource_id = Column(String(100))
    detail = Column(JSON)
    ip_address = Column(String(64))
    user_agent = Column(String(500))

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('idx_audit_logs_user', 'user_id'),
    )
