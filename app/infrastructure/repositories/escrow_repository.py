"""
Escrow and contract repository implementations using SQLAlchemy.
"""

from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import or_

from app.domain.models.escrow import EscrowAccount, Contract
from app.domain.repositories.escrow_repository import EscrowRepository, ContractRepository
from app.domain.models.base import EntityNotFoundError, DuplicateEntityError
from app.infrastructure.db.models import EscrowAccountModel, ContractModel
from app.infrastructure.mappers.escrow_mapper import EscrowMapper, ContractMapper


class SQLAlchemyEscrowRepository(EscrowRepository):

    def __init__(self, session: Session):
        self.session = session
        self.mapper = EscrowMapper()

    async def save(self, escrow: EscrowAccount) -> EscrowAccount:
        if escrow.is_new:
            if self.session.query(EscrowAccountModel).filter_by(
                contract_id=escrow.contract_id
            ).first():
                raise DuplicateEntityError("EscrowAccount", "contract_id", escrow.contract_id)
            model = self.mapper.domain_to_model(escrow)
            self.session.add(model)
            self.session.flush()
            escrow.id = model.id
        else:
            model = self.session.query(EscrowAccountModel).filter_by(id=escrow.id).first()
            if not model:
                raise EntityNotFoundError("EscrowAccount", escrow.id)
            self.mapper.update_model(model, escrow)
            self.session.flush()
        return escrow

    async def find_by_id(self, escrow_id: int) -> Optional[EscrowAccount]:
        model = self.session.query(EscrowAccountModel).filter_by(id=escrow_id).first()
        return self.mapper.model_to_domain(model) if model else None

    async def find_by_contract(self, contract_id: int, for_update: bool = False) -> Optional[EscrowAccount]:
        query = self.session.query(EscrowAccountModel).filter_by(contract_id=contract_id)
        if for_update:
            query = query.with_for_update()
        model = query.first()
        return self.mapper.model_to_domain(model) if model else None

    async def find_by_contracts(self, contract_ids: List[int]) -> List[EscrowAccount]:
        if not contract_ids:
            return []
        models = (
            self.session.query(EscrowAccountModel)
            .filter(EscrowAccountModel.contract_id.in_(contract_ids))
            .order_by(EscrowAccountModel.id)
            .all()
        )
        return [self.mapper.model_to_domain(model) for model in models]


class SQLAlchemyContractRepository(ContractRepository):

    def __init__(self, session: Session):
        self.session = session
        self.mapper = ContractMapper()

    async def save(self, contract: Contract) -> Contract:
        if contract.is_new:
            model = self.mapper.domain_to_model(contract)
            self.session.add(model)
            self.session.flush()
            contract.id = model.id
        else:
            model = self.session.query(ContractModel).filter_by(id=contract.id).first()
            if not model:
                raise EntityNotFoundError("Contract", contract.id)
            self.mapper.update_model(model, contract)
            self.session.flush()
        return contract

    async def find_by_id(self, contract_id: int) -> Optional[Contract]:
        model = self.session.query(ContractModel).filter_by(id=contract_id).first()
        return self.mapper.model_to_domain(model) if model else None

    async def find_by_party(self, user_id: int) -> List[Contract]:
        models = (
            self.session.query(ContractModel)
            .filter(or_(ContractModel.client_id == user_id, ContractModel.freelancer_id == user_id))
            .order_by(ContractModel.id)
            .all()
        )
        return [self.mapper.model_to_domain(model) for model in models]
