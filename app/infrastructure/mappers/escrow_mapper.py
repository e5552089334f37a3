"""
Escrow account and contract mappers.
"""

from app.domain.models.escrow import EscrowAccount, Contract
from app.infrastructure.db.models import EscrowAccountModel, ContractModel
from app.infrastructure.mappers.user_mapper import to_naive_utc


class EscrowMapper:
    """Maps between EscrowAccount and EscrowAccountModel."""

    def domain_to_model(self, escrow: EscrowAccount) -> EscrowAccountModel:
        model = EscrowAccountModel(id=escrow.id, created_at=escrow.created_at)
        self.update_model(model, escrow)
        return model

    def update_model(self, model: EscrowAccountModel, escrow: EscrowAccount) -> None:
        model.contract_id = escrow.contract_id
        model.amount = escrow.amount
        model.status = escrow.status
        model.supervisor_id = escrow.supervisor_id
        model.version = escrow.version
        model.updated_at = escrow.updated_at

    def model_to_domain(self, model: EscrowAccountModel) -> EscrowAccount:
        return EscrowAccount(
            id=model.id,
            contract_id=model.contract_id,
            amount=model.amount,
            status=model.status,
            supervisor_id=model.supervisor_id,
            version=model.version or 1,
            created_at=to_naive_utc(model.created_at),
            updated_at=to_naive_utc(model.updated_at or model.created_at)
        )


class ContractMapper:
    """Maps between Contract and ContractModel."""

    def domain_to_model(self, contract: Contract) -> ContractModel:
        model = ContractModel(id=contract.id, created_at=contract.created_at)
        self.update_model(model, contract)
        return model

    def update_model(self, model: ContractModel, contract: Contract) -> None:
        model.job_id = contract.job_id
        model.proposal_id = contract.proposal_id
        model.client_id = contract.client_id
        model.freelancer_id = contract.freelancer_id
        model.terms = contract.terms
        model.amount = contract.amount
        model.status = contract.status
        model.start_date = contract.start_date
        model.end_date = contract.end_date
        model.updated_at = contract.updated_at

    def model_to_domain(self, model: ContractModel) -> Contract:
        return Contract(
            id=model.id,
            job_id=model.job_id,
            proposal_id=model.proposal_id,
            client_id=model.client_id,
            freelancer_id=model.freelancer_id,
            terms=model.terms or "",
            amount=model.amount or 0,
            status=model.status,
            start_date=to_naive_utc(model.start_date),
            end_date=to_naive_utc(model.end_date),
            created_at=to_naive_utc(model.created_at),
            updated_at=to_naive_utc(model.updated_at or model.created_at)
        )
