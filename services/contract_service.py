# services/contract_service.py
"""
Contract drafting and document access.

A contract's current document is its own stored PDF once one exists;
before that it falls back to its template's uploaded file.
"""

import logging
from typing import Optional

from models import db, Contract, ContractTemplate, Project
from services import document_store
from services.booking_service import build_merge_context
from services.documents import (
    ContractStatus, TemplateKind, ConfigurationError, NotFoundError,
    UnauthorizedError, merge_context, page_count, render
)

logger = logging.getLogger(__name__)


def get_contract(contract_id: int) -> Contract:
    contract = Contract.query.get(contract_id)
    if contract is None:
        raise NotFoundError(f"Contract {contract_id} not found")
    return contract


def draft_document(contract: Contract, template: ContractTemplate) -> bytes:
    """
    Produce the unsigned contract PDF from a template.

    Markup templates are merged with the booking's values and rendered;
    uploaded templates are used as stored.
    """
    kind = template.template_kind
    if kind is TemplateKind.EDITABLE_MARKUP:
        markup = merge_context(template.content_html or '', build_merge_context(contract))
        return render(markup)
    elif kind is TemplateKind.UPLOADED_FILE:
        data = document_store.read_template_file(template.id)
        if data is None:
            raise NotFoundError(f"Template {template.id} has no stored file")
        return data
    raise ConfigurationError(f"Unknown template kind: {kind}")


def create_contract(project_id: int, template_id: Optional[int] = None) -> Contract:
    """
    Create a draft contract for a booking, copying the booking's terms.

    When a template is given, the drafted document is stored right away.
    """
    project = Project.query.get(project_id)
    if project is None:
        raise NotFoundError(f"Project {project_id} not found")

    template = None
    if template_id is not None:
        template = ContractTemplate.query.get(template_id)
        if template is None:
            raise NotFoundError(f"Template {template_id} not found")

    contract = Contract(
        project_id=project.id,
        template_id=template.id if template else None,
        client_name=project.client.name if project.client else '',
        title=project.title,
        value=project.value,
        wedding_date=project.wedding_date,
        venue=project.venue,
        package_type=project.package_type,
        status=ContractStatus.DRAFT.value,
    )
    contract.project = project
    db.session.add(contract)
    db.session.flush()

    if template is not None:
        document_store.write_contract_file(contract.id, draft_document(contract, template))

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        document_store.delete_contract_file(contract.id)
        raise

    logger.info(f"Created contract {contract.id} for project {project.id}")
    return contract


def load_document(contract: Contract) -> Optional[bytes]:
    """Current document bytes: the contract's own file, else its template's file."""
    data = document_store.read_contract_file(contract.id)
    if data is not None:
        return data
    if contract.template_id is None:
        return None
    template = ContractTemplate.query.get(contract.template_id)
    if template is None or not template.has_file:
        return None
    return document_store.read_template_file(template.id)


def get_contract_file(contract_id: int) -> bytes:
    contract = get_contract(contract_id)
    data = load_document(contract)
    if data is None:
        raise NotFoundError(f"Contract {contract_id} has no document")
    return data


def set_contract_file(contract_id: int, file_bytes: bytes) -> Contract:
    """
    Set the contract's document explicitly.

    Not allowed once the client has signed; that would drop the stamp.
    """
    contract = get_contract(contract_id)
    if contract.client_signed_at is not None or contract.contract_status is ContractStatus.SIGNED:
        raise UnauthorizedError("Contract document can't be replaced after signing has started")
    page_count(file_bytes)
    document_store.write_contract_file(contract.id, file_bytes)
    logger.info(f"Replaced document of contract {contract.id} ({len(file_bytes)} bytes)")
    return contract


def delete_contract(contract_id: int) -> None:
    contract = get_contract(contract_id)
    db.session.delete(contract)
    db.session.commit()
    document_store.delete_contract_file(contract_id)
    logger.info(f"Deleted contract {contract_id}")
