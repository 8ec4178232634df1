# services/signing_service.py
"""
Two-party signing protocol for contracts.

    draft --send--> sent --client signs--> sent (client signed) --vendor signs--> signed

The client is authorized only by the contract's current sign token; the
vendor action is authorized by the vendor session at the route level.
Every transition re-checks its precondition inside a conditional UPDATE,
so of two racing requests only one can win.
"""

import logging
import secrets
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db, Contract
from services import document_store
from services.booking_service import ensure_deposit_invoice
from services.contract_service import get_contract, load_document
from services.documents import (
    ContractStatus, AlreadySignedError, UnauthorizedError,
    UnprocessableInputError, stamp_signature
)

logger = logging.getLogger(__name__)

INVALID_LINK = 'Invalid or expired signing link'

MESSAGES = {
    'client': 'Please sign below.',
    'vendor': 'Client has signed. Awaiting vendor signature.',
    'completed': 'This contract has been signed by both parties. Thank you!',
}


def _tokens_match(expected, given) -> bool:
    if not expected or not given or not isinstance(given, str):
        return False
    return secrets.compare_digest(expected, given)


def new_sign_token() -> str:
    return secrets.token_urlsafe(32)


def sign_url(contract: Contract) -> str:
    base = current_app.config.get('PUBLIC_BASE_URL', '').rstrip('/')
    return f"{base}/sign/{contract.id}?token={contract.sign_token}"


def _commit_document(contract_id: int, stamped: bytes) -> None:
    """
    Write the stamped document and commit the pending status update.

    If the commit fails the previous document is put back.
    """
    previous = document_store.read_contract_file(contract_id)
    document_store.write_contract_file(contract_id, stamped)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        document_store.restore_contract_file(contract_id, previous)
        raise


def _current_document(contract: Contract) -> bytes:
    data = load_document(contract)
    if data is None:
        raise UnprocessableInputError("Contract PDF not available", field='fileBytes')
    return data


def mark_sent(contract_id: int) -> Contract:
    """
    Issue a fresh sign token; any earlier link stops working.

    Allowed from draft and from sent (re-send). A signed contract can't be
    sent again.
    """
    contract = get_contract(contract_id)
    if contract.contract_status is ContractStatus.SIGNED:
        raise AlreadySignedError("Contract is already signed")
    _current_document(contract)

    token = new_sign_token()
    rows = Contract.query.filter(
        Contract.id == contract.id,
        Contract.status.in_([ContractStatus.DRAFT.value, ContractStatus.SENT.value]),
    ).update({
        'status': ContractStatus.SENT.value,
        'sign_token': token,
    }, synchronize_session=False)
    if rows == 0:
        db.session.rollback()
        raise AlreadySignedError("Contract is already signed")
    db.session.commit()

    logger.info(f"Contract {contract.id} sent for signing")
    return contract


def withdraw(contract_id: int) -> Contract:
    """Take a sent contract back to draft before the client signs."""
    contract = get_contract(contract_id)
    rows = Contract.query.filter(
        Contract.id == contract.id,
        Contract.status == ContractStatus.SENT.value,
        Contract.client_signed_at.is_(None),
    ).update({
        'status': ContractStatus.DRAFT.value,
        'sign_token': None,
    }, synchronize_session=False)
    if rows == 0:
        db.session.rollback()
        raise UnauthorizedError("Only a sent contract the client has not signed can be withdrawn")
    db.session.commit()

    logger.info(f"Contract {contract.id} withdrawn to draft")
    return contract


def get_sign_info(contract_id: int, token: str) -> dict:
    """
    What the public signing page should show for a link.

    Raises UnauthorizedError for an unknown contract or a token that does
    not match, so the link can't be used to probe for contracts.
    """
    contract = Contract.query.get(contract_id)
    if contract is None:
        raise UnauthorizedError(INVALID_LINK)

    info = contract.to_dict()
    if contract.contract_status is ContractStatus.SIGNED and _tokens_match(contract.completed_sign_token, token):
        info.update({'awaiting': None, 'completed': True, 'message': MESSAGES['completed']})
        return info

    if contract.contract_status is not ContractStatus.SENT or not _tokens_match(contract.sign_token, token):
        raise UnauthorizedError(INVALID_LINK)

    awaiting = 'vendor' if contract.client_signed_at else 'client'
    info.update({'awaiting': awaiting, 'completed': False, 'message': MESSAGES[awaiting]})
    return info


def sign_client(contract_id: int, token: str, signature_png: bytes) -> Contract:
    """
    Stamp the client's signature and record clientSignedAt.

    Raises:
        UnauthorizedError: unknown contract, wrong token, or not sent
        AlreadySignedError: the client already signed with this link
    """
    contract = Contract.query.get(contract_id)
    if contract is None:
        raise UnauthorizedError(INVALID_LINK)

    if contract.client_signed_at is not None and (
            _tokens_match(contract.sign_token, token) or _tokens_match(contract.completed_sign_token, token)):
        raise AlreadySignedError("Client has already signed")
    if contract.contract_status is not ContractStatus.SENT or not _tokens_match(contract.sign_token, token):
        raise UnauthorizedError(INVALID_LINK)

    stamped = stamp_signature(_current_document(contract), signature_png, f"{contract.client_name} (Client)")

    signed_at = datetime.utcnow()
    rows = Contract.query.filter(
        Contract.id == contract.id,
        Contract.status == ContractStatus.SENT.value,
        Contract.sign_token == token,
        Contract.client_signed_at.is_(None),
    ).update({'client_signed_at': signed_at}, synchronize_session=False)
    if rows == 0:
        # Lost the race; a token that is still ours means the other request signed
        db.session.rollback()
        db.session.refresh(contract)
        if _tokens_match(contract.sign_token, token) or _tokens_match(contract.completed_sign_token, token):
            raise AlreadySignedError("Client has already signed")
        raise UnauthorizedError(INVALID_LINK)

    _commit_document(contract.id, stamped)
    logger.info(f"Client signed contract {contract.id}")
    return contract


def sign_vendor(contract_id: int, signature_png: bytes) -> Contract:
    """
    Stamp the vendor's signature after the client's and complete the contract.

    On completion the booking gets its deposit invoice.
    """
    contract = get_contract(contract_id)
    if contract.contract_status is ContractStatus.SIGNED:
        raise AlreadySignedError("Contract is already signed")
    if contract.contract_status is not ContractStatus.SENT or contract.client_signed_at is None:
        raise UnauthorizedError("Client must sign first")

    label = current_app.config.get('VENDOR_SIGNATURE_LABEL', 'Vendor')
    stamped = stamp_signature(_current_document(contract), signature_png, label)

    signed_at = max(datetime.utcnow(), contract.client_signed_at)
    rows = Contract.query.filter(
        Contract.id == contract.id,
        Contract.status == ContractStatus.SENT.value,
        Contract.client_signed_at.isnot(None),
    ).update({
        'status': ContractStatus.SIGNED.value,
        'signed_at': signed_at,
        'completed_sign_token': contract.sign_token,
        'sign_token': None,
    }, synchronize_session=False)
    if rows == 0:
        db.session.rollback()
        raise AlreadySignedError("Contract is already signed")

    _commit_document(contract.id, stamped)
    logger.info(f"Vendor signed contract {contract.id}, contract complete")

    try:
        ensure_deposit_invoice(contract)
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(f"Could not create deposit invoice for contract {contract.id}")
    return contract
