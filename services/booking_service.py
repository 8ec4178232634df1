# services/booking_service.py
"""
Booking gateway for the contract subsystem.

The only two things contracts need from bookings: the merge context for a
contract, and a deposit invoice once the contract is fully signed.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app

from models import db, Invoice, Project

logger = logging.getLogger(__name__)

DEPOSIT_TYPE = 'deposit'
DEPOSIT_SHARE = Decimal('0.5')


def build_merge_context(contract) -> dict:
    """
    Build the context merge fields resolve against.

    Returns:
        dict with 'contract', 'project' and 'client' entries (project and
        client may be None for a contract whose booking was removed)
    """
    project = contract.project or (Project.query.get(contract.project_id) if contract.project_id else None)
    client = project.client if project else None
    return {
        'contract': contract,
        'project': project,
        'client': client,
    }


def deposit_amount(value) -> Decimal:
    """Half the contract value, rounded to whole currency units (half up)."""
    amount = Decimal(str(value or 0)) * DEPOSIT_SHARE
    return amount.quantize(Decimal('1'), rounding=ROUND_HALF_UP)


def ensure_deposit_invoice(contract, today: date = None):
    """
    Create the booking's deposit invoice unless one already exists.

    Args:
        contract: A signed contract
        today: Issue date (defaults to today)

    Returns:
        The new Invoice, or None when the booking already has a deposit
    """
    existing = Invoice.query.filter_by(project_id=contract.project_id, type=DEPOSIT_TYPE).first()
    if existing:
        logger.info(f"Project {contract.project_id} already has deposit invoice {existing.id}")
        return None

    today = today or date.today()
    due_days = current_app.config.get('DEPOSIT_DUE_DAYS', 14)
    invoice = Invoice(
        project_id=contract.project_id,
        title=f"{contract.title} - Deposit",
        type=DEPOSIT_TYPE,
        amount=deposit_amount(contract.value),
        status='draft',
        due_date=today + timedelta(days=due_days),
    )
    db.session.add(invoice)
    db.session.commit()

    logger.info(f"Created deposit invoice {invoice.id} of {invoice.amount} for project {contract.project_id}")
    return invoice
