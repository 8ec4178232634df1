# routes/contracts/signing.py
"""
Contract signing routes.

sign-info and sign-client are public and authorized by the sign token;
send, withdraw and sign-vendor require the vendor session.
"""

from flask import request, jsonify, current_app
from flask_login import login_required

from services import signing_service
from services.documents import capture
from . import contracts_bp


# =============================================================================
# VENDOR ACTIONS
# =============================================================================

@contracts_bp.route('/<int:contract_id>/send', methods=['POST'])
@login_required
def send_contract(contract_id):
    """Issue a new signing link. Re-sending invalidates the previous link."""
    contract = signing_service.mark_sent(contract_id)
    return jsonify({
        'success': True,
        'status': contract.status,
        'signToken': contract.sign_token,
        'signUrl': signing_service.sign_url(contract),
    })


@contracts_bp.route('/<int:contract_id>/withdraw', methods=['POST'])
@login_required
def withdraw_contract(contract_id):
    contract = signing_service.withdraw(contract_id)
    return jsonify({'success': True, 'status': contract.status})


@contracts_bp.route('/<int:contract_id>/sign-vendor', methods=['POST'])
@login_required
def sign_vendor(contract_id):
    data = request.get_json(silent=True) or {}
    signature_png = capture(data)
    contract = signing_service.sign_vendor(contract_id, signature_png)
    current_app.logger.info(f"Contract {contract_id} countersigned")
    return jsonify({
        'success': True,
        'status': contract.status,
        'signedAt': contract.signed_at.isoformat(),
    })


# =============================================================================
# PUBLIC SIGNING LINK
# =============================================================================

@contracts_bp.route('/<int:contract_id>/sign-info', methods=['GET'])
def sign_info(contract_id):
    info = signing_service.get_sign_info(contract_id, request.args.get('token'))
    return jsonify({'success': True, **info})


@contracts_bp.route('/<int:contract_id>/sign-client', methods=['POST'])
def sign_client(contract_id):
    data = request.get_json(silent=True) or {}
    signature_png = capture(data)
    contract = signing_service.sign_client(contract_id, data.get('token'), signature_png)
    current_app.logger.info(f"Contract {contract_id} signed by client")
    return jsonify({
        'success': True,
        'clientSignedAt': contract.client_signed_at.isoformat(),
    })
