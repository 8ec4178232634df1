# routes/contracts/files.py
"""
Contract document routes.
"""

from flask import request, jsonify
from flask_login import login_required

from services import contract_service
from ..helpers import decode_file_bytes, pdf_response
from . import contracts_bp


@contracts_bp.route('/<int:contract_id>/file', methods=['GET'])
@login_required
def get_contract_file(contract_id):
    """Current document: signed if stamped, else the unsigned draft."""
    data = contract_service.get_contract_file(contract_id)
    return pdf_response(data, f"contract-{contract_id}.pdf")


@contracts_bp.route('/<int:contract_id>/file', methods=['PUT'])
@login_required
def set_contract_file(contract_id):
    data = request.get_json(silent=True) or {}
    contract_service.set_contract_file(contract_id, decode_file_bytes(data))
    return jsonify({'success': True})
