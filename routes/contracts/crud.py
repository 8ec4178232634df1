# routes/contracts/crud.py
"""
Contract create / view / delete routes.
"""

from flask import request, jsonify, current_app
from flask_login import login_required

from services import contract_service
from services.documents import UnprocessableInputError
from . import contracts_bp


@contracts_bp.route('', methods=['POST'])
@login_required
def create_contract():
    """Create a draft contract for a booking, optionally drafting its document from a template."""
    data = request.get_json(silent=True) or {}
    project_id = data.get('projectId')
    template_id = data.get('templateId')
    if not isinstance(project_id, int) or (template_id is not None and not isinstance(template_id, int)):
        raise UnprocessableInputError("projectId (and templateId, if given) must be integers", field='projectId')

    contract = contract_service.create_contract(project_id, template_id=template_id)
    current_app.logger.info(f"Contract {contract.id} created for project {project_id}")
    return jsonify({'success': True, 'contract': contract.to_dict()}), 201


@contracts_bp.route('/<int:contract_id>', methods=['GET'])
@login_required
def get_contract(contract_id):
    contract = contract_service.get_contract(contract_id)
    return jsonify({'success': True, 'contract': contract.to_dict()})


@contracts_bp.route('/<int:contract_id>', methods=['DELETE'])
@login_required
def delete_contract(contract_id):
    contract_service.delete_contract(contract_id)
    return jsonify({'success': True})
