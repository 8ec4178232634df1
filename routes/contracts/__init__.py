# routes/contracts/__init__.py
"""
Contract Routes Package

Splits the contract routes into logical modules:
- crud.py: create, view, delete contracts
- files.py: contract document download and replacement
- signing.py: send/withdraw and the two signing steps

The public signing routes (sign-info, sign-client) are authorized by the
sign token only; everything else requires the vendor session.
"""

from flask import Blueprint

from ..helpers import register_error_handlers

# Create the blueprint - all sub-modules will register routes on this
contracts_bp = Blueprint('contracts', __name__, url_prefix='/contracts')
register_error_handlers(contracts_bp)

# Import all route modules AFTER blueprint creation
from . import crud
from . import files
from . import signing
