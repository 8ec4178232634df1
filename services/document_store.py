"""
Document Store for Template and Contract Files

Keeps one PDF per template and one per contract on the local filesystem,
under DOCUMENT_STORAGE_DIR:

    templates/<template id>.pdf
    contracts/<contract id>.pdf

Writes go through a temp file and os.replace so a reader never sees a
half-written document.
"""

import logging
import os
import tempfile
from typing import Optional

from flask import current_app

logger = logging.getLogger(__name__)

# Folder names inside the storage root
TEMPLATES_FOLDER = 'templates'
CONTRACTS_FOLDER = 'contracts'

FILE_EXTENSION = '.pdf'


def get_storage_root() -> str:
    """
    Get the storage root directory.
    Uses DOCUMENT_STORAGE_DIR from the app config.
    """
    root = current_app.config.get('DOCUMENT_STORAGE_DIR')
    if not root:
        raise ValueError(
            "DOCUMENT_STORAGE_DIR is not configured. "
            "Set it in the environment or .env file."
        )
    return root


def storage_path(folder: str, entity_id: int) -> str:
    """Absolute path of an entity's document file."""
    return os.path.join(get_storage_root(), folder, f"{entity_id}{FILE_EXTENSION}")


def file_name(entity_id: int) -> str:
    return f"{entity_id}{FILE_EXTENSION}"


def read_file(folder: str, entity_id: int) -> Optional[bytes]:
    """
    Read a stored document.

    Returns:
        The file bytes, or None when no file is stored
    """
    path = storage_path(folder, entity_id)
    if not os.path.exists(path):
        return None
    with open(path, 'rb') as f:
        return f.read()


def write_file(folder: str, entity_id: int, data: bytes) -> dict:
    """
    Atomically replace a stored document.

    Args:
        folder: TEMPLATES_FOLDER or CONTRACTS_FOLDER
        entity_id: Owning template or contract id
        data: The new file content

    Returns:
        dict with 'path', 'filename', 'size' keys
    """
    path = storage_path(folder, entity_id)
    directory = os.path.dirname(path)
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    logger.debug(f"Stored {len(data)} bytes at {folder}/{file_name(entity_id)}")
    return {
        'path': path,
        'filename': file_name(entity_id),
        'size': len(data)
    }


def restore_file(folder: str, entity_id: int, previous: Optional[bytes]) -> None:
    """Put back the bytes a failed write replaced (None means there was no file)."""
    if previous is None:
        delete_file(folder, entity_id)
    else:
        write_file(folder, entity_id, previous)
    logger.info(f"Restored previous {folder}/{file_name(entity_id)}")


def delete_file(folder: str, entity_id: int) -> bool:
    """
    Delete a stored document.

    Returns:
        True if a file was removed, False if there was none or removal failed
    """
    path = storage_path(folder, entity_id)
    if not os.path.exists(path):
        return False
    try:
        os.remove(path)
        return True
    except OSError as e:
        logger.error(f"Failed to delete file {path}: {e}")
        return False


def file_exists(folder: str, entity_id: int) -> bool:
    return os.path.exists(storage_path(folder, entity_id))


def read_template_file(template_id: int) -> Optional[bytes]:
    """Read a template's stored PDF."""
    return read_file(TEMPLATES_FOLDER, template_id)


def write_template_file(template_id: int, data: bytes) -> dict:
    """Store (or replace) a template's PDF."""
    return write_file(TEMPLATES_FOLDER, template_id, data)


def delete_template_file(template_id: int) -> bool:
    """Delete a template's stored PDF."""
    return delete_file(TEMPLATES_FOLDER, template_id)


def read_contract_file(contract_id: int) -> Optional[bytes]:
    """Read a contract's stored PDF."""
    return read_file(CONTRACTS_FOLDER, contract_id)


def write_contract_file(contract_id: int, data: bytes) -> dict:
    """Store (or replace) a contract's PDF."""
    return write_file(CONTRACTS_FOLDER, contract_id, data)


def restore_contract_file(contract_id: int, previous: Optional[bytes]) -> None:
    restore_file(CONTRACTS_FOLDER, contract_id, previous)


def delete_contract_file(contract_id: int) -> bool:
    """Delete a contract's stored PDF."""
    return delete_file(CONTRACTS_FOLDER, contract_id)
