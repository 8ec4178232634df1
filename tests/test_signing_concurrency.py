"""
Concurrent Signing Tests

Two requests with the same link race on a file-backed database; the
conditional status update lets exactly one of them sign.
"""

import threading

import fitz
import pytest

from app import create_app
from config import TestConfig
from models import db
from services import contract_service, document_store, signing_service, template_service
from services.documents import UnauthorizedError

from conftest import MARKUP_TEMPLATE, make_png


@pytest.fixture
def app(tmp_path):
    """App on a SQLite file so each thread gets its own connection."""
    config = type('FileDatabaseConfig', (TestConfig,), {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'contracts.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'check_same_thread': False, 'timeout': 30}},
        'DOCUMENT_STORAGE_DIR': str(tmp_path / 'storage'),
    })
    app = create_app(config)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def sent_contract_id(app, booking):
    template = template_service.create_template('Agreement', markup_html=MARKUP_TEMPLATE)
    contract = contract_service.create_contract(booking.id, template_id=template.id)
    contract = signing_service.mark_sent(contract.id)
    return contract.id, contract.sign_token


def last_page_images(pdf_bytes):
    with fitz.open(stream=pdf_bytes, filetype='pdf') as doc:
        return len(doc[-1].get_images())


class TestConcurrentClientSigning:
    def test_only_one_of_two_racing_signatures_wins(self, app, sent_contract_id):
        contract_id, token = sent_contract_id
        before = last_page_images(document_store.read_contract_file(contract_id))
        db.session.remove()

        barrier = threading.Barrier(2)
        outcomes = []
        lock = threading.Lock()

        def attempt(color):
            with app.app_context():
                try:
                    barrier.wait()
                    signing_service.sign_client(contract_id, token, make_png(color=color))
                    result = 'ok'
                except UnauthorizedError as e:
                    result = type(e).__name__
                finally:
                    db.session.remove()
                with lock:
                    outcomes.append(result)

        threads = [threading.Thread(target=attempt, args=(color,)) for color in [(0, 0, 0), (200, 0, 0)]]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert sorted(outcomes) == ['AlreadySignedError', 'ok']
        assert last_page_images(document_store.read_contract_file(contract_id)) == before + 1

        info = signing_service.get_sign_info(contract_id, token)
        assert info['awaiting'] == 'vendor'
