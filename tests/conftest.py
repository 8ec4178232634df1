"""
Shared fixtures for the contract signing test suite.

Run with: python -m pytest tests/ -v
"""

import io
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import fitz
import pytest
from flask import g
from PIL import Image

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from app import create_app
from models import db, User, Client, Project
from services.documents import MergeFieldLoader

VENDOR_PASSWORD = 'vendor-pass'

MARKUP_TEMPLATE = (
    '<h2>{{project_title}}</h2>\n'
    '<p>Between {{client_name}} and the performer, on {{wedding_date}} at {{venue}}.</p>\n'
    '<p>Fee: {{performance_fee}}</p>\n'
    '<p>{{signature_client}}</p>\n'
    '<p>{{signature_vendor}}</p>'
)


@pytest.fixture
def app(tmp_path):
    app = create_app('config.TestConfig')
    app.config['DOCUMENT_STORAGE_DIR'] = str(tmp_path / 'storage')

    # The app context below stays open for the whole test, so Flask reuses it
    # (and its `g`) for every request. Drop Flask-Login's cached user so each
    # request loads it from its own session, as with a fresh per-request context.
    @app.before_request
    def _reset_login_cache():
        g.pop('_login_user', None)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def anonymous_client(app):
    """A second test client that never shares the vendor session."""
    return app.test_client()


@pytest.fixture
def vendor(app):
    user = User(username='vendor', email='vendor@example.com', first_name='Aurora', last_name='Sonnet')
    user.set_password(VENDOR_PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def auth_client(client, vendor):
    """Test client with a logged-in vendor session."""
    response = client.post('/auth/login', json={'username': 'vendor', 'password': VENDOR_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def booking(app):
    """A client and their booking."""
    customer = Client(name='A & B', email='ab@example.com', phone='7135551234')
    db.session.add(customer)
    db.session.flush()
    project = Project(
        client_id=customer.id,
        title='Smith Wedding',
        wedding_date=date(2025, 6, 14),
        venue='The Grove',
        package_type='Gold',
        value=Decimal('5500'),
    )
    db.session.add(project)
    db.session.commit()
    return project


@pytest.fixture(autouse=True)
def fresh_vocabulary():
    """Every test starts from the real vocabulary file."""
    MergeFieldLoader.clear()
    MergeFieldLoader.load_all()
    yield
    MergeFieldLoader.clear()


def make_text_pdf(lines) -> bytes:
    """One page with each line drawn as its own text block."""
    doc = fitz.open()
    page = doc.new_page(width=595, height=842)
    y = 72
    for line in lines:
        page.insert_text((72, y), line, fontsize=12)
        y += 60
    return doc.tobytes()


def make_blank_pdf(pages: int = 1) -> bytes:
    """Pages with no text layer, like a scan with nothing on it."""
    doc = fitz.open()
    for _ in range(pages):
        doc.new_page(width=595, height=842)
    return doc.tobytes()


def make_form_pdf(read_only: bool = False) -> bytes:
    """A one-page form with a text field and a checkbox."""
    doc = fitz.open()
    page = doc.new_page(width=595, height=842)

    text = fitz.Widget()
    text.field_name = 'client_name'
    text.field_type = fitz.PDF_WIDGET_TYPE_TEXT
    text.rect = fitz.Rect(72, 100, 300, 120)
    text.field_value = ''
    if read_only:
        text.field_flags |= fitz.PDF_FIELD_IS_READ_ONLY
    page.add_widget(text)

    checkbox = fitz.Widget()
    checkbox.field_name = 'agree'
    checkbox.field_type = fitz.PDF_WIDGET_TYPE_CHECKBOX
    checkbox.rect = fitz.Rect(72, 140, 86, 154)
    checkbox.field_value = False
    page.add_widget(checkbox)

    return doc.tobytes()


def make_png(size=(200, 80), color=(20, 20, 20)) -> bytes:
    image = Image.new('RGB', size, (255, 255, 255))
    image.paste(color, (20, 20, size[0] - 20, size[1] - 20))
    out = io.BytesIO()
    image.save(out, format='PNG')
    return out.getvalue()


@pytest.fixture
def text_pdf():
    return make_text_pdf(['Performance Agreement', 'The client agrees to the terms below.'])


@pytest.fixture
def blank_pdf():
    return make_blank_pdf()


@pytest.fixture
def form_pdf():
    return make_form_pdf()


@pytest.fixture
def signature_png():
    return make_png()
