"""
Template Route Tests
"""

import base64
import io

import pytesseract
from docx import Document

from services import document_store
from services.documents.extractor import NO_TEXT_NOTICE
from services.documents.word_export import DOCX_MIMETYPE

from conftest import MARKUP_TEMPLATE


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


class TestAuth:
    def test_login_required(self, client):
        response = client.get('/templates')
        assert response.status_code == 401
        assert response.get_json()['success'] is False

    def test_bad_login(self, client, vendor):
        response = client.post('/auth/login', json={'username': 'vendor', 'password': 'wrong'})
        assert response.status_code == 401

    def test_logout(self, auth_client):
        assert auth_client.post('/auth/logout').status_code == 200
        assert auth_client.get('/templates').status_code == 401


class TestMarkupTemplates:
    def create(self, client, **payload):
        payload.setdefault('name', 'Agreement')
        return client.post('/templates', json=payload)

    def test_create_markup_template(self, auth_client):
        response = self.create(auth_client, markupHtml=MARKUP_TEMPLATE)
        assert response.status_code == 201
        body = response.get_json()
        assert body['kind'] == 'editable_markup'

        template = auth_client.get(f"/templates/{body['id']}").get_json()['template']
        assert template['markupHtml'] == MARKUP_TEMPLATE
        assert 'data-merge="client_name"' in template['editableHtml']

    def test_name_required(self, auth_client):
        response = self.create(auth_client, name='  ', markupHtml='<p>x</p>')
        assert response.status_code == 400
        assert response.get_json()['field'] == 'name'

    def test_exactly_one_source(self, auth_client, text_pdf):
        assert self.create(auth_client).status_code == 400
        assert self.create(auth_client, markupHtml='<p/>', fileBytes=b64(text_pdf)).status_code == 400

    def test_patch_with_editable_html(self, auth_client):
        template_id = self.create(auth_client, markupHtml='<p>old</p>').get_json()['id']
        editable = '<p>Dear <span data-merge="client_name" contenteditable="false">Client name</span></p>'

        response = auth_client.patch(f'/templates/{template_id}', json={'name': 'Renamed', 'editableHtml': editable})
        assert response.status_code == 200
        template = response.get_json()['template']
        assert template['name'] == 'Renamed'
        assert template['markupHtml'] == '<p>Dear {{client_name}}</p>'

    def test_markup_template_has_no_file(self, auth_client):
        template_id = self.create(auth_client, markupHtml='<p>x</p>').get_json()['id']
        assert auth_client.get(f'/templates/{template_id}/file').status_code == 404

    def test_unknown_template(self, auth_client):
        response = auth_client.get('/templates/999')
        assert response.status_code == 404
        assert response.get_json()['success'] is False

    def test_list(self, auth_client):
        self.create(auth_client, name='B', markupHtml='<p/>')
        self.create(auth_client, name='A', markupHtml='<p/>')
        names = [t['name'] for t in auth_client.get('/templates').get_json()['templates']]
        assert names == ['A', 'B']


class TestUploadedTemplates:
    def test_form_pdf_kept_as_file(self, auth_client, form_pdf):
        body = auth_client.post('/templates', json={'name': 'Form', 'fileBytes': b64(form_pdf)}).get_json()
        assert body['kind'] == 'uploaded_file'

        response = auth_client.get(f"/templates/{body['id']}/file")
        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.data == form_pdf

    def test_text_pdf_converted_to_markup(self, auth_client, text_pdf):
        body = auth_client.post('/templates', json={'name': 'Text', 'fileBytes': b64(text_pdf)}).get_json()
        assert body['kind'] == 'editable_markup'
        template = auth_client.get(f"/templates/{body['id']}").get_json()['template']
        assert '<p>Performance Agreement</p>' in template['markupHtml']
        assert not document_store.file_exists(document_store.TEMPLATES_FOLDER, body['id'])

    def test_image_only_pdf_gets_placeholder(self, auth_client, blank_pdf, monkeypatch):
        """No fields and no recoverable text still creates a usable template."""
        monkeypatch.setattr(pytesseract, 'image_to_string', lambda image, lang=None: '')
        response = auth_client.post('/templates', json={'name': 'Scan', 'fileBytes': b64(blank_pdf)})
        assert response.status_code == 201
        template = auth_client.get(f"/templates/{response.get_json()['id']}").get_json()['template']
        assert template['kind'] == 'editable_markup'
        assert template['markupHtml'] == f'<p>{NO_TEXT_NOTICE}</p>'

    def test_not_a_pdf(self, auth_client):
        response = auth_client.post('/templates', json={'name': 'Bad', 'fileBytes': b64(b'hello')})
        assert response.status_code == 400

    def test_invalid_base64(self, auth_client):
        response = auth_client.post('/templates', json={'name': 'Bad', 'fileBytes': '***'})
        assert response.status_code == 400
        assert response.get_json()['field'] == 'fileBytes'

    def test_fields_round_trip(self, auth_client, form_pdf):
        template_id = auth_client.post('/templates', json={'name': 'Form', 'fileBytes': b64(form_pdf)}).get_json()['id']

        fields = auth_client.get(f'/templates/{template_id}/fields').get_json()['fields']
        assert {f['name'] for f in fields} == {'client_name', 'agree'}

        response = auth_client.put(f'/templates/{template_id}/fields', json={
            'fields': [
                {'name': 'client_name', 'type': 'text', 'value': 'Jane Doe'},
                {'name': 'agree', 'type': 'checkbox', 'value': True},
            ],
            'appendText': ['Addendum: parking provided'],
        })
        assert response.status_code == 200
        saved = {f['name']: f['value'] for f in response.get_json()['fields']}
        assert saved == {'client_name': 'Jane Doe', 'agree': True}

    def test_fields_on_markup_template(self, auth_client):
        template_id = auth_client.post('/templates', json={'name': 'M', 'markupHtml': '<p/>'}).get_json()['id']
        assert auth_client.get(f'/templates/{template_id}/fields').status_code == 400

    def test_replace_file(self, auth_client, form_pdf, text_pdf):
        template_id = auth_client.post('/templates', json={'name': 'Form', 'fileBytes': b64(form_pdf)}).get_json()['id']
        response = auth_client.put(f'/templates/{template_id}/file', json={'fileBytes': b64(text_pdf)})
        assert response.status_code == 200
        assert response.get_json()['kind'] == 'editable_markup'
        assert auth_client.get(f'/templates/{template_id}/file').status_code == 404

    def test_convert(self, auth_client, form_pdf, monkeypatch):
        monkeypatch.setattr(pytesseract, 'image_to_string', lambda image, lang=None: 'Scanned form')
        template_id = auth_client.post('/templates', json={'name': 'Form', 'fileBytes': b64(form_pdf)}).get_json()['id']
        response = auth_client.post(f'/templates/{template_id}/convert')
        assert response.status_code == 200
        assert response.get_json()['template']['kind'] == 'editable_markup'
        assert not document_store.file_exists(document_store.TEMPLATES_FOLDER, template_id)

    def test_docx_export(self, auth_client, form_pdf):
        template_id = auth_client.post('/templates', json={'name': 'Form A', 'fileBytes': b64(form_pdf)}).get_json()['id']
        response = auth_client.get(f'/templates/{template_id}/docx')
        assert response.status_code == 200
        assert response.mimetype == DOCX_MIMETYPE
        assert 'Form_A.docx' in response.headers['Content-Disposition']
        assert Document(io.BytesIO(response.data)).paragraphs[0].text == 'Form A'

    def test_docx_export_needs_stored_file(self, auth_client):
        template_id = auth_client.post('/templates', json={'name': 'M', 'markupHtml': '<p/>'}).get_json()['id']
        assert auth_client.get(f'/templates/{template_id}/docx').status_code == 404

    def test_delete_removes_file(self, auth_client, form_pdf):
        template_id = auth_client.post('/templates', json={'name': 'Form', 'fileBytes': b64(form_pdf)}).get_json()['id']
        assert document_store.file_exists(document_store.TEMPLATES_FOLDER, template_id)

        assert auth_client.delete(f'/templates/{template_id}').status_code == 200
        assert not document_store.file_exists(document_store.TEMPLATES_FOLDER, template_id)
        assert auth_client.get(f'/templates/{template_id}').status_code == 404
