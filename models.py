# models.py
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash

from services.documents.types import TemplateKind, ContractStatus

db = SQLAlchemy()


def _iso(value):
    return value.isoformat() if value else None


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256))
    first_name = db.Column(db.String(80), nullable=False)
    last_name = db.Column(db.String(80), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    last_login = db.Column(db.DateTime)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f'<User {self.username}>'


class Client(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(120))
    phone = db.Column(db.String(20))
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self):
        return f'<Client {self.name}>'


class Project(db.Model):
    """A booking. Contracts and invoices hang off it."""
    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey('client.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    wedding_date = db.Column(db.Date)
    venue = db.Column(db.String(200))
    package_type = db.Column(db.String(100))
    value = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    client = db.relationship('Client', backref=db.backref('projects', lazy=True))

    def __repr__(self):
        return f'<Project {self.title}>'


class Invoice(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('project.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(20), nullable=False, default='standard')  # standard, deposit
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(20), nullable=False, default='draft')  # draft, sent, paid
    due_date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    project = db.relationship('Project', backref=db.backref('invoices', lazy='dynamic'))

    def to_dict(self):
        return {
            'id': self.id,
            'projectId': self.project_id,
            'title': self.title,
            'type': self.type,
            'amount': float(self.amount),
            'status': self.status,
            'dueDate': _iso(self.due_date),
        }

    def __repr__(self):
        return f'<Invoice {self.id} {self.type} {self.amount}>'


class ContractTemplate(db.Model):
    """
    A reusable contract document.

    kind decides which column is meaningful: content_html for
    editable_markup templates, file_name for uploaded_file templates.
    """
    __tablename__ = 'contract_template'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    kind = db.Column(db.String(20), nullable=False, default=TemplateKind.EDITABLE_MARKUP.value)
    content_html = db.Column(db.Text)
    file_name = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow,
                           onupdate=datetime.utcnow)

    @property
    def template_kind(self) -> TemplateKind:
        return TemplateKind(self.kind)

    @property
    def has_file(self) -> bool:
        return self.template_kind is TemplateKind.UPLOADED_FILE and bool(self.file_name)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'kind': self.kind,
            'fileName': self.file_name,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }

    def __repr__(self):
        return f'<ContractTemplate {self.id} {self.kind}>'


class Contract(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('project.id'), nullable=False)
    template_id = db.Column(db.Integer, db.ForeignKey('contract_template.id', ondelete='SET NULL'))
    client_name = db.Column(db.String(200), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    value = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    wedding_date = db.Column(db.Date)
    venue = db.Column(db.String(200))
    package_type = db.Column(db.String(100))

    # Signing protocol
    status = db.Column(db.String(20), nullable=False, default=ContractStatus.DRAFT.value)
    sign_token = db.Column(db.String(64), index=True)
    completed_sign_token = db.Column(db.String(64))  # display only, never authorizes
    client_signed_at = db.Column(db.DateTime)
    signed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    project = db.relationship('Project', backref=db.backref('contracts', lazy='dynamic'))
    template = db.relationship('ContractTemplate')

    @property
    def contract_status(self) -> ContractStatus:
        return ContractStatus(self.status)

    def to_dict(self):
        return {
            'id': self.id,
            'projectId': self.project_id,
            'templateId': self.template_id,
            'clientName': self.client_name,
            'title': self.title,
            'value': float(self.value) if self.value is not None else None,
            'weddingDate': _iso(self.wedding_date),
            'venue': self.venue,
            'packageType': self.package_type,
            'status': self.status,
            'clientSignedAt': _iso(self.client_signed_at),
            'signedAt': _iso(self.signed_at),
            'createdAt': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<Contract {self.id} {self.status}>'
