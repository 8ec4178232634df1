import os
import tempfile
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    # Environment
    FLASK_ENV = os.getenv('FLASK_ENV', 'development')

    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///contracts.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PERMANENT_SESSION_LIFETIME = timedelta(minutes=30)

    # Document storage (templates/ and contracts/ live under this directory)
    DOCUMENT_STORAGE_DIR = os.getenv('DOCUMENT_STORAGE_DIR', os.path.join(BASE_DIR, 'storage'))

    # Public signing link base, e.g. https://example.com
    PUBLIC_BASE_URL = os.getenv('PUBLIC_BASE_URL', 'http://localhost:5005')

    # Signing
    VENDOR_SIGNATURE_LABEL = os.getenv('VENDOR_SIGNATURE_LABEL', 'Aurora Sonnet (Vendor)')
    DEPOSIT_DUE_DAYS = int(os.getenv('DEPOSIT_DUE_DAYS', 14))

    # OCR fallback for scanned uploads
    OCR_SCALE = float(os.getenv('OCR_SCALE', 2.0))
    OCR_LANGUAGE = os.getenv('OCR_LANGUAGE', 'eng')

    # Upload limit for base64 JSON payloads
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', 50 * 1024 * 1024))


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    DOCUMENT_STORAGE_DIR = os.path.join(tempfile.gettempdir(), 'contract-documents-test')
    PUBLIC_BASE_URL = 'http://testserver'
