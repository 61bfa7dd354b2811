from __future__ import annotations
import os
from datetime import timedelta
from typing import Any, Dict, List

DEFAULT_MAX_PHOTOS = 10
DEFAULT_GEMINI_MODEL = 'gemini-2.5-flash'

# Missing values only warn; collaborators that cannot run without them fail on use.
REQUIRED_ENVS = [
    'DATABASE_URL',
    'JWT_SECRET',
    'SPREADSHEET_ID',
    'CLOUDINARY_CLOUD_NAME',
    'CLOUDINARY_API_KEY',
    'CLOUDINARY_API_SECRET',
    'GEMINI_API_KEY',
    'EMAIL_USER',
    'EMAIL_PASS',
]

# env names that also satisfy a REQUIRED_ENVS entry
ENV_ALIASES = {
    'DATABASE_URL': ('MONGODB_URI',),
    'JWT_SECRET': ('JWT_SECRET_KEY',),
}


def _flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def load_settings() -> Dict[str, Any]:
    """Build the app config dict from the process environment."""
    spreadsheet_id = os.getenv('SPREADSHEET_ID')
    return {
        'ENVIRONMENT': os.getenv('FLASK_ENV') or os.getenv('NODE_ENV') or 'development',
        'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO').upper(),
        'DATABASE_URL': os.getenv('DATABASE_URL') or os.getenv('MONGODB_URI') or 'sqlite:///dev.db',
        'JWT_SECRET_KEY': os.getenv('JWT_SECRET') or os.getenv('JWT_SECRET_KEY') or 'dev-secret',
        'JWT_ACCESS_TOKEN_EXPIRES': timedelta(hours=8),
        'TICKET_STORE': (os.getenv('TICKET_STORE') or ('sheets' if spreadsheet_id else 'sql')).lower(),
        'SPREADSHEET_ID': spreadsheet_id,
        'SHEET_TAB': os.getenv('SHEET_TAB', 'ServiceRequests'),
        'GOOGLE_CREDENTIALS_FILE': os.getenv('GOOGLE_APPLICATION_CREDENTIALS', 'service-account.json'),
        'CLOUDINARY_CLOUD_NAME': os.getenv('CLOUDINARY_CLOUD_NAME'),
        'CLOUDINARY_API_KEY': os.getenv('CLOUDINARY_API_KEY'),
        'CLOUDINARY_API_SECRET': os.getenv('CLOUDINARY_API_SECRET'),
        'CLOUDINARY_FOLDER': os.getenv('CLOUDINARY_FOLDER', 'service-requests'),
        'MAIL_PROVIDER': os.getenv('MAIL_PROVIDER', 'smtp').lower(),
        'MAIL_SERVER': os.getenv('MAIL_SERVER', 'smtp.gmail.com'),
        'MAIL_PORT': int(os.getenv('MAIL_PORT', '587')),
        'MAIL_USERNAME': os.getenv('EMAIL_USER'),
        'MAIL_PASSWORD': os.getenv('EMAIL_PASS'),
        'MAIL_FROM_NAME': os.getenv('MAIL_FROM_NAME', 'TechRepair Service'),
        'GEMINI_API_KEY': os.getenv('GEMINI_API_KEY'),
        'GEMINI_MODEL': os.getenv('GEMINI_MODEL', DEFAULT_GEMINI_MODEL),
        'MAX_PHOTOS_PER_UPLOAD': int(os.getenv('MAX_PHOTOS_PER_UPLOAD', str(DEFAULT_MAX_PHOTOS))),
        'ENFORCE_TICKET_TRANSITIONS': _flag('ENFORCE_TICKET_TRANSITIONS'),
        'SEED_SAMPLE_DATA': _flag('SEED_SAMPLE_DATA'),
    }


def missing_envs() -> List[str]:
    missing = []
    for name in REQUIRED_ENVS:
        candidates = (name,) + ENV_ALIASES.get(name, ())
        if not any(os.getenv(c) for c in candidates):
            missing.append(name)
    return missing

__all__ = ['REQUIRED_ENVS', 'load_settings', 'missing_envs', 'DEFAULT_MAX_PHOTOS', 'DEFAULT_GEMINI_MODEL']
