import secrets

from sqlalchemy.orm import Session

from ..models.models import AppSettings


def generate_api_key() -> str:
    return f"{secrets.token_hex(6)}-{secrets.token_hex(6)}-{secrets.token_hex(6)}-key"


def default_integrations() -> dict:
    return {
        "slack": {"enabled": False, "webhookUrl": ""},
        "teams": {"enabled": False, "webhookUrl": ""},
    }


def get_or_create_settings(db: Session) -> AppSettings:
    """Return the settings row, creating it with defaults on first access."""
    row = db.query(AppSettings).order_by(AppSettings.created_at.asc()).first()
    if row is None:
        row = AppSettings(api_key=generate_api_key(), integrations=default_integrations())
        db.add(row)
        db.commit()
        db.refresh(row)
    return row
