# helpdesk/setting/services.py
from pathlib import Path

from fastapi import UploadFile
from sqlalchemy.orm import Session

from helpdesk.attachment.models import Attachment
from helpdesk.attachment.storage import AttachmentStore, StoredFile
from helpdesk.comment.models import Comment
from helpdesk.core.errors import NotFound, ValidationFailed
from helpdesk.core.logging_config import logger
from helpdesk.setting.models import Setting
from helpdesk.setting.schemas import SettingEntry, SettingUpdate
from helpdesk.ticket.models import Ticket

DEFAULT_SETTINGS: list[tuple[str, str | None, str]] = [
    ("site_name", "TicketForge Help Desk", "Name of the help desk system"),
    ("tickets_per_page", "25", "Number of tickets to display per page"),
    ("registration_enabled", "false", "Allow customers to self-register"),
    ("allowed_email_domains", "", "Comma separated email domains allowed to register (empty allows all)"),
    ("require_email_verification", "true", "Require email verification for new accounts"),
    ("max_attachment_size", "26214400", "Maximum attachment size in bytes (25MB)"),
    (
        "allowed_attachment_types",
        "image/jpeg,image/png,image/gif,application/pdf,application/msword,"
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "Allowed file MIME types",
    ),
    ("auto_assign_agent", "", "Id of the agent new tickets are assigned to (empty disables)"),
    ("theme_mode", "light", "Application theme mode (light or dark)"),
    ("primary_color", "#1976d2", "Primary brand color (hex code)"),
    ("company_name", "TicketForge", "Company/Organization name displayed in header"),
    ("logo_url", None, "URL path to company logo image"),
    ("favicon_url", None, "URL path to favicon image"),
]

PRESERVED_ON_RESET = frozenset({"registration_enabled", "allowed_email_domains"})

THEME_DEFAULTS: dict[str, str | None] = {
    "theme_mode": "light",
    "primary_color": "#1976d2",
    "company_name": "TicketForge",
    "logo_url": None,
    "favicon_url": None,
}


def seed_defaults(db: Session, updated_by: int | None = None) -> int:
    """Inserts missing default settings. Does not commit."""
    written = 0
    for key, value, description in DEFAULT_SETTINGS:
        if db.get(Setting, key) is None:
            db.add(Setting(key=key, value=value, description=description, updated_by=updated_by))
            written += 1
    db.flush()
    return written


def get_value(db: Session, key: str, default: str | None = None) -> str | None:
    setting = db.get(Setting, key)
    if setting is None or setting.value is None:
        return default
    return setting.value


def get_bool(db: Session, key: str, default: bool = False) -> bool:
    value = get_value(db, key)
    if value is None:
        return default
    return value.strip().lower() == "true"


def get_list(db: Session, key: str) -> list[str]:
    value = get_value(db, key) or ""
    return [item.strip() for item in value.split(",") if item.strip()]


def list_settings(db: Session) -> dict[str, SettingEntry]:
    return {
        s.key: SettingEntry(value=s.value, description=s.description, updated_at=s.updated_at)
        for s in db.query(Setting).order_by(Setting.key).all()
    }


def get_setting(db: Session, key: str) -> Setting:
    setting = db.get(Setting, key)
    if setting is None:
        raise NotFound("Setting not found")
    return setting


def upsert_setting(db: Session, key: str, payload: SettingUpdate, updated_by: int) -> tuple[Setting, bool]:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailed("No updates provided")

    setting = db.get(Setting, key)
    created = setting is None
    if created:
        setting = Setting(key=key)
        db.add(setting)
    for field, value in changes.items():
        setattr(setting, field, value)
    setting.updated_by = updated_by
    db.commit()
    db.refresh(setting)
    logger.info(f"Setting {'created' if created else 'updated'}: {key} by user {updated_by}")
    return setting, created


def upsert_many(db: Session, values: dict[str, str | None], updated_by: int) -> list[Setting]:
    """Writes every key in one transaction."""
    if not values:
        raise ValidationFailed("No updates provided")
    written = []
    for key, value in values.items():
        setting = db.get(Setting, key)
        if setting is None:
            setting = Setting(key=key)
            db.add(setting)
        setting.value = value
        setting.updated_by = updated_by
        written.append(setting)
    db.commit()
    for setting in written:
        db.refresh(setting)
    logger.info(f"Settings updated: {', '.join(values)} by user {updated_by}")
    return written


def delete_setting(db: Session, key: str) -> None:
    setting = get_setting(db, key)
    db.delete(setting)
    db.commit()
    logger.info(f"Setting deleted: {key}")


def reset_database(db: Session, updated_by: int, store: AttachmentStore | None = None) -> None:
    """Deletes all tickets with their conversation and restores default settings; users are kept."""
    files = [StoredFile.of(a) for a in db.query(Attachment).all()]
    db.query(Attachment).delete()
    db.query(Comment).delete()
    db.query(Ticket).delete()
    db.query(Setting).filter(Setting.key.not_in(PRESERVED_ON_RESET)).delete()
    seed_defaults(db, updated_by=updated_by)
    db.commit()
    if store is not None:
        store.discard(files)
    logger.info(f"Database reset by user {updated_by}")


def theme_settings(db: Session) -> dict[str, str | None]:
    stored = {
        s.key: s.value
        for s in db.query(Setting).filter(Setting.key.in_(list(THEME_DEFAULTS))).all()
    }
    return {key: stored.get(key) or default for key, default in THEME_DEFAULTS.items()}


BRANDING_DIR = "branding"
BRANDING_URL_PREFIX = "/theme/assets/"
BRANDING_MAX_FILE_SIZE = 5 * 1024 * 1024
BRANDING_TYPES: dict[str, tuple[str, list[str]]] = {
    "logo": ("logo_url", ["image/png", "image/jpeg", "image/svg+xml"]),
    "favicon": ("favicon_url", ["image/x-icon", "image/png"]),
}


def branding_store(upload_dir: str, kind: str) -> AttachmentStore:
    if kind not in BRANDING_TYPES:
        raise ValidationFailed("Invalid upload type")
    _, allowed = BRANDING_TYPES[kind]
    return AttachmentStore(upload_dir, BRANDING_MAX_FILE_SIZE, allowed, subdir=BRANDING_DIR)


def upload_branding(db: Session, upload_dir: str, kind: str, upload: UploadFile | None, updated_by: int) -> str:
    """
    Stores a logo or favicon and points the matching theme setting at it.

    The previously uploaded asset is removed once the new URL is committed.
    Images are stored as sent.
    """
    store = branding_store(upload_dir, kind)
    if upload is None or not upload.filename:
        raise ValidationFailed("No file uploaded")
    key, _ = BRANDING_TYPES[kind]

    stored = store.save(upload)
    url = f"{BRANDING_URL_PREFIX}{stored.filename}"
    setting = db.get(Setting, key)
    previous = setting.value if setting is not None else None
    try:
        if setting is None:
            setting = Setting(key=key, description=f"{kind} file URL")
            db.add(setting)
        setting.value = url
        setting.updated_by = updated_by
        db.commit()
    except Exception:
        db.rollback()
        store.discard([stored])
        raise

    if previous and previous.startswith(BRANDING_URL_PREFIX):
        store.discard_named(previous.removeprefix(BRANDING_URL_PREFIX))
    logger.info(f"{kind} uploaded by user {updated_by}: {url}")
    return url


def branding_asset(upload_dir: str, filename: str) -> Path | None:
    return AttachmentStore(upload_dir, BRANDING_MAX_FILE_SIZE, [], subdir=BRANDING_DIR).resolve_named(filename)
