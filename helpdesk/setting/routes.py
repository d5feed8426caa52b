# helpdesk/setting/routes.py
from fastapi import APIRouter, Depends, File, Response, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from helpdesk.access.policy import Action, Actor
from helpdesk.attachment.storage import AttachmentStore
from helpdesk.core.config import Settings
from helpdesk.core.database import get_db
from helpdesk.core.deps import get_app_settings, get_attachment_store, require
from helpdesk.core.errors import NotFound
from helpdesk.setting import services as setting_service
from helpdesk.setting.schemas import BrandingOut, MessageOut, SettingEntry, SettingOut, SettingUpdate, ThemeUpdate

router = APIRouter(prefix="/settings", tags=["Settings"])
theme_router = APIRouter(prefix="/theme", tags=["Theme"])

can_read = require(Action.SETTING_READ)
can_mutate = require(Action.SETTING_MUTATE)


@router.get("/", response_model=dict[str, SettingEntry], dependencies=[Depends(can_read)])
def list_all(db: Session = Depends(get_db)):
    return setting_service.list_settings(db)


@router.put("/", response_model=list[SettingOut])
def update_many(
    values: dict[str, str | None],
    db: Session = Depends(get_db),
    actor: Actor = Depends(can_mutate),
):
    return setting_service.upsert_many(db, values, updated_by=actor.id)


@router.post("/reset-database", response_model=MessageOut)
def reset_database(
    db: Session = Depends(get_db),
    actor: Actor = Depends(can_mutate),
    store: AttachmentStore = Depends(get_attachment_store),
):
    setting_service.reset_database(db, updated_by=actor.id, store=store)
    return MessageOut(message="Database reset successfully. All tickets deleted and settings restored to defaults.")


@router.get("/{key}", response_model=SettingOut, dependencies=[Depends(can_read)])
def get(key: str, db: Session = Depends(get_db)):
    return setting_service.get_setting(db, key)


@router.put("/{key}", response_model=SettingOut)
def upsert(
    key: str,
    payload: SettingUpdate,
    response: Response,
    db: Session = Depends(get_db),
    actor: Actor = Depends(can_mutate),
):
    setting, created = setting_service.upsert_setting(db, key, payload, updated_by=actor.id)
    if created:
        response.status_code = 201
    return setting


@router.delete("/{key}", response_model=MessageOut, dependencies=[Depends(can_mutate)])
def delete(key: str, db: Session = Depends(get_db)):
    setting_service.delete_setting(db, key)
    return MessageOut(message="Setting deleted successfully")


# public: the login page is themed before anyone signs in
@theme_router.get("/settings", response_model=dict[str, str | None])
def theme(db: Session = Depends(get_db)):
    return setting_service.theme_settings(db)


@theme_router.put("/settings", response_model=MessageOut)
def update_theme(
    payload: ThemeUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(can_mutate),
):
    setting_service.upsert_many(db, payload.model_dump(exclude_unset=True), updated_by=actor.id)
    return MessageOut(message="Theme settings updated successfully")


@theme_router.post("/upload/{kind}", response_model=BrandingOut)
def upload_branding(
    kind: str,
    file: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(can_mutate),
    settings: Settings = Depends(get_app_settings),
):
    url = setting_service.upload_branding(db, settings.UPLOAD_DIR, kind, file, updated_by=actor.id)
    return BrandingOut(message=f"{kind} uploaded successfully", url=url)


@theme_router.get("/assets/{filename}")
def branding_asset(filename: str, settings: Settings = Depends(get_app_settings)):
    path = setting_service.branding_asset(settings.UPLOAD_DIR, filename)
    if path is None:
        raise NotFound("Asset not found")
    return FileResponse(path)
