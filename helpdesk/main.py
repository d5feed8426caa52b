# helpdesk/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from helpdesk.access.policy import AccessControl
from helpdesk.attachment.routes import router as attachment_router
from helpdesk.attachment.storage import AttachmentStore
from helpdesk.auth.routes import router as auth_router
from helpdesk.comment.routes import router as comment_router
from helpdesk.core.config import Settings, get_settings
from helpdesk.core.database import build_engine, build_session_factory, init_schema
from helpdesk.core.errors import register_error_handlers
from helpdesk.core.logging_config import logger, setup_logging
from helpdesk.group.routes import router as group_router
from helpdesk.notification.dispatcher import NotificationDispatcher, SmtpTransport, Transport
from helpdesk.setting import services as setting_service
from helpdesk.setting.routes import router as setting_router
from helpdesk.setting.routes import theme_router
from helpdesk.ticket.routes import router as ticket_router
from helpdesk.user import services as user_service
from helpdesk.user.routes import router as user_router


def create_app(settings: Settings | None = None, transport: Transport | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    engine = build_engine(settings.DATABASE_URL)
    session_factory = build_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_schema(engine)
        with session_factory() as db:
            user_service.bootstrap_admin(db, settings)
            if setting_service.seed_defaults(db):
                logger.info("Default settings seeded")
            db.commit()
        logger.info(f"{settings.APP_NAME} started")
        yield
        engine.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESC,
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.access = AccessControl()
    app.state.dispatcher = NotificationDispatcher(
        transport if transport is not None else SmtpTransport.from_settings(settings)
    )
    app.state.attachments = AttachmentStore(
        settings.UPLOAD_DIR, settings.MAX_FILE_SIZE, settings.allowed_file_types
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    # Routers
    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(group_router)
    app.include_router(ticket_router)
    app.include_router(comment_router)
    app.include_router(attachment_router)
    app.include_router(setting_router)
    app.include_router(theme_router)

    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok"}

    return app


app = create_app()
