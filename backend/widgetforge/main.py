# backend/widgetforge/main.py

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from widgetforge.api.editor_api import router as editor_router
from widgetforge.api.widget_api import router as widget_router
from widgetforge.config import Settings, load_settings
from widgetforge.core.catalog import list_templates
from widgetforge.core.events import EventBus
from widgetforge.core.history import Scheduler, thread_timer
from widgetforge.core.store import DocumentStore, JsonFileStorage, KeyValueStorage, MemoryStorage
from widgetforge.services.editor_session import EditorSession

logger = logging.getLogger(__name__)


def build_storage(settings: Settings) -> KeyValueStorage:
    if settings.storage_backend == "memory":
        return MemoryStorage()
    return JsonFileStorage(settings.data_dir)


def create_app(settings: Optional[Settings] = None, *, scheduler: Scheduler = thread_timer) -> FastAPI:
    settings = settings or load_settings()

    # -----------------------------
    # Collaborators (one store, bus and session per app)
    # -----------------------------
    bus = EventBus()
    store = DocumentStore(build_storage(settings), bus=bus)
    session = EditorSession(
        store,
        bus=bus,
        history_limit=settings.history_limit,
        rename_window=settings.rename_window,
        scheduler=scheduler,
    )

    app = FastAPI(title="WidgetForge · Widget Document Engine")
    app.state.settings = settings
    app.state.bus = bus
    app.state.store = store
    app.state.session = session

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(widget_router)
    app.include_router(editor_router)

    @app.get("/")
    def home():
        return {
            "status": "running",
            "routes": ["/widgets/*", "/editor/*", "/catalog", "/templates"],
            "widgets": len(store.get_all()),
        }

    @app.get("/catalog")
    def catalog():
        return {
            "status": "ok",
            "categories": {
                category: [
                    {
                        "kind": entry.kind,
                        "label": entry.label,
                        "container": entry.container,
                        "default_properties": entry.default_properties,
                        "tooltip": entry.tooltip,
                    }
                    for entry in entries
                ]
                for category, entries in session.catalog.by_category().items()
            },
        }

    @app.get("/templates")
    def templates():
        return {
            "status": "ok",
            "templates": [
                {"id": template.id, "name": template.name, "category": template.category, "description": template.description}
                for template in list_templates()
            ],
        }

    logger.info(
        "widgetforge_ready storage=%s widgets=%d history_limit=%d",
        settings.storage_backend,
        len(store.get_all()),
        settings.history_limit,
    )
    return app
