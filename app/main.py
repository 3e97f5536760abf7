from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from app.api import router
from datastore.record_store import RecordStore, build_record_store
from logging_config import configure_logging
from services.forecaster import WearForecaster
from services.maintenance import MaintenanceService
from services.notifications import EmailNotifier
from services.signing import UploadSigner
from settings import Settings, get_settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    try:
        yield
    finally:
        if app.state.owns_store:
            app.state.service.store.dispose()


def create_app(
    store: Optional[RecordStore] = None,
    notifier: Optional[EmailNotifier] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title="Maintenance Records Service",
        description="Equipment inspection records with brush wear forecasting and session tracking.",
        version="0.1.0",
        lifespan=lifespan,
    )
    notifier = notifier or EmailNotifier(settings)
    app.state.owns_store = store is None
    app.state.notifier = notifier
    app.state.signer = UploadSigner(settings)
    app.state.service = MaintenanceService(
        store=store or build_record_store(settings.database_url),
        forecaster=WearForecaster(),
        notifier=notifier,
        public_base_url=settings.public_base_url,
        list_limit=settings.record_list_limit,
    )
    app.include_router(router)
    return app


app = create_app()
