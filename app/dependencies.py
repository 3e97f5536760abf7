"""Request-scoped accessors and error translation shared by the routers."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException, Request, status

from datastore.errors import RecordConflict, RecordNotFound, StoreUnavailable
from services.maintenance import MaintenanceService
from services.notifications import EmailNotifier
from services.signing import UploadSigner


def get_service(request: Request) -> MaintenanceService:
    return request.app.state.service


def get_notifier(request: Request) -> EmailNotifier:
    return request.app.state.notifier


def get_signer(request: Request) -> UploadSigner:
    return request.app.state.signer


@contextmanager
def store_errors() -> Iterator[None]:
    """Map record store failures onto HTTP responses."""
    try:
        yield
    except RecordNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RecordConflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except StoreUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
