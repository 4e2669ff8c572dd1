"""HTTP entry point: POST provisions a site, DELETE tears it down."""
from __future__ import annotations

import logging
import threading
from typing import Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import __version__
from .config import ProvisionerSettings, load_settings
from .errors import ClusterError, DeprovisionError, InvalidSiteRequest, ProvisionError, SiteConflict
from .kube import SiteAPI
from .models import SiteRequest
from .operations.deprovision import DeprovisionOperations
from .operations.provision import ProvisionOperations

_LOG = logging.getLogger(__name__)


class _Operations:
    """Builds the cluster gateway on first use and shares it across requests."""

    def __init__(self, settings: ProvisionerSettings, api: Optional[SiteAPI]) -> None:
        self.settings = settings
        self._api = api
        self._lock = threading.Lock()
        self._provision: Optional[ProvisionOperations] = None
        self._deprovision: Optional[DeprovisionOperations] = None

    def _ensure(self) -> None:
        with self._lock:
            if self._provision is not None:
                return
            if self._api is None:
                self._api = SiteAPI(self.settings.context, self.settings.site.namespace)
            self._provision = ProvisionOperations(self._api, self.settings)
            self._deprovision = DeprovisionOperations(self._api, parallel=True)

    @property
    def provision(self) -> ProvisionOperations:
        self._ensure()
        assert self._provision is not None
        return self._provision

    @property
    def deprovision(self) -> DeprovisionOperations:
        self._ensure()
        assert self._deprovision is not None
        return self._deprovision


def create_app(settings: Optional[ProvisionerSettings] = None, api: Optional[SiteAPI] = None) -> FastAPI:
    settings = settings or load_settings()
    operations = _Operations(settings, api)

    app = FastAPI(title="Site Provisioner", version=__version__)
    app.state.settings = settings
    app.state.operations = operations

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = "; ".join(str(error.get("msg")) for error in exc.errors())
        _LOG.warning("Rejected %s request: %s", request.method, messages)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": messages})

    @app.get("/healthz")
    def healthz() -> dict:
        return {"status": "ok"}

    @app.post("/", status_code=status.HTTP_204_NO_CONTENT)
    def provision(site: SiteRequest) -> Response:
        try:
            operations.provision.provision(site)
        except InvalidSiteRequest as exc:
            _LOG.warning("Rejected provision of %s: %s", site.domain_name, exc)
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})
        except SiteConflict as exc:
            return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})
        except (ProvisionError, ClusterError) as exc:
            _LOG.error("Provision of %s failed: %s", site.domain_name, exc)
            return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.delete("/", status_code=status.HTTP_204_NO_CONTENT)
    def deprovision(site: SiteRequest) -> Response:
        try:
            operations.deprovision.deprovision(site)
        except DeprovisionError as exc:
            _LOG.error("Deprovision of %s failed: %s", site.domain_name, exc)
            return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app
