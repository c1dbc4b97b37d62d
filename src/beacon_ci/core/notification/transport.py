# src/beacon_ci/core/notification/transport.py
"""
Transporte do alerta para o canal externo (webhook HTTP).

O transporte só conhece URL e corpo JSON; qualquer erro (status HTTP de
erro, falha de rede, timeout) é convertido em `NotificationDeliveryFailure`.
Nenhum retry é feito aqui nem acima.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

import httpx

from beacon_ci.core.exceptions import NotificationDeliveryFailure


DEFAULT_TIMEOUT_SECONDS = 10.0


class WebhookTransport(Protocol):
    def post(self, url: str, payload: Mapping[str, Any]) -> None:
        ...


class HttpxWebhookTransport:
    """POST síncrono via httpx; um único request por chamada."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
    ):
        self.timeout = timeout
        self._client = client

    def _send(self, client: httpx.Client, url: str, payload: Mapping[str, Any]) -> None:
        response = client.post(url, json=dict(payload))
        response.raise_for_status()

    def post(self, url: str, payload: Mapping[str, Any]) -> None:
        try:
            if self._client is not None:
                self._send(self._client, url, payload)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    self._send(client, url, payload)
        except httpx.HTTPStatusError as e:
            # A URL do webhook é segredo: não entra em details.
            raise NotificationDeliveryFailure(
                message="Canal de notificação respondeu com erro",
                details={"reason": "http_status", "status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise NotificationDeliveryFailure(
                message="Falha de transporte ao enviar a notificação",
                details={"reason": e.__class__.__name__, "status_code": None},
            ) from e
