from typing import Optional
import httpx
from pydantic import ValidationError
from .models import ScoringConfig


class WeightProviderError(RuntimeError):
    pass


class Unauthorized(WeightProviderError):
    pass


class Unavailable(WeightProviderError):
    pass


class WeightProvider:
    """Client for the remote scoring-config service.

    One POST per call, bounded by ``timeout`` and never retried. The returned
    weights are whatever the service sent; callers treat them as untrusted.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def fetch(self, identity: str, api_key: str) -> ScoringConfig:
        url = f"{self.base_url}/config"
        payload = {"email": identity, "api_key": api_key}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise Unavailable(f"fetch config: {e}") from e
        if resp.status_code == 401:
            raise Unauthorized("unauthorized: invalid API key")
        if resp.status_code != 200:
            raise Unavailable(f"config API error {resp.status_code}: {resp.text}")
        try:
            return ScoringConfig.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise Unavailable(f"decode config: {e}") from e
