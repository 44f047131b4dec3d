"""
Outbound HTTP.

The marine weather lookup is the only network call SurfScore makes; the analysis and
scoring core never touches the network. Open-Meteo reports bad requests as
`{"error": true, "reason": "..."}`, sometimes with a 200 status, so both cases surface
here as `ValueError` with the provider's reason.
"""

from __future__ import annotations

from typing import Any

import httpx

USER_AGENT = "surfscore/0.1.0"


def _provider_reason(payload: Any) -> str | None:
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload.get("reason") or "unspecified error")
    return None


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    timeout_seconds: float = 15,
) -> Any:
    """GET `url` and return its JSON body.

    Raises:
        httpx.HTTPError: transport failure or a non-2xx status without a provider reason.
        ValueError: undecodable body, or the provider rejected the request.
    """
    with httpx.Client(timeout=timeout_seconds, headers={"User-Agent": USER_AGENT}) as client:
        resp = client.get(url, params=params)

    try:
        payload = resp.json()
    except ValueError:
        resp.raise_for_status()
        raise

    reason = _provider_reason(payload)
    if reason is not None:
        raise ValueError(f"{url} rejected the request (HTTP {resp.status_code}): {reason}")
    resp.raise_for_status()
    return payload
