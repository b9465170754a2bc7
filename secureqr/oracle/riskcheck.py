# secureqr/oracle/riskcheck.py

"""
Remote risk check against the blacklist oracle.

    GET {base}/api/riskcheck?url=<encoded>  ->  {isRisky, message?, checkedDomain?,
                                                 foundInFiles?, usomDetails?}

`check_risk` never raises: any failure comes back as
RemoteRiskResult(is_risky=False, error=<code>), which callers must show as
"could not verify", never as "safe".
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import List, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError

from .. import config
from ..models import GithubReason, Reason, ReasonCode, RemoteRiskResult, UsomReason
from .usom_types import resolve_usom_type

logger = logging.getLogger("secureqr.riskcheck")

RISKCHECK_PATH = "/api/riskcheck"

# encodeURIComponent leaves these unescaped.
_URI_COMPONENT_SAFE = "!*'()"


def _degraded(error: str) -> RemoteRiskResult:
    return RemoteRiskResult(
        is_risky=False, message="", checked_domain="", found_in_files=[], error=error
    )


def build_endpoint(base_url: str, url: str) -> str:
    return f"{base_url.rstrip('/')}{RISKCHECK_PATH}?url={quote(url, safe=_URI_COMPONENT_SAFE)}"


def _parse_body(resp: requests.Response) -> RemoteRiskResult:
    try:
        data = resp.json()
    except ValueError:
        return _degraded("invalid_json")
    if not isinstance(data, dict):
        return _degraded("invalid_json")

    data = {k: v for k, v in data.items() if v is not None}
    try:
        result = RemoteRiskResult.model_validate(data)
    except ValidationError:
        return _degraded("invalid_json")

    # A server-side error string still means "unknown".
    if result.error:
        return _degraded(str(result.error))
    return result


def fetch_risk(endpoint: str, timeout: float) -> RemoteRiskResult:
    """Blocking request. Runs in a worker thread under check_risk."""
    t0 = time.time()
    try:
        resp = requests.get(endpoint, timeout=timeout, headers={"Accept": "application/json"})
    except requests.Timeout:
        logger.warning(json.dumps({"event": "riskcheck_timeout", "endpoint": endpoint}))
        return _degraded("timeout")
    except requests.RequestException as exc:
        logger.warning(
            json.dumps({"event": "riskcheck_network_error", "endpoint": endpoint, "error": str(exc)})
        )
        return _degraded("network_error")

    duration = round((time.time() - t0) * 1000, 2)
    logger.info(
        json.dumps({"event": "riskcheck_response", "status": resp.status_code, "duration_ms": duration})
    )

    if not resp.ok:
        return _degraded(f"http_{resp.status_code}")

    result = _parse_body(resp)
    if result.is_risky:
        logger.info(
            json.dumps(
                {
                    "event": "riskcheck_risky",
                    "domain": result.checked_domain,
                    "sources": result.found_in_files,
                }
            )
        )
    return result


async def check_risk(
    url: str, base_url: Optional[str] = None, timeout: Optional[float] = None
) -> RemoteRiskResult:
    """
    Ask the oracle about one URL. Exactly one GET, no retries; the whole
    call is bounded by `timeout` seconds (RISKCHECK_TIMEOUT by default).
    """
    base = base_url if base_url is not None else config.RISKCHECK_BASE_URL
    if not base:
        return _degraded("missing_base_url")

    limit = config.RISKCHECK_TIMEOUT if timeout is None else timeout
    endpoint = build_endpoint(base, url)
    try:
        return await asyncio.wait_for(asyncio.to_thread(fetch_risk, endpoint, limit), limit)
    except asyncio.TimeoutError:
        logger.warning(json.dumps({"event": "riskcheck_timeout", "endpoint": endpoint}))
        return _degraded("timeout")
    except Exception as exc:
        logger.error(json.dumps({"event": "riskcheck_failed", "error": str(exc)}))
        return _degraded("network_error")


# ---------------------------------------------------------
# SOURCE ATTRIBUTION
# ---------------------------------------------------------

def _is_usom(remote: RemoteRiskResult) -> bool:
    if remote.usom_details:
        return True
    return any("usom" in str(name).lower() for name in remote.found_in_files)


def _usom_reason(remote: RemoteRiskResult) -> UsomReason:
    details = remote.usom_details or {}
    raw_type = details.get("type") or details.get("type_code") or details.get("category")
    description = details.get("desc") or details.get("description")
    code, title = resolve_usom_type(raw_type, description)
    return UsomReason(
        domain=remote.checked_domain or details.get("url") or None,
        type_code=code,
        title=title,
        description=str(description) if description else None,
        date=str(details["date"]) if details.get("date") else None,
    )


def attribution_reasons(remote: RemoteRiskResult) -> List[Reason]:
    """Contextual code plus one structured source object for a risky verdict."""
    if _is_usom(remote):
        return [ReasonCode.USOM, _usom_reason(remote)]
    if remote.found_in_files:
        return [
            ReasonCode.GITHUB,
            GithubReason(domain=remote.checked_domain or None, files=list(remote.found_in_files)),
        ]
    return []
