# secureqr/oracle/__init__.py

"""
Threat oracle client.

Exposes:
    check_risk(url: str) -> RemoteRiskResult   (async, never raises)
"""

from .riskcheck import attribution_reasons, check_risk
