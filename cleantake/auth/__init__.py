"""Credential resolution for the speech-to-text service.

WHY: The speech API authenticates with short-lived OAuth tokens whose
source depends on the deployment environment (metadata server in the
cloud, gcloud CLI on a workstation).

HOW: credentials.py defines one strategy class per token source and a
CredentialResolver that tries them in order.
"""

from cleantake.auth.credentials import CredentialResolver, CredentialUnavailable

__all__ = ["CredentialResolver", "CredentialUnavailable"]
