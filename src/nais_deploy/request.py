"""Deployment request model, deprecated-field compatibility and validation."""
from __future__ import annotations

from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

ALLOWED_ZONES = ("fss", "sbs", "iapp")

# deprecated attribute -> (canonical attribute, deprecated json name, canonical json name)
DEPRECATED_FIELDS: Dict[str, Tuple[str, str, str]] = {
    "environment": ("fasit_environment", "environment", "fasitEnvironment"),
    "username": ("fasit_username", "username", "fasitUsername"),
    "password": ("fasit_password", "password", "fasitPassword"),
}


class DeploymentRequest(BaseModel):
    """A request to deploy one version of an application to a namespace."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    application: str = ""
    version: str = ""
    fasit_environment: str = Field(default="", alias="fasitEnvironment")
    namespace: str = ""
    zone: str = ""
    manifest_url: str = Field(default="", alias="manifestUrl")
    fasit_username: str = Field(default="", alias="fasitUsername")
    fasit_password: str = Field(default="", alias="fasitPassword")

    # Deprecated aliases, folded into the fields above by merge_deprecated_fields.
    environment: str = ""
    username: str = ""
    password: str = ""


def merge_deprecated_fields(request: DeploymentRequest) -> Tuple[DeploymentRequest, List[str]]:
    """Return ``request`` with deprecated fields folded into their replacements.

    Every deprecated field in use produces one warning. A deprecated value only
    fills the canonical field when the canonical field is empty.
    """

    updates: Dict[str, str] = {}
    warnings: List[str] = []
    for deprecated, (canonical, old_name, new_name) in DEPRECATED_FIELDS.items():
        value = getattr(request, deprecated)
        if not value:
            continue
        if not getattr(request, canonical):
            updates[canonical] = value
        warnings.append(
            f"Deployment request property '{old_name}' is deprecated. Use '{new_name}' instead"
        )
    if updates:
        request = request.model_copy(update=updates)
    return request, warnings


def validate_request(request: DeploymentRequest) -> List[str]:
    """Return every validation error for ``request``; an empty list means valid."""

    errors: List[str] = []
    required = [
        ("application", request.application),
        ("version", request.version),
        ("environment", request.fasit_environment),
        ("zone", request.zone),
        ("namespace", request.namespace),
        ("username", request.fasit_username),
        ("password", request.fasit_password),
    ]
    for field_name, value in required:
        if not value:
            errors.append(f"{field_name} is required and is empty")

    if request.zone and request.zone not in ALLOWED_ZONES:
        errors.append("zone can only be fss, sbs or iapp")

    return errors
