"""Configuration models and helpers for nais-deploy."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field


class ClusterContext(BaseModel):
    """Connection context to interact with the target cluster."""

    kubeconfig: Optional[str] = None
    context: Optional[str] = None
    in_cluster: bool = False
    verify_ssl: bool = True


class DeployerConfig(BaseModel):
    """Settings shared by every deployment handled by one deployer."""

    cluster: ClusterContext = Field(default_factory=ClusterContext)
    fasit_url: str = Field(default="https://fasit.local", alias="fasitUrl")
    cluster_subdomain: str = Field(default="nais.local", alias="clusterSubdomain")
    cluster_name: str = Field(default="local", alias="clusterName")
    register_application_instances: bool = Field(default=True, alias="registerApplicationInstances")
    http_timeout: float = Field(default=30, alias="httpTimeout")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_file(cls, path: str | Path) -> "DeployerConfig":
        document_path = Path(path)
        data = yaml.safe_load(document_path.read_text())
        if not isinstance(data, dict):
            raise ValueError("Configuration file must contain a mapping at the top level.")
        return cls.model_validate(data)
