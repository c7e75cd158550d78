"""Schema of the configuration document.

Unknown keys are kept. A key explicitly set to null is treated as absent,
so its default applies.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from netacl import __version__
from netacl.Policy.ConfigPolicyEnum import ConfigPolicyEnum as ConfigPolicy


class Section(BaseModel):
    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class ClientSecurity(Section):
    authType: str = "DisabledAll"
    protocols: List[str] = Field(default_factory=lambda: ["SSLv3", "TLSv1.2", "TLSv1.1", "TLSv1"])


class SecurityContext(Section):
    client: ClientSecurity = Field(default_factory=ClientSecurity)
    debugging: bool = False
    keyStore: str = "etc/certs/domains-cert.jks"
    trustStore: str = "etc/certs/domains-cert.jks"
    keyStorePassword: str = "changeit"
    trustStorePassword: str = "changeit"
    keyStoreType: str = "jks"


class RestService(Section):
    keyStore: str = "etc/certs/api-cert.jks"
    keyStorePassword: str = "changeit"
    unsecured: bool = False
    bindAddr: str = "0.0.0.0"
    port: int = 4567
    maxThreads: int = 200
    minThreads: int = 8
    timeOutMillis: int = 5000


class GrpcService(Section):
    bindAddr: Optional[str] = None
    port: int = 50099


class DataSource(Section):
    provider: str = ConfigPolicy.FILES_PROVIDER.value


class Transport(Section):
    protocol: str = "tcp"
    port: int = 5060


class AccessControlListSpec(Section):
    allow: List[str] = Field(default_factory=list)
    deny: List[str] = Field(default_factory=list)


class Spec(Section):
    securityContext: SecurityContext = Field(default_factory=SecurityContext)
    restService: RestService = Field(default_factory=RestService)
    grpcService: GrpcService = Field(default_factory=GrpcService)
    registrarIntf: str = "External"
    dataSource: DataSource = Field(default_factory=DataSource)
    transport: List[Transport] = Field(default_factory=lambda: [Transport()])
    accessControlList: AccessControlListSpec = Field(default_factory=AccessControlListSpec)
    bindAddr: Optional[str] = None
    externAddr: Optional[str] = None
    localnets: Optional[List[str]] = None


class Metadata(Section):
    userAgent: str = f"NetACL {__version__}"


class Document(Section):
    apiVersion: Optional[str] = None
    kind: Optional[str] = None
    metadata: Metadata = Field(default_factory=Metadata)
    spec: Spec = Field(default_factory=Spec)
