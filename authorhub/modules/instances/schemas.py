from pydantic import BaseModel, Field
from typing import Optional, Dict, List
from datetime import datetime


class InstanceRef(BaseModel):
    instance_id: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1)


class SecurityGroupRef(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None


class StatusDetail(BaseModel):
    name: Optional[str] = None
    status: Optional[str] = None


class InstanceDiagnostics(BaseModel):
    has_public_ip: bool
    is_running: bool
    has_security_groups: bool
    system_checks_ok: bool
    instance_checks_ok: bool


class InstanceStatus(BaseModel):
    instance_id: str
    state: Optional[str] = None
    state_reason: Optional[str] = None
    public_ip: Optional[str] = None
    private_ip: Optional[str] = None
    instance_type: Optional[str] = None
    launch_time: Optional[datetime] = None
    availability_zone: Optional[str] = None
    security_groups: List[SecurityGroupRef] = []
    vpc_id: Optional[str] = None
    subnet_id: Optional[str] = None
    system_status: Optional[str] = None
    instance_status: Optional[str] = None
    status_details: List[StatusDetail] = []
    tags: Dict[str, str] = {}
    monitoring: Optional[str] = None
    platform: Optional[str] = None
    architecture: Optional[str] = None
    permissions_used: List[str] = []
    diagnostics: InstanceDiagnostics


class HttpCheckDetails(BaseModel):
    tested: bool = False
    endpoint: str = ""
    error: str = ""
    status: int = 0
    response_time_ms: Optional[float] = None


class InstanceStatusResponse(BaseModel):
    success: bool = True
    status: InstanceStatus
    http_accessible: bool
    http_check_details: HttpCheckDetails
    recommendations: List[str]


class UnblockHttpResponse(BaseModel):
    success: bool = True
    already_open: bool = False
    message: str
    security_group_id: Optional[str] = None
    rule: Optional[Dict[str, object]] = None


class SshDiagnosticRequest(InstanceRef):
    auto_fix: bool = False


class NginxDiagnostics(BaseModel):
    installed: bool = False
    running: bool = False
    enabled: bool = False
    status: str = ""


class NodeDiagnostics(BaseModel):
    installed: bool = False
    version: str = ""


class ApplicationDiagnostics(BaseModel):
    found: bool = False
    running: bool = False


class PortDiagnostics(BaseModel):
    port_80_listening: bool = False
    port_3000_listening: bool = False


class SshDiagnostics(BaseModel):
    connected: bool = False
    nginx: NginxDiagnostics = NginxDiagnostics()
    nodejs: NodeDiagnostics = NodeDiagnostics()
    application: ApplicationDiagnostics = ApplicationDiagnostics()
    ports: PortDiagnostics = PortDiagnostics()
    fixes: List[str] = []
    errors: List[str] = []


class SshDiagnosticResponse(BaseModel):
    success: bool = True
    diagnostics: SshDiagnostics
    auto_fix_applied: bool
