from pydantic import BaseModel, Field, model_validator
from typing import Optional, Dict, Any, List, Literal
from datetime import datetime
from enum import Enum


class DeploymentStep(str, Enum):
    INITIALIZE = "initialize"
    SECURITY_GROUP = "security_group"
    KEY_PAIR = "key_pair"
    EC2_INSTANCE = "ec2_instance"
    SYSTEM_SETUP = "system_setup"
    WEB_SERVER = "web_server"
    DATABASE = "database"
    FINALIZE = "finalize"


class StepStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class StatusEvent(BaseModel):
    v: int = 1
    step: DeploymentStep
    status: StepStatus
    message: str = ""
    ts: Optional[datetime] = None
    error: Optional[str] = None


class ProgressStep(BaseModel):
    step: DeploymentStep
    name: str
    status: StepStatus
    message: str
    timestamp: Optional[datetime] = None
    error: Optional[str] = None


class DeploymentProgress(BaseModel):
    deployment_id: str
    overall_status: Literal["deploying", "completed", "failed"]
    steps: List[ProgressStep]
    percent: float
    started_at: Optional[datetime] = None
    elapsed_seconds: Optional[int] = None


class DeploymentCreate(BaseModel):
    deployment_name: str = Field(..., min_length=1, max_length=100)
    ec2_instance_id: Optional[str] = None
    ec2_public_ip: Optional[str] = None
    region: str = "us-east-1"
    deployment_type: Literal["fresh", "code-only"] = "code-only"


class DeploymentUpdate(BaseModel):
    deployment_name: Optional[str] = Field(None, min_length=1, max_length=100)
    ec2_instance_id: Optional[str] = None
    ec2_public_ip: Optional[str] = None
    region: Optional[str] = None
    status: Optional[Literal["pending", "deploying", "running", "failed", "stopped"]] = None


class DeploymentResponse(BaseModel):
    id: str
    deployment_name: str
    ec2_instance_id: Optional[str] = None
    ec2_public_ip: Optional[str] = None
    region: str
    status: str
    deployment_type: Optional[str] = None
    deployment_log: Optional[str] = None
    status_events: List[Dict[str, Any]] = []
    ssm_command_id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    last_deployed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SsmDeployRequest(BaseModel):
    deployment_id: Optional[str] = None
    instance_id: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1)
    project_name: str = Field("web-app", pattern=r"^[A-Za-z0-9._-]+$")
    build_command: str = "npm install && npm run build"
    deployment_type: Literal["fresh", "code-only"] = "code-only"
    auto_setup_ssm: bool = True
    git_repo_url: Optional[str] = None
    git_branch: str = Field("main", pattern=r"^[A-Za-z0-9._/-]+$")
    s3_bucket_name: Optional[str] = None

    @model_validator(mode="after")
    def check_single_source(self):
        if self.git_repo_url and self.s3_bucket_name:
            raise ValueError("Provide either git_repo_url or s3_bucket_name, not both")
        return self


class SsmDeployResponse(BaseModel):
    success: bool = True
    message: str
    deployment_id: str
    command_id: str
    ssm_setup_performed: bool = False
    session_manager_url: str


class DeploymentLogsResponse(BaseModel):
    deployment_id: str
    log: str
    status: str
    has_more: bool = False


class TableStats(BaseModel):
    table: str
    label: str
    total: int
    transferred: int
    pending: int


class DatabaseStatistics(BaseModel):
    table_count: int
    total_records: int
    transferred: int
    pending: int
    tables: List[TableStats]
    last_deployed_at: Optional[datetime] = None
