"""
Code deployment to an existing EC2 instance through AWS Systems Manager.

The deploy script runs on the instance via AWS-RunShellScript and reports its
progress as AUTHORHUB_EVENT lines (see progress.py). refresh() pulls the
command output back into the aws_deployments row.
"""

import json
import shlex
import time
import logging
from typing import Callable, List, Optional, Tuple
from botocore.exceptions import ClientError
from fastapi import HTTPException
from supabase import Client
from authorhub.modules.deployments.progress import extract_events, events_from_rows
from authorhub.modules.deployments.schemas import (
    DeploymentCreate, DeploymentResponse, DeploymentStep, SsmDeployRequest,
    SsmDeployResponse, StatusEvent, StepStatus
)
from authorhub.modules.deployments.service import DeploymentService
from authorhub.modules.instances.aws_clients import AwsClientFactory, aws_error

logger = logging.getLogger(__name__)

SSM_POLICY_ARN = "arn:aws:iam::aws:policy/AmazonSSMManagedInstanceCore"
EC2_TRUST_POLICY = {
    "Version": "2012-10-17",
    "Statement": [{
        "Effect": "Allow",
        "Principal": {"Service": "ec2.amazonaws.com"},
        "Action": "sts:AssumeRole",
    }],
}
USER_DATA_DIRS = ("uploads", "data", "storage", "database")
DEPLOY_PERMISSIONS = [
    "ssm:SendCommand",
    "ssm:GetCommandInvocation",
    "ssm:DescribeInstanceInformation",
    "iam:CreateRole",
    "iam:AttachRolePolicy",
    "iam:CreateInstanceProfile",
    "iam:AddRoleToInstanceProfile",
    "iam:PassRole",
    "ec2:AssociateIamInstanceProfile",
]
# steps handled outside the instance; an SSM deploy targets an instance that already exists
SERVER_STEPS = (
    DeploymentStep.INITIALIZE,
    DeploymentStep.SECURITY_GROUP,
    DeploymentStep.KEY_PAIR,
    DeploymentStep.EC2_INSTANCE,
)
PROFILE_PROPAGATION_SECONDS = 10
COMMAND_TIMEOUT_SECONDS = 3600

SSM_STATUS_MAP = {
    "Pending": "deploying",
    "InProgress": "deploying",
    "Delayed": "deploying",
    "Success": "running",
}


def map_ssm_status(ssm_status: Optional[str]) -> str:
    """Pending/InProgress/Delayed -> deploying, Success -> running, anything else -> failed"""
    return SSM_STATUS_MAP.get(ssm_status or "", "failed")


def role_name_for(instance_id: str) -> str:
    return f"authorhub-ssm-role-{instance_id}"


def profile_name_for(instance_id: str) -> str:
    return f"authorhub-ssm-profile-{instance_id}"


def session_manager_url(instance_id: str, region: str) -> str:
    return f"https://console.aws.amazon.com/systems-manager/session-manager/{instance_id}?region={region}"


_SCRIPT_HEADER = r"""#!/bin/bash
set -e

CURRENT_STEP="system_setup"
emit_event() {
    printf 'AUTHORHUB_EVENT {"v": 1, "step": "%s", "status": "%s", "message": "%s", "ts": "%s"}\n' \
        "$1" "$2" "$3" "$(date -u +%Y-%m-%dT%H:%M:%SZ)"
}
trap 'emit_event "$CURRENT_STEP" failed "Command failed at line $LINENO"' ERR
"""

_SYSTEM_SETUP = r"""
emit_event system_setup in_progress "Installing system packages"
echo "Updating system packages..."
if command -v apt-get &> /dev/null; then
    sudo apt-get update
    PKG_MANAGER="apt-get"
elif command -v yum &> /dev/null; then
    sudo yum update -y
    PKG_MANAGER="yum"
fi

if ! command -v node &> /dev/null; then
    echo "Installing Node.js..."
    curl -fsSL https://deb.nodesource.com/setup_18.x | sudo -E bash -
    sudo $PKG_MANAGER install -y nodejs
fi

if ! command -v nginx &> /dev/null; then
    echo "Installing Nginx..."
    sudo $PKG_MANAGER install -y nginx
    sudo systemctl enable nginx
fi
emit_event system_setup completed "System packages ready"
"""

_NGINX_SITE = r"""sudo tee /etc/nginx/sites-available/default > /dev/null << 'NGINXCONF'
server {
    listen 80 default_server;
    listen [::]:80 default_server;

    root /var/www/html;
    index index.html;

    server_name _;

    location / {
        try_files $uri $uri/ /index.html;
    }
}
NGINXCONF
"""

_COPY_BUILD = r"""if [ -d "dist" ]; then
    echo "Deploying from dist folder..."
    sudo cp -r dist/* /var/www/html/
elif [ -d "build" ]; then
    echo "Deploying from build folder..."
    sudo cp -r build/* /var/www/html/
else
    echo "Error: No dist or build folder found"
    false
fi

echo "Setting file permissions..."
sudo chown -R www-data:www-data /var/www/html
sudo find /var/www/html -type d -exec chmod 755 {} \;
sudo find /var/www/html -type f -exec chmod 644 {} \;
"""


_NGINX_RELOAD = r"""if ! sudo nginx -t; then
    emit_event finalize failed "Nginx configuration test failed"
    exit 1
fi
sudo systemctl reload nginx
"""


def _source_block(request: SsmDeployRequest) -> str:
    if request.git_repo_url:
        repo = shlex.quote(request.git_repo_url)
        branch = shlex.quote(request.git_branch)
        return (
            f'echo "Fetching repository..."\n'
            f'if [ -d ".git" ]; then\n'
            f'    git fetch origin\n'
            f'    git checkout {branch}\n'
            f'    git pull origin {branch}\n'
            f'else\n'
            f'    git clone -b {branch} {repo} .\n'
            f'fi\n'
        )
    if request.s3_bucket_name:
        bucket = shlex.quote(f"s3://{request.s3_bucket_name}/")
        return (
            f'echo "Syncing files from S3..."\n'
            f'aws s3 sync {bucket} "$PROJECT_DIR/" --region {shlex.quote(request.region)}\n'
            f'if [ ! -f "package.json" ]; then\n'
            f'    echo "Error: No package.json found after S3 sync"\n'
            f'    false\n'
            f'fi\n'
        )
    return (
        'echo "No repository or bucket given, using files already on the instance"\n'
        'if [ ! -f "package.json" ]; then\n'
        '    echo "Error: No package.json found in $PROJECT_DIR"\n'
        '    false\n'
        'fi\n'
    )


def _build_block(build_command: str) -> str:
    # a subshell so a failure anywhere in an && chain still stops the script
    return f"(\n{build_command}\n)\n"


def build_deploy_script(request: SsmDeployRequest) -> str:
    """Render the bash script for a fresh install or a data-preserving code update."""
    fresh = request.deployment_type == "fresh"
    parts = [_SCRIPT_HEADER]
    parts.append(f'echo "=== Starting {"FRESH installation" if fresh else "CODE-ONLY update"} via SSM ==="\n')
    parts.append(_SYSTEM_SETUP)

    parts.append(f'\nPROJECT_DIR="/var/www/{request.project_name}"\n')
    parts.append('BACKUP_TIMESTAMP=$(date +%Y%m%d_%H%M%S)\n')
    parts.append('sudo mkdir -p /var/www/html\n')

    parts.append('\nCURRENT_STEP="database"\n')
    if fresh:
        parts.append('emit_event database skipped "Fresh install clears existing data"\n')
        parts.append('echo "Removing existing project directory: $PROJECT_DIR"\n')
        parts.append('sudo rm -rf "$PROJECT_DIR"\n')
    else:
        dirs = " ".join(f'"{d}"' for d in USER_DATA_DIRS)
        parts.append('emit_event database in_progress "Backing up user data"\n')
        parts.append(
            'if [ "$(ls -A /var/www/html)" ]; then\n'
            '    sudo cp -r /var/www/html "/var/www/html.backup.$BACKUP_TIMESTAMP"\n'
            'fi\n'
            f'USER_DATA_DIRS=({dirs})\n'
            'for dir in "${USER_DATA_DIRS[@]}"; do\n'
            '    if [ -d "/var/www/html/$dir" ]; then\n'
            '        sudo cp -r "/var/www/html/$dir" "/tmp/$dir.backup.$BACKUP_TIMESTAMP"\n'
            '    fi\n'
            'done\n'
        )
    parts.append('sudo mkdir -p "$PROJECT_DIR"\n')
    parts.append('sudo chown -R $USER:$USER "$PROJECT_DIR"\n')
    parts.append('cd "$PROJECT_DIR"\n')

    parts.append('\nCURRENT_STEP="web_server"\n')
    parts.append('emit_event web_server in_progress "Building application"\n')
    parts.append(_source_block(request))
    parts.append('export NODE_OPTIONS=--max-old-space-size=4096\n')
    parts.append(_build_block(request.build_command))
    if fresh:
        parts.append('sudo rm -rf /var/www/html/*\n')
    parts.append(_COPY_BUILD)
    if fresh:
        parts.append(_NGINX_SITE)
    else:
        parts.append('if [ ! -s "/etc/nginx/sites-available/default" ]; then\n')
        parts.append(_NGINX_SITE)
        parts.append('fi\n')
    parts.append('emit_event web_server completed "Application built and copied to web root"\n')

    if not fresh:
        parts.append('\nCURRENT_STEP="database"\n')
        parts.append(
            'for dir in "${USER_DATA_DIRS[@]}"; do\n'
            '    if [ -d "/tmp/$dir.backup.$BACKUP_TIMESTAMP" ]; then\n'
            '        sudo cp -r "/tmp/$dir.backup.$BACKUP_TIMESTAMP" "/var/www/html/$dir"\n'
            '        sudo rm -rf "/tmp/$dir.backup.$BACKUP_TIMESTAMP"\n'
            '    fi\n'
            'done\n'
        )
        parts.append('emit_event database completed "User data preserved"\n')

    parts.append('\nCURRENT_STEP="finalize"\n')
    parts.append('emit_event finalize in_progress "Reloading Nginx"\n')
    if fresh:
        parts.append('sudo systemctl restart nginx\n')
    else:
        parts.append(_NGINX_RELOAD)
    parts.append('emit_event finalize completed "Deployment complete"\n')
    parts.append('echo "=== Deployment Complete ==="\n')
    return "".join(parts)


def merge_command_output(log: str, command_id: str, stdout: str) -> str:
    """Replace the output section of the given command, keeping earlier runs intact."""
    header = f"=== SSM command {command_id} ===\n"
    idx = (log or "").find(header)
    prefix = (log or "") if idx == -1 else log[:idx]
    return prefix + header + (stdout or "")


class SsmDeployer:
    def __init__(
        self,
        supabase: Client,
        deployments: Optional[DeploymentService] = None,
        clients: Optional[AwsClientFactory] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.supabase = supabase
        self.deployments = deployments or DeploymentService(supabase)
        self.clients = clients or AwsClientFactory(supabase)
        self.sleep = sleep

    def is_ssm_managed(self, ssm, instance_id: str) -> bool:
        response = ssm.describe_instance_information(
            Filters=[{"Key": "InstanceIds", "Values": [instance_id]}]
        )
        return bool(response.get("InstanceInformationList"))

    def ensure_ssm_access(self, instance_id: str, region: str) -> bool:
        """Give the instance an SSM-capable instance profile. Returns True when anything was changed."""
        ssm = self.clients.client("ssm", region)
        if self.is_ssm_managed(ssm, instance_id):
            logger.info(f"Instance {instance_id} already registered with SSM")
            return False

        iam = self.clients.client("iam", region)
        ec2 = self.clients.client("ec2", region)
        role_name = role_name_for(instance_id)
        profile_name = profile_name_for(instance_id)

        try:
            iam.create_role(
                RoleName=role_name,
                AssumeRolePolicyDocument=json.dumps(EC2_TRUST_POLICY),
                Description="SSM access for AuthorHub deployments",
            )
            logger.info(f"Created IAM role {role_name}")
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") != "EntityAlreadyExists":
                raise
            logger.info(f"Reusing IAM role {role_name}")

        iam.attach_role_policy(RoleName=role_name, PolicyArn=SSM_POLICY_ARN)

        try:
            iam.create_instance_profile(InstanceProfileName=profile_name)
            logger.info(f"Created instance profile {profile_name}")
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") != "EntityAlreadyExists":
                raise

        try:
            iam.add_role_to_instance_profile(InstanceProfileName=profile_name, RoleName=role_name)
        except ClientError as e:
            # a profile holds one role; LimitExceeded means ours is already there
            if e.response.get("Error", {}).get("Code") != "LimitExceeded":
                raise

        associations = ec2.describe_iam_instance_profile_associations(
            Filters=[{"Name": "instance-id", "Values": [instance_id]}]
        ).get("IamInstanceProfileAssociations") or []
        active = [a for a in associations if a.get("State") in ("associating", "associated")]
        if active:
            logger.info(f"Instance {instance_id} already has an instance profile, leaving it in place")
            return True

        self.sleep(PROFILE_PROPAGATION_SECONDS)
        ec2.associate_iam_instance_profile(
            IamInstanceProfile={"Name": profile_name},
            InstanceId=instance_id,
        )
        logger.info(f"Associated {profile_name} with instance {instance_id}")
        return True

    def _public_ip(self, instance_id: str, region: str) -> Optional[str]:
        try:
            ec2 = self.clients.client("ec2", region)
            reservations = ec2.describe_instances(InstanceIds=[instance_id]).get("Reservations") or []
            instances = reservations[0].get("Instances") if reservations else []
            return instances[0].get("PublicIpAddress") if instances else None
        except Exception as e:
            logger.warning(f"Could not look up public IP for {instance_id}: {e}")
            return None

    def _resolve_deployment(self, request: SsmDeployRequest, user_id: str) -> DeploymentResponse:
        if request.deployment_id:
            deployment = self.deployments.get_deployment_by_id(request.deployment_id)
            if deployment.ec2_instance_id and (
                deployment.ec2_instance_id != request.instance_id or deployment.region != request.region
            ):
                raise HTTPException(
                    status_code=400,
                    detail=f"Deployment {deployment.id} tracks instance {deployment.ec2_instance_id} "
                           f"in {deployment.region}; create a new deployment for {request.instance_id}"
                )
            return deployment
        return self.deployments.create_deployment(
            DeploymentCreate(
                deployment_name=f"{request.project_name}-{request.instance_id}",
                ec2_instance_id=request.instance_id,
                ec2_public_ip=self._public_ip(request.instance_id, request.region),
                region=request.region,
                deployment_type=request.deployment_type,
            ),
            user_id
        )

    def _mark_failed(self, deployment_id: str, reason: str):
        """Close out a deployment whose command never reached the instance"""
        try:
            self.deployments.update_deployment_status(
                deployment_id,
                "failed",
                log_text=f"Deployment failed before the command was sent: {reason}\n",
                events=[StatusEvent(step=DeploymentStep.INITIALIZE, status=StepStatus.FAILED, message=reason)],
            )
        except HTTPException as e:
            logger.error(f"Could not mark deployment {deployment_id} as failed: {e.detail}")

    def deploy(self, request: SsmDeployRequest, user_id: str) -> SsmDeployResponse:
        """Send the deploy script to the instance and mark the deployment as deploying"""
        logger.info(f"Starting SSM {request.deployment_type} deployment to {request.instance_id} in {request.region}")
        deployment = self._resolve_deployment(request, user_id)
        try:
            setup_performed = False
            if request.auto_setup_ssm:
                setup_performed = self.ensure_ssm_access(request.instance_id, request.region)

            ssm = self.clients.client("ssm", request.region)
            script = build_deploy_script(request)
            try:
                response = ssm.send_command(
                    InstanceIds=[request.instance_id],
                    DocumentName="AWS-RunShellScript",
                    Comment=f"AuthorHub deploy {request.project_name}"[:100],
                    TimeoutSeconds=COMMAND_TIMEOUT_SECONDS,
                    Parameters={"commands": [script]},
                )
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") == "InvalidInstanceId" and setup_performed:
                    raise HTTPException(
                        status_code=400,
                        detail="SSM access was just configured; the agent needs 1-2 minutes to register. Retry the deployment shortly."
                    )
                raise
            command_id = response["Command"]["CommandId"]
        except HTTPException as e:
            self._mark_failed(deployment.id, str(e.detail))
            raise
        except Exception as e:
            logger.error(f"SSM deploy error: {str(e)}")
            self._mark_failed(deployment.id, str(e))
            raise aws_error(e, DEPLOY_PERMISSIONS)

        events = [StatusEvent(step=DeploymentStep.INITIALIZE, status=StepStatus.COMPLETED, message="Deployment command sent")]
        events += [
            StatusEvent(step=step, status=StepStatus.SKIPPED, message="Using existing instance")
            for step in SERVER_STEPS[1:]
        ]
        self.deployments.update_deployment_status(
            deployment.id,
            "deploying",
            log_text=f"=== SSM command {command_id} ===\n",
            events=events,
            ssm_command_id=command_id,
            ec2_instance_id=request.instance_id,
            region=request.region,
            append_events=False
        )
        logger.info(f"SSM command {command_id} sent for deployment {deployment.id}")
        return SsmDeployResponse(
            message="Deployment started via SSM",
            deployment_id=deployment.id,
            command_id=command_id,
            ssm_setup_performed=setup_performed,
            session_manager_url=session_manager_url(request.instance_id, request.region),
        )

    def fetch_invocation(self, deployment: DeploymentResponse) -> Tuple[Optional[str], str]:
        ssm = self.clients.client("ssm", deployment.region)
        try:
            invocation = ssm.get_command_invocation(
                CommandId=deployment.ssm_command_id,
                InstanceId=deployment.ec2_instance_id,
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "InvocationDoesNotExist":
                # not yet visible right after send_command
                return "Pending", ""
            raise
        return invocation.get("Status"), invocation.get("StandardOutputContent") or ""

    def refresh(self, deployment_id: str) -> DeploymentResponse:
        """Pull SSM command status and output into the deployment row"""
        deployment = self.deployments.get_deployment_by_id(deployment_id)
        if not deployment.ssm_command_id or not deployment.ec2_instance_id:
            raise HTTPException(status_code=400, detail="Deployment has no SSM command to track")
        if deployment.status not in ("pending", "deploying"):
            return deployment

        try:
            ssm_status, stdout = self.fetch_invocation(deployment)
        except Exception as e:
            logger.error(f"Error fetching SSM command output: {str(e)}")
            raise aws_error(e, ["ssm:GetCommandInvocation"])

        status = map_ssm_status(ssm_status)
        server_events = [
            e for e in events_from_rows(deployment.status_events)
            if e.step in SERVER_STEPS
        ]
        events: List[StatusEvent] = server_events + extract_events(stdout)
        logger.info(f"Deployment {deployment_id}: SSM status {ssm_status} -> {status}")
        return self.deployments.update_deployment_status(
            deployment_id,
            status,
            log_text=merge_command_output(deployment.deployment_log or "", deployment.ssm_command_id, stdout),
            events=events,
            append_log=False,
            append_events=False
        )
