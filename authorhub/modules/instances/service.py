import time
import httpx
from botocore.exceptions import ClientError
from fastapi import HTTPException
from supabase import Client
from authorhub.config.settings import settings
from authorhub.modules.instances.aws_clients import AwsClientFactory, aws_error
from authorhub.modules.instances.schemas import (
    HttpCheckDetails, InstanceDiagnostics, InstanceStatus, InstanceStatusResponse,
    SecurityGroupRef, StatusDetail, UnblockHttpResponse
)
from typing import Callable, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

HTTP_PROBE_ENDPOINTS = ["/", "/api/health", "/api/setup-status"]
STATUS_PERMISSIONS = ["ec2:DescribeInstances", "ec2:DescribeInstanceStatus"]
UNBLOCK_PERMISSIONS = ["ec2:DescribeSecurityGroups", "ec2:AuthorizeSecurityGroupIngress"]


def _http_get(url: str, timeout: float) -> int:
    response = httpx.get(url, timeout=timeout, follow_redirects=False)
    return response.status_code


def probe_http(public_ip: str, http_get: Callable[[str, float], int] = _http_get,
               timeout: Optional[float] = None) -> Tuple[bool, HttpCheckDetails]:
    """Try each endpoint in turn; any HTTP response means the web server is up."""
    timeout = timeout or settings.http_probe_timeout_seconds
    details = HttpCheckDetails()
    for endpoint in HTTP_PROBE_ENDPOINTS:
        url = f"http://{public_ip}{endpoint}"
        started = time.monotonic()
        try:
            status_code = http_get(url, timeout)
            elapsed_ms = (time.monotonic() - started) * 1000
            details = HttpCheckDetails(
                tested=True,
                endpoint=endpoint,
                status=status_code,
                response_time_ms=round(elapsed_ms, 1),
            )
            if status_code > 0:
                logger.info(f"HTTP accessible on {url} (status: {status_code})")
                return True, details
        except Exception as e:
            details = HttpCheckDetails(
                tested=True,
                endpoint=endpoint,
                error=f"{type(e).__name__}: {e}",
                status=0,
            )
            logger.info(f"HTTP check failed for {url}: {e}")
    return False, details


def generate_recommendations(status: InstanceStatus, http_accessible: bool, http_check: HttpCheckDetails) -> List[str]:
    recommendations: List[str] = []

    if status.state != "running":
        recommendations.append(f"Instance is in '{status.state}' state. It needs to be 'running' to serve traffic.")

    if not status.diagnostics.has_public_ip:
        recommendations.append("Instance has no public IP address. Check if auto-assign public IP is enabled in the subnet.")

    if status.system_status and status.system_status != "ok":
        recommendations.append(f"System status checks are '{status.system_status}'. AWS may be experiencing issues.")

    if status.instance_status and status.instance_status != "ok":
        recommendations.append(f"Instance status checks are '{status.instance_status}'. The instance may need to be restarted.")

    if not http_accessible and status.diagnostics.is_running and status.diagnostics.has_public_ip:
        recommendations.append("HTTP port 80 is NOT accessible. Root cause analysis:")
        if http_check.tested:
            error = http_check.error.lower()
            if "timeout" in error:
                recommendations.append("  CONNECTION TIMEOUT - Server is not responding at all")
                recommendations.append("  -> Security group inbound rules may be blocking port 80")
                recommendations.append("  -> Firewall on the instance (firewalld) may be blocking traffic")
                recommendations.append("  -> Network ACLs may be restricting traffic")
            elif "refused" in error:
                recommendations.append("  CONNECTION REFUSED - No service listening on port 80")
                recommendations.append("  -> Nginx web server is not running")
                recommendations.append("  -> Application setup failed - check: sudo systemctl status nginx")
            elif "connecterror" in error or "network" in error:
                recommendations.append("  NETWORK ERROR - Cannot reach the instance")
                recommendations.append("  -> Instance may not have internet connectivity")
                recommendations.append("  -> VPC routing may be misconfigured")
            else:
                recommendations.append(f"  ERROR: {http_check.error}")
        recommendations.append("")
        recommendations.append("Troubleshooting steps:")
        recommendations.append("  1. Verify Security Group has HTTP (port 80) rule with source 0.0.0.0/0")
        recommendations.append("  2. SSH to instance and check: sudo systemctl status nginx")
        recommendations.append("  3. Check setup logs: sudo tail -100 /var/log/user-data.log")
        recommendations.append("  4. Test locally on instance: curl http://localhost")
        recommendations.append("  5. Check firewall: sudo firewall-cmd --list-all")

    if status.monitoring == "disabled":
        recommendations.append("CloudWatch detailed monitoring is disabled. Enable it for better insights.")

    if not recommendations and http_accessible:
        recommendations.append("All checks passed! Instance is healthy and serving HTTP traffic.")

    return recommendations


class InstanceService:
    def __init__(self, supabase: Client, clients: Optional[AwsClientFactory] = None,
                 http_get: Callable[[str, float], int] = _http_get):
        self.supabase = supabase
        self.clients = clients or AwsClientFactory(supabase)
        self.http_get = http_get

    def _describe_instance(self, ec2, instance_id: str) -> dict:
        try:
            response = ec2.describe_instances(InstanceIds=[instance_id])
        except ClientError as e:
            if e.response.get("Error", {}).get("Code", "").startswith("InvalidInstanceID"):
                raise HTTPException(status_code=404, detail=f"Instance {instance_id} not found")
            raise
        reservations = response.get("Reservations") or []
        instances = reservations[0].get("Instances") if reservations else None
        if not instances:
            raise HTTPException(status_code=404, detail=f"Instance {instance_id} not found")
        return instances[0]

    def get_instance_status(self, instance_id: str, region: str) -> InstanceStatusResponse:
        """Describe the instance, its status checks and HTTP reachability"""
        logger.info(f"Checking status for instance {instance_id} in {region}")
        try:
            ec2 = self.clients.client("ec2", region)
            instance = self._describe_instance(ec2, instance_id)

            status_checks = {}
            try:
                status_response = ec2.describe_instance_status(
                    InstanceIds=[instance_id],
                    IncludeAllInstances=True
                )
                statuses = status_response.get("InstanceStatuses") or []
                status_checks = statuses[0] if statuses else {}
            except ClientError as e:
                logger.error(f"Error fetching instance status: {str(e)}")

            system_status = (status_checks.get("SystemStatus") or {}).get("Status")
            instance_status = (status_checks.get("InstanceStatus") or {}).get("Status")
            security_groups = instance.get("SecurityGroups") or []
            public_ip = instance.get("PublicIpAddress")
            state = (instance.get("State") or {}).get("Name")

            status = InstanceStatus(
                instance_id=instance_id,
                state=state,
                state_reason=(instance.get("StateReason") or {}).get("Message"),
                public_ip=public_ip,
                private_ip=instance.get("PrivateIpAddress"),
                instance_type=instance.get("InstanceType"),
                launch_time=instance.get("LaunchTime"),
                availability_zone=(instance.get("Placement") or {}).get("AvailabilityZone"),
                security_groups=[SecurityGroupRef(id=sg.get("GroupId"), name=sg.get("GroupName")) for sg in security_groups],
                vpc_id=instance.get("VpcId"),
                subnet_id=instance.get("SubnetId"),
                system_status=system_status,
                instance_status=instance_status,
                status_details=[
                    StatusDetail(name=d.get("Name"), status=d.get("Status"))
                    for d in (status_checks.get("SystemStatus") or {}).get("Details") or []
                ],
                tags={t["Key"]: t["Value"] for t in instance.get("Tags") or [] if t.get("Key") and t.get("Value")},
                monitoring=(instance.get("Monitoring") or {}).get("State"),
                platform=instance.get("Platform"),
                architecture=instance.get("Architecture"),
                permissions_used=STATUS_PERMISSIONS,
                diagnostics=InstanceDiagnostics(
                    has_public_ip=bool(public_ip),
                    is_running=state == "running",
                    has_security_groups=len(security_groups) > 0,
                    system_checks_ok=system_status == "ok",
                    instance_checks_ok=instance_status == "ok",
                ),
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Status check error: {str(e)}")
            raise aws_error(e, STATUS_PERMISSIONS)

        http_accessible, http_check = False, HttpCheckDetails()
        if public_ip:
            http_accessible, http_check = probe_http(public_ip, self.http_get)

        return InstanceStatusResponse(
            status=status,
            http_accessible=http_accessible,
            http_check_details=http_check,
            recommendations=generate_recommendations(status, http_accessible, http_check),
        )

    def unblock_http(self, instance_id: str, region: str) -> UnblockHttpResponse:
        """Open tcp/80 from anywhere on the instance's first security group"""
        logger.info(f"Unblocking HTTP for instance {instance_id} in {region}")
        try:
            ec2 = self.clients.client("ec2", region)
            instance = self._describe_instance(ec2, instance_id)
            security_groups = instance.get("SecurityGroups") or []
            if not security_groups:
                raise HTTPException(status_code=400, detail="No security groups found for this instance")

            security_group_id = security_groups[0]["GroupId"]
            described = ec2.describe_security_groups(GroupIds=[security_group_id])
            groups = described.get("SecurityGroups") or []
            permissions = (groups[0].get("IpPermissions") or []) if groups else []
            has_http_rule = any(
                p.get("FromPort") == 80 and p.get("ToPort") == 80 and p.get("IpProtocol") == "tcp"
                for p in permissions
            )
            if has_http_rule:
                return UnblockHttpResponse(
                    already_open=True,
                    message="HTTP port 80 is already open in the security group",
                    security_group_id=security_group_id,
                )

            ec2.authorize_security_group_ingress(
                GroupId=security_group_id,
                IpPermissions=[{
                    "IpProtocol": "tcp",
                    "FromPort": 80,
                    "ToPort": 80,
                    "IpRanges": [{
                        "CidrIp": "0.0.0.0/0",
                        "Description": "Allow HTTP traffic from anywhere (added by AuthorHub)",
                    }],
                }]
            )
            logger.info(f"Added HTTP rule to security group {security_group_id}")
            return UnblockHttpResponse(
                message="HTTP port 80 has been unblocked successfully",
                security_group_id=security_group_id,
                rule={"protocol": "tcp", "port": 80, "source": "0.0.0.0/0"},
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Unblock HTTP error: {str(e)}")
            raise aws_error(e, UNBLOCK_PERMISSIONS)
