from supabase import Client
from authorhub.modules.deployments.schemas import (
    DeploymentCreate, DeploymentResponse, DeploymentUpdate, StatusEvent
)
from typing import List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class DeploymentService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_deployment(self, deployment_data: DeploymentCreate, user_id: str) -> DeploymentResponse:
        """Create a new deployment"""
        try:
            result = self.supabase.table("aws_deployments").insert({
                "deployment_name": deployment_data.deployment_name,
                "ec2_instance_id": deployment_data.ec2_instance_id,
                "ec2_public_ip": deployment_data.ec2_public_ip,
                "region": deployment_data.region,
                "deployment_type": deployment_data.deployment_type,
                "user_id": user_id,
                "status": "pending",
                "deployment_log": "",
                "status_events": []
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create deployment")

            return DeploymentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating deployment: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_deployment_by_id(self, deployment_id: str) -> DeploymentResponse:
        """Get deployment by ID"""
        try:
            result = self.supabase.table("aws_deployments")\
                .select("*")\
                .eq("id", deployment_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Deployment not found")

            return DeploymentResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error getting deployment: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_deployments(self, status: Optional[str] = None, limit: int = 50) -> List[DeploymentResponse]:
        """List deployments, newest first"""
        try:
            query = self.supabase.table("aws_deployments").select("*")
            if status:
                query = query.eq("status", status)
            result = query.order("created_at", desc=True).limit(limit).execute()
            return [DeploymentResponse(**deployment) for deployment in result.data or []]
        except Exception as e:
            logger.error(f"Error listing deployments: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_active_deployments(self) -> List[DeploymentResponse]:
        """Running deployments that have an instance and a public IP to probe"""
        return [
            d for d in self.list_deployments(status="running", limit=500)
            if d.ec2_instance_id and d.ec2_public_ip
        ]

    def update_deployment(self, deployment_id: str, update_data: DeploymentUpdate) -> DeploymentResponse:
        """Update editable deployment fields"""
        try:
            self.get_deployment_by_id(deployment_id)
            update_dict = update_data.model_dump(exclude_unset=True)
            if not update_dict:
                return self.get_deployment_by_id(deployment_id)
            update_dict["updated_at"] = datetime.now(timezone.utc).isoformat()

            result = self.supabase.table("aws_deployments")\
                .update(update_dict)\
                .eq("id", deployment_id)\
                .execute()

            if result.data:
                return DeploymentResponse(**result.data[0])
            return self.get_deployment_by_id(deployment_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating deployment: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_deployment_status(
        self,
        deployment_id: str,
        status: str,
        log_text: Optional[str] = None,
        events: Optional[List[StatusEvent]] = None,
        ssm_command_id: Optional[str] = None,
        ec2_instance_id: Optional[str] = None,
        region: Optional[str] = None,
        append_log: bool = True,
        append_events: bool = True
    ) -> DeploymentResponse:
        """Update status; log text and status events are appended unless told to replace."""
        try:
            current = self.get_deployment_by_id(deployment_id)
            now = datetime.now(timezone.utc).isoformat()
            update_data = {"status": status, "updated_at": now}

            if log_text is not None:
                existing = (current.deployment_log or "") if append_log else ""
                update_data["deployment_log"] = existing + log_text

            if events is not None:
                existing_events = (current.status_events or []) if append_events else []
                update_data["status_events"] = existing_events + [
                    e.model_dump(mode="json") for e in events
                ]

            if ssm_command_id:
                update_data["ssm_command_id"] = ssm_command_id

            if ec2_instance_id:
                update_data["ec2_instance_id"] = ec2_instance_id
            if region:
                update_data["region"] = region

            if status == "running" and current.status != "running":
                update_data["last_deployed_at"] = now

            result = self.supabase.table("aws_deployments")\
                .update(update_data)\
                .eq("id", deployment_id)\
                .execute()

            if result.data:
                return DeploymentResponse(**result.data[0])
            return self.get_deployment_by_id(deployment_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating deployment status: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_deployment(self, deployment_id: str) -> None:
        """Delete a deployment record (the EC2 instance itself is left alone)"""
        try:
            self.get_deployment_by_id(deployment_id)
            self.supabase.table("aws_deployments")\
                .delete()\
                .eq("id", deployment_id)\
                .execute()
            logger.info(f"Deleted deployment {deployment_id}")
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting deployment: {str(e)}")
            raise HTTPException(status_code=500, detail=str(e))
