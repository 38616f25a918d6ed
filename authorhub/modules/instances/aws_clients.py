import boto3
from botocore.exceptions import ClientError
from fastapi import HTTPException
from supabase import Client
from authorhub.config.settings import settings
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

PERMISSION_ERROR_MARKERS = ("UnauthorizedOperation", "AccessDenied", "not authorized")


class AwsClientFactory:
    """Builds boto3 clients from settings, falling back to the newest aws_settings row."""

    def __init__(self, supabase: Optional[Client] = None):
        self.supabase = supabase
        self._credentials: Optional[Dict[str, str]] = None

    def credentials(self) -> Dict[str, str]:
        if self._credentials is not None:
            return self._credentials
        if settings.aws_access_key_id and settings.aws_secret_access_key:
            self._credentials = {
                "aws_access_key_id": settings.aws_access_key_id,
                "aws_secret_access_key": settings.aws_secret_access_key,
            }
            return self._credentials
        row = None
        if self.supabase is not None:
            try:
                result = self.supabase.table("aws_settings")\
                    .select("*")\
                    .order("created_at", desc=True)\
                    .limit(1)\
                    .execute()
                row = result.data[0] if result.data else None
            except Exception as e:
                logger.error(f"Error loading aws_settings: {str(e)}")
        if not row or not row.get("aws_access_key_id") or not row.get("aws_secret_access_key"):
            raise HTTPException(status_code=400, detail="AWS credentials not configured")
        self._credentials = {
            "aws_access_key_id": row["aws_access_key_id"],
            "aws_secret_access_key": row["aws_secret_access_key"],
        }
        return self._credentials

    def client(self, service: str, region: Optional[str] = None):
        return boto3.client(
            service,
            region_name=region or settings.aws_region,
            **self.credentials()
        )


def is_permission_error(error: Exception) -> bool:
    message = str(error)
    if isinstance(error, ClientError):
        message = f"{error.response.get('Error', {}).get('Code', '')} {message}"
    return any(marker in message for marker in PERMISSION_ERROR_MARKERS)


def aws_error(error: Exception, required_permissions: List[str]) -> HTTPException:
    """Translate an AWS failure into the 400 payload the admin UI understands."""
    needs_permissions = is_permission_error(error)
    return HTTPException(
        status_code=400,
        detail={
            "error": str(error),
            "needs_permissions": needs_permissions,
            "required_permissions": required_permissions if needs_permissions else None,
        }
    )
