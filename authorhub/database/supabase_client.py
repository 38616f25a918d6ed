from supabase import create_client, Client
from authorhub.config.settings import settings
from typing import Optional


class SupabaseClient:
    """
    Process-wide Supabase clients.
    The anon client serves user requests under RLS; the service role client
    writes the audit log, changes roles and feeds the health monitor.
    """
    _client: Optional[Client] = None
    _service_client: Optional[Client] = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def has_service_role(cls) -> bool:
        return bool(settings.supabase_service_role_key)

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; falls back to the anon client when no key is configured"""
        if cls._service_client is None and cls.has_service_role():
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Optional[Client]:
    """Dependency for writes that bypass RLS; None when the service role key is missing"""
    if not SupabaseClient.has_service_role():
        return None
    return SupabaseClient.get_service_client()
