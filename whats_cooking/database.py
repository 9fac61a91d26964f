# whats_cooking/database.py — Supabase client (one per process)

from functools import lru_cache

from supabase import Client, create_client

from whats_cooking.config import get_settings


@lru_cache
def get_supabase_client() -> Client:
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_service_key)
