# services/supabase_store.py
# Supabase（PostgREST）上的 token 表读写，使用 service-role key
import os
from typing import Optional

from supabase import Client, create_client

_client_cache = {}

def _client() -> Client:
    url = os.getenv("SUPABASE_URL", "")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
    cached = _client_cache.get((url, key))
    if cached is None:
        cached = create_client(url, key)
        _client_cache[(url, key)] = cached
    return cached

def missing_config():
    return [k for k in ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY") if not os.getenv(k)]

def get_token(table: str, token: str, columns: str) -> Optional[dict]:
    res = (
        _client().table(table)
        .select(columns)
        .eq("token", token)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def update_token(table: str, token: str, fields: dict) -> bool:
    res = _client().table(table).update(fields).eq("token", token).execute()
    return bool(res.data)
