# services/token_store.py —— verification_tokens 表的统一入口
#
# TOKEN_STORE=supabase（默认）：Supabase 表 TOKEN_TABLE（默认 verification_tokens）
# TOKEN_STORE=cos           ：COS 上的 NDJSON，键 TOKEN_NDJSON_KEY
#
# 行字段：token, webhook_url, expires_at, used, decision, submitted,
#         submitted_at, ai_status, user_id, decided_at, decided_by
import os
from typing import List, Optional

from services import db_index
from services import supabase_store

SUPABASE = "supabase"
COS = "cos"

DEFAULT_TABLE = "verification_tokens"
DEFAULT_NDJSON_KEY = "db/verification_tokens.ndjson"

def backend() -> str:
    return (os.getenv("TOKEN_STORE") or SUPABASE).strip().lower()

def table_name() -> str:
    return os.getenv("TOKEN_TABLE") or DEFAULT_TABLE

def ndjson_key() -> str:
    return os.getenv("TOKEN_NDJSON_KEY") or DEFAULT_NDJSON_KEY

def missing_config() -> List[str]:
    b = backend()
    if b == SUPABASE:
        return supabase_store.missing_config()
    if b == COS:
        return [] if os.getenv("COS_BUCKET") else ["COS_BUCKET"]
    return ["TOKEN_STORE"]

def get_token(token: str, columns: str = "*") -> Optional[dict]:
    """按 token 取一行；不存在返回 None。columns 仅对 supabase 生效"""
    b = backend()
    if b == COS:
        return db_index.find_row(ndjson_key(), "token", token)
    if b == SUPABASE:
        return supabase_store.get_token(table_name(), token, columns)
    raise ValueError(f"unknown TOKEN_STORE: {b}")

def update_token(token: str, fields: dict) -> bool:
    b = backend()
    if b == COS:
        return db_index.update_row(ndjson_key(), "token", token, fields)
    if b == SUPABASE:
        return supabase_store.update_token(table_name(), token, fields)
    raise ValueError(f"unknown TOKEN_STORE: {b}")
