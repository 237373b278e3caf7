# handlers/diag.py —— 自检接口：/ping, /store/info
import os
import time
from handlers.common import ok, err
from services import token_store

# /ping —— 健康检查 + 版本号
def ping(event, tail, query, body):
    return ok({"ok": True, "ver": os.getenv("API_VERSION", "2026-10-19-1"), "time": int(time.time()), "router": "new"})

# /store/info —— 当前 token 存储后端（仅读环境变量，不回显密钥）
def store_info(event, tail, query, body):
    backend = token_store.backend()
    need = token_store.missing_config()
    if need:
        return err(500, "store_not_configured", f"token store '{backend}' is not configured", need=need)

    info = {"ok": True, "backend": backend}
    if backend == token_store.SUPABASE:
        info["table"] = token_store.table_name()
        info["url"] = os.getenv("SUPABASE_URL", "")
    else:
        info["bucket"] = os.getenv("COS_BUCKET", "")
        info["region"] = os.getenv("COS_REGION", "ap-beijing")
        info["key"] = token_store.ndjson_key()
    return ok(info)
