# router.py —— 轻量路由：支持 method + 前缀匹配；采用“最长前缀优先”
import json

from handlers.common import err, preflight, raw_body
from services.logger import get_logger

logger = get_logger(__name__)

def _parse_query(event):
    qs = event.get("queryString") or event.get("queryStringParameters") or {}
    if isinstance(qs, dict):
        return {k: (v if v is not None else "") for k, v in qs.items()}
    return {}

def _parse_body(event):
    """JSON 体解析成 dict；非 JSON（multipart 等）给 {"_raw": bytes}，处理器按需取 raw_body"""
    body = event.get("body")
    if not body:
        return None
    if isinstance(body, dict):
        return body
    raw = raw_body(event)
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return {"_raw": raw}

def event_method(event):
    return (event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method") or "GET").upper()

def event_path(event):
    return event.get("path") or event.get("rawPath") or event.get("requestContext", {}).get("path") or "/"

def _matches(path, prefix):
    # "/verify" 能匹配 "/verify" 和 "/verify/..."，但不匹配 "/verifyx"
    if prefix.endswith("/"):
        return path.startswith(prefix)
    return path == prefix or path.startswith(prefix + "/")

def route(event, context, routes):
    method = event_method(event)
    path = event_path(event)

    if method == "OPTIONS":
        return preflight()

    same_path = [(m, p, h) for (m, p, h) in routes if _matches(path, p)]
    # “最长前缀优先”筛选候选
    candidates = [(m, p, h) for (m, p, h) in same_path if m == method]
    if not candidates:
        if same_path:
            return err(405, "method_not_allowed", f"{method} not allowed on {path}",
                       allow=sorted({m for (m, _, _) in same_path}))
        return err(404, "not_found", "no route", path=path, method=method)

    # 选前缀最长的那个
    m, p, handler = sorted(candidates, key=lambda x: len(x[1]), reverse=True)[0]
    tail = path[len(p):]  # 去掉前缀后的尾巴（可能为空或以 / 开头）
    query = _parse_query(event)
    body = _parse_body(event)
    try:
        return handler(event, tail, query, body)
    except Exception as e:
        logger.exception(f"Handler failed: {e}", extra={"route": f"{method} {p}"})
        return err(500, "handler_error", str(e))
