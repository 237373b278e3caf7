# handlers/common.py —— CORS/JSON 基础响应 + 事件取值
import json, base64

CORS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Expose-Headers": "*",
}

JSON_HEADERS = {**CORS, "Content-Type": "application/json; charset=utf-8"}

def ok(payload, code=200):
    return {"isBase64Encoded": False, "statusCode": code, "headers": dict(JSON_HEADERS),
            "body": json.dumps(payload, ensure_ascii=False)}

def err(code, err, msg, need=None, **extra):
    body = {"ok": False, "error": err, "message": msg}
    if need:
        body["need"] = need
    body.update(extra)
    return {"isBase64Encoded": False, "statusCode": code, "headers": dict(JSON_HEADERS),
            "body": json.dumps(body, ensure_ascii=False)}

def text(code, msg):
    return {"isBase64Encoded": False, "statusCode": code,
            "headers": {**CORS, "Content-Type": "text/plain; charset=utf-8"}, "body": msg}

def preflight():
    return {"isBase64Encoded": False, "statusCode": 204, "headers": dict(CORS), "body": ""}

def header(event, name, default=""):
    """网关会把头名改成小写，也可能不改：统一忽略大小写"""
    headers = event.get("headers") or {}
    low = name.lower()
    for k, v in headers.items():
        if str(k).lower() == low:
            return v if v is not None else default
    return default

def raw_body(event) -> bytes:
    """原始请求体（验签、multipart 都要原样字节）"""
    body = event.get("body")
    if body is None:
        return b""
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    if isinstance(body, dict):
        return json.dumps(body).encode("utf-8")
    if event.get("isBase64Encoded"):
        return base64.b64decode(body)
    return str(body).encode("utf-8")
