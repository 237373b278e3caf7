# handlers/verify.py
# POST /verify —— 上传验证照片 → 查 token → 校验 used/过期 → 转发到 ticket webhook → 标记 submitted
# 表单字段：token（必填）、status（可选，前端 AI 预检结果）、file（必填，图片）
import os

from handlers.common import ok, err, header, raw_body
from services import token_store, token_gate, discord_api
from services.logger import get_logger
from services.multipart_form import BadUpload, UploadTooLarge, is_multipart, parse_multipart, pick_first
from services.text_utils import ext_from_mime, short_token, truncate

logger = get_logger(__name__)

MIN_FILE_BYTES = 100   # 小于这个基本是空文件/损坏
DETAILS_LIMIT = 600

DEFAULT_MAX_UPLOAD_MB = 8

def _max_upload_mb():
    """MAX_UPLOAD_MB 可以是小数（如 0.5）；非法或非正数回落到默认值"""
    raw = os.getenv("MAX_UPLOAD_MB", "")
    try:
        mb = float(raw)
    except ValueError:
        if raw:
            logger.warning(f"Ignoring bad MAX_UPLOAD_MB={raw!r}")
        return DEFAULT_MAX_UPLOAD_MB
    if not 0 < mb < float("inf"):
        return DEFAULT_MAX_UPLOAD_MB
    return int(mb) if mb.is_integer() else mb

def submit(event, tail, query, body):
    ct = str(header(event, "Content-Type") or "")
    if not is_multipart(ct):
        return err(400, "expected_multipart", "Expected multipart/form-data")

    need = token_store.missing_config()
    if need:
        return err(500, "store_not_configured", "Server missing token store env vars", need=need)

    limit_mb = _max_upload_mb()
    try:
        fields, files = parse_multipart(raw_body(event), ct, int(limit_mb * 1024 * 1024))
    except UploadTooLarge:
        return err(413, "too_large", "Upload too large", limit_mb=limit_mb)
    except BadUpload as e:
        return err(400, "bad_upload", "Bad upload payload", details=str(e))

    token = (pick_first(fields.get("token")) or "").strip()
    status = (pick_first(fields.get("status")) or "").strip()
    uploaded = pick_first(files.get("file"))

    if not token:
        return err(400, "missing_token", "Missing token")
    if uploaded is None:
        return err(400, "missing_file", "Missing file")

    log_extra = {"token": short_token(token), "route": "POST /verify"}

    try:
        return _relay(token, status, uploaded, log_extra)
    except Exception as e:
        logger.exception(f"verify api error: {e}", extra=log_extra)
        return err(500, "internal_error", "Internal server error", details=str(e))

def _relay(token, status, uploaded, log_extra):
    # 1) 查 token
    try:
        row = token_store.get_token(token, "webhook_url, expires_at, used")
    except Exception as e:
        logger.warning(f"Token lookup failed: {e}", extra=log_extra)
        row = None
    if not row:
        return err(400, "invalid_token", "Invalid token")
    if not row.get("webhook_url"):
        return err(500, "missing_webhook_url", "Missing webhook_url for token")

    # 2) used=已裁决 / 过期
    reason = token_gate.upload_block_reason(row)
    if reason == "already_decided":
        return err(400, reason, "Token already decided")
    if reason == "expired":
        return err(400, reason, "Token expired")

    # 3) 文件
    blob = uploaded.data
    mime = uploaded.mimetype or "application/octet-stream"
    if not blob or len(blob) < MIN_FILE_BYTES:
        return err(400, "empty_file", "Uploaded file looks empty/corrupt")

    # 4) 转发
    prefix = os.getenv("UPLOAD_FILENAME_PREFIX", "stoney_verify")
    filename = f"{prefix}.{ext_from_mime(mime)}"
    payload = discord_api.submission_payload(token, status)
    code, resp_text = discord_api.post_webhook_file(row["webhook_url"], payload, filename, blob, mime)
    if not 200 <= code < 300:
        logger.warning(f"Webhook rejected upload: {code}", extra={**log_extra, "status": code})
        return err(502, "webhook_rejected", "Discord rejected webhook",
                   status=code, details=truncate(resp_text, DETAILS_LIMIT))

    # 5) 标记 submitted；失败只记日志，不影响返回
    try:
        token_store.update_token(token, token_gate.submitted_fields(status))
    except Exception as e:
        logger.warning(f"Submitted flag update failed: {e}", extra=log_extra)

    logger.info("Verification submission relayed", extra=log_extra)
    return ok({"ok": True, "success": True})
