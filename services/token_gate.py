# services/token_gate.py —— 验证 token 生命周期
#
#   issued     行已存在，submitted/used 皆为假
#   submitted  用户已上传照片（submitted=true），等待 staff 审核
#   decided    staff 已点 approve/deny（used=true，decision=approved|denied）
#
# 注意：used 表示“已裁决”，不是“已上传”。上传可以重复（覆盖前一次提交），
# 裁决只能一次。过期只拦上传，不拦裁决。
import datetime
from typing import Optional

from services.text_utils import iso_now

APPROVED = "approved"
DENIED = "denied"

def parse_expires_at(value) -> Optional[datetime.datetime]:
    """ISO-8601 → aware UTC datetime；无时区按 UTC；解析失败返回 None"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        dt = value
    else:
        s = str(value).strip()
        if s.endswith("Z") or s.endswith("z"):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.datetime.fromisoformat(s)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt

def is_expired(row: dict, now: datetime.datetime = None) -> bool:
    exp = parse_expires_at((row or {}).get("expires_at"))
    if exp is None:
        return False
    now = now or datetime.datetime.now(datetime.timezone.utc)
    return now > exp

def upload_block_reason(row: dict, now: datetime.datetime = None) -> Optional[str]:
    if row.get("used"):
        return "already_decided"
    if is_expired(row, now):
        return "expired"
    return None

def decision_block_reason(row: Optional[dict]) -> Optional[str]:
    if not row or not row.get("user_id"):
        return "token_not_found"
    if row.get("used"):
        return "already_decided"
    return None

def submitted_fields(status: Optional[str], now: datetime.datetime = None) -> dict:
    return {
        "submitted": True,
        "submitted_at": iso_now(now),
        "ai_status": status or None,
    }

def decision_fields(decision: str, staff_id: Optional[str], now: datetime.datetime = None) -> dict:
    if decision not in (APPROVED, DENIED):
        raise ValueError(f"unknown decision: {decision}")
    return {
        "used": True,
        "decision": decision,
        "decided_at": iso_now(now),
        "decided_by": staff_id,
    }
