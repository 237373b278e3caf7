# services/discord_api.py
# Discord：bot REST（加角色）/ webhook 转发（multipart）/ 交互响应消息体
import os, json, datetime
from typing import Optional, Tuple

import httpx

from services.logger import get_logger
from services.text_utils import iso_now

logger = get_logger(__name__)

# 交互回调类型
PONG = 1
CHANNEL_MESSAGE = 4
DEFERRED_UPDATE = 6
UPDATE_MESSAGE = 7
EPHEMERAL = 64

# 组件
ACTION_ROW = 1
BUTTON = 2
STYLE_SUCCESS = 3
STYLE_DANGER = 4

ROLE_OK_CODES = (200, 201, 204)
USER_AGENT = "DiscordBot (verify-relay, 1.0)"

def _api_base() -> str:
    return (os.getenv("DISCORD_API_BASE") or "https://discord.com/api/v10").rstrip("/")

def _timeout() -> float:
    return float(os.getenv("HTTP_TIMEOUT", "15"))

# ========= bot REST =========

def add_member_role(bot_token: str, guild_id: str, user_id: str, role_id: str) -> int:
    """
    PUT /guilds/{guild}/members/{user}/roles/{role}
    返回 HTTP 状态码（204 = 成功）；网络错误返回 0
    """
    url = f"{_api_base()}/guilds/{guild_id}/members/{user_id}/roles/{role_id}"
    headers = {"Authorization": f"Bot {bot_token}", "User-Agent": USER_AGENT}
    try:
        with httpx.Client(timeout=_timeout()) as client:
            r = client.put(url, headers=headers)
    except httpx.HTTPError as e:
        logger.error(f"Role PUT failed: {e}", extra={"guild_id": guild_id})
        return 0
    if r.status_code not in ROLE_OK_CODES:
        logger.warning(f"Role PUT rejected: {r.status_code} {r.text[:300]}", extra={"guild_id": guild_id})
    return r.status_code

# ========= webhook =========

def post_webhook_file(webhook_url: str, payload: dict, filename: str, blob: bytes, mime: str) -> Tuple[int, str]:
    """
    multipart 转发：payload_json + files[0]
    Content-Type 由 httpx 生成（含 boundary），不要手动设置
    """
    with httpx.Client(timeout=_timeout()) as client:
        r = client.post(
            webhook_url,
            data={"payload_json": json.dumps(payload, ensure_ascii=False)},
            files={"files[0]": (filename, blob, mime)},
        )
    return r.status_code, r.text

def submission_payload(token: str, status: Optional[str], now: datetime.datetime = None) -> dict:
    title = os.getenv("SUBMISSION_TITLE", "Stoney Verify Submission")
    return {
        "content": "🌿 **Verification Submission Received**",
        "embeds": [
            {
                "title": title,
                "description": (
                    f"**Status:** {status or 'UNKNOWN'}\n"
                    f"**Token:** `{token}`\n\n"
                    "Staff: use the Approve/Reject buttons inside the ticket."
                ),
                "footer": {"text": f"token: {token}"},
                "timestamp": iso_now(now),
            }
        ],
    }

# ========= 交互响应 =========

def pong() -> dict:
    return {"type": PONG}

def deferred_update() -> dict:
    return {"type": DEFERRED_UPDATE}

def ephemeral(content: str) -> dict:
    return {"type": CHANNEL_MESSAGE, "data": {"content": content, "flags": EPHEMERAL}}

def decision_buttons(token: str, disabled: bool = True) -> list:
    return [
        {
            "type": ACTION_ROW,
            "components": [
                {"type": BUTTON, "style": STYLE_SUCCESS, "label": "APPROVE",
                 "custom_id": f"verify:approve:{token}", "disabled": disabled},
                {"type": BUTTON, "style": STYLE_DANGER, "label": "DENY",
                 "custom_id": f"verify:deny:{token}", "disabled": disabled},
            ],
        }
    ]

def update_message(content: str, token: str) -> dict:
    """替换原消息内容并禁用按钮"""
    return {"type": UPDATE_MESSAGE, "data": {"content": content, "components": decision_buttons(token)}}
