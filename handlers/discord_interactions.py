# handlers/discord_interactions.py
# POST /discord/interactions —— Discord 交互回调（ticket 里的 APPROVE / DENY 按钮）
# 流程：验签 → PING/PONG → 解析 custom_id "verify:<action>:<token>" → staff 校验 →
#       查 token（user_id, used）→ approve：加两个角色后落库 / deny：直接落库
import os, json

from handlers.common import ok, err, text, header, raw_body
from services import token_store, token_gate, discord_api
from services.logger import get_logger
from services.signature import verify_ed25519
from services.text_utils import parse_id_list, short_token

logger = get_logger(__name__)

PING = 1
MESSAGE_COMPONENT = 3

def _discord_env():
    cfg = {
        "public_key": os.getenv("DISCORD_PUBLIC_KEY", ""),
        "bot_token": os.getenv("DISCORD_BOT_TOKEN", ""),
        "verified_role": os.getenv("DISCORD_VERIFIED_ROLE_ID", ""),
        "resident_role": os.getenv("DISCORD_RESIDENT_ROLE_ID", ""),
        "staff_roles": parse_id_list(os.getenv("DISCORD_STAFF_ROLE_IDS", "")),
    }
    need = []
    if not cfg["public_key"]:    need.append("DISCORD_PUBLIC_KEY")
    if not cfg["bot_token"]:     need.append("DISCORD_BOT_TOKEN")
    if not cfg["verified_role"]: need.append("DISCORD_VERIFIED_ROLE_ID")
    if not cfg["resident_role"]: need.append("DISCORD_RESIDENT_ROLE_ID")
    if not cfg["staff_roles"]:   need.append("DISCORD_STAFF_ROLE_IDS")
    return cfg, need

def parse_custom_id(custom_id):
    """"verify:approve:<token>" → ("approve", "<token>")；格式不对返回 None"""
    parts = str(custom_id or "").split(":")
    if len(parts) < 3 or parts[0] != "verify" or not parts[1] or not parts[2]:
        return None
    return parts[1], parts[2]

def _record_decision(token, decision, staff_id, log_extra):
    # 落库失败不回滚已加的角色，只记错误日志；消息照常更新
    try:
        token_store.update_token(token, token_gate.decision_fields(decision, staff_id))
    except Exception as e:
        logger.error(f"Decision update failed: {e}", extra=log_extra)

def interactions(event, tail, query, body):
    cfg, need = _discord_env()
    if need:
        return err(500, "discord_not_configured", "Missing Discord env vars", need=need)
    need = token_store.missing_config()
    if need:
        return err(500, "store_not_configured", "Missing token store env vars", need=need)

    raw = raw_body(event)
    sig = header(event, "X-Signature-Ed25519")
    ts = header(event, "X-Signature-Timestamp")
    if not sig or not ts:
        return text(401, "Missing signature headers")
    if not verify_ed25519(cfg["public_key"], str(sig), str(ts), raw):
        return text(401, "Bad signature")

    try:
        interaction = json.loads(raw)
    except ValueError:
        return err(400, "invalid_json", "Interaction body is not JSON")
    if not isinstance(interaction, dict):
        return err(400, "invalid_json", "Interaction body is not a JSON object")

    kind = interaction.get("type")
    if kind == PING:
        return ok(discord_api.pong())
    if kind != MESSAGE_COMPONENT:
        return ok(discord_api.deferred_update())

    parsed = parse_custom_id((interaction.get("data") or {}).get("custom_id"))
    if not parsed:
        return ok(discord_api.ephemeral("Invalid button payload."))
    action, token = parsed

    member = interaction.get("member") or {}
    clicker_roles = member.get("roles") or []
    if not any(r in cfg["staff_roles"] for r in clicker_roles):
        return ok(discord_api.ephemeral("❌ You are not allowed to do that."))

    guild_id = interaction.get("guild_id")
    staff_id = (member.get("user") or {}).get("id")
    log_extra = {"token": short_token(token), "action": action, "guild_id": guild_id}

    try:
        row = token_store.get_token(token, "user_id, used")
    except Exception as e:
        logger.warning(f"Token lookup failed: {e}", extra=log_extra)
        row = None

    reason = token_gate.decision_block_reason(row)
    if reason == "token_not_found":
        return ok(discord_api.ephemeral("Token not found."))
    if reason == "already_decided":
        return ok(discord_api.ephemeral("Already decided."))

    user_id = row["user_id"]

    if action == "approve":
        s1 = discord_api.add_member_role(cfg["bot_token"], guild_id, user_id, cfg["verified_role"])
        s2 = discord_api.add_member_role(cfg["bot_token"], guild_id, user_id, cfg["resident_role"])
        if s1 not in discord_api.ROLE_OK_CODES or s2 not in discord_api.ROLE_OK_CODES:
            logger.warning(f"Role assignment failed: {s1}, {s2}", extra=log_extra)
            return ok(discord_api.ephemeral(
                f"Role assignment failed (codes: {s1}, {s2}). Check bot perms/role hierarchy."))

        _record_decision(token, token_gate.APPROVED, staff_id, log_extra)
        logger.info("Verification approved", extra=log_extra)
        return ok(discord_api.update_message(
            f"✅ **APPROVED** by <@{staff_id}> — roles granted to <@{user_id}>", token))

    if action == "deny":
        _record_decision(token, token_gate.DENIED, staff_id, log_extra)
        logger.info("Verification denied", extra=log_extra)
        return ok(discord_api.update_message(f"⛔ **DENIED** by <@{staff_id}>", token))

    return ok(discord_api.ephemeral("Unknown action."))
