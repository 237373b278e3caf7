# -*- coding: utf-8 -*-
# services/text_utils.py —— 小工具：MIME 扩展名 / ID 列表 / 截断 / 时间
import re, datetime

_SPLIT_RE = re.compile(r"[\s,，、;；]+")

def parse_id_list(raw: str):
    """"123,456" → ["123","456"]；去空去重，保持顺序"""
    if not raw: return []
    parts = _SPLIT_RE.split(raw)
    out, seen = [], set()
    for p in parts:
        w = p.strip()
        if not w or w in seen: continue
        seen.add(w)
        out.append(w)
    return out

def ext_from_mime(mime: str = "") -> str:
    m = str(mime or "").lower()
    if "jpeg" in m or "jpg" in m: return "jpg"
    if "png" in m: return "png"
    if "webp" in m: return "webp"
    return "bin"

def truncate(text: str, limit: int) -> str:
    if text is None: return ""
    return text[:limit]

def short_token(token: str) -> str:
    # 日志里只留前 6 位
    t = str(token or "")
    return t[:6] + "…" if len(t) > 6 else t

def iso_now(now: datetime.datetime = None) -> str:
    now = now or datetime.datetime.now(datetime.timezone.utc)
    return now.astimezone(datetime.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
