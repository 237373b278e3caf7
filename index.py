# index.py —— 超薄入口：SCF / API 网关事件 → 路由表
from router import route
from services.logger import setup_logging

from handlers import diag
from handlers import verify
from handlers import discord_interactions

setup_logging()

# 路由表（最长前缀优先；OPTIONS 预检由 router 统一处理）
ROUTES = [
    # —— 自检 ——
    ("GET",  "/ping",                  diag.ping),
    ("GET",  "/store/info",            diag.store_info),

    # —— 上传表单 → ticket webhook ——
    ("POST", "/verify",                verify.submit),
    ("POST", "/api/verify",            verify.submit),

    # —— Discord 交互回调（APPROVE / DENY）——
    ("POST", "/discord/interactions",  discord_interactions.interactions),
    ("POST", "/api/discord-interactions", discord_interactions.interactions),
]

def main_handler(event, context):
    return route(event, context, ROUTES)
