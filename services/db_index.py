# services/db_index.py
# COS 上的 NDJSON（逐行 JSON）“表”
# 依赖 services.cos_client 提供的 get_text(key) / put_text(key, text, content_type?)
#
# 并发很低（一个 token 一次上传 + 一次裁决），读-改-全量回写即可。
# 解析不了的行读时跳过，回写时按原文保留，不会因为一次更新丢数据。

import json
from typing import List, Optional, Union

from qcloud_cos.cos_exception import CosServiceError

from services.cos_client import get_text, put_text
from services.logger import get_logger

logger = get_logger(__name__)

# 每行：解析成功是 dict，失败是原始字符串
Line = Union[dict, str]

def _load_text(key: str) -> str:
    """文件不存在视为空表；其它错误（权限/网络）照常抛出"""
    try:
        return get_text(key)
    except CosServiceError as e:
        if e.get_status_code() == 404:
            return ""
        raise

def _read_lines(key: str) -> List[Line]:
    out: List[Line] = []
    for ln in _load_text(key).splitlines():
        if not ln.strip():
            continue
        try:
            row = json.loads(ln)
        except ValueError:
            row = None
        out.append(row if isinstance(row, dict) else ln)
    bad = sum(1 for x in out if isinstance(x, str))
    if bad:
        logger.warning(f"{key}: {bad} unparseable line(s) kept as-is")
    return out

def read_rows(key: str) -> List[dict]:
    return [x for x in _read_lines(key) if isinstance(x, dict)]

def _dump(line: Line) -> str:
    if isinstance(line, str):
        return line + "\n"
    return json.dumps(line, ensure_ascii=False) + "\n"

def write_lines(key: str, lines: List[Line]) -> None:
    put_text(key, "".join(_dump(x) for x in lines), content_type="application/x-ndjson")

def find_row(key: str, id_field: str, id_value: str) -> Optional[dict]:
    for it in read_rows(key):
        if it.get(id_field) == id_value:
            return it
    return None

def update_row(key: str, id_field: str, id_value: str, fields: dict) -> bool:
    """
    查找 id_field=id_value 的行，合并 fields 后全量回写。
    与 upsert 不同：找不到时不新增，返回 False。
    """
    lines = _read_lines(key)
    for it in lines:
        if isinstance(it, dict) and it.get(id_field) == id_value:
            it.update(fields)
            write_lines(key, lines)
            return True
    return False
