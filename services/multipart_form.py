# services/multipart_form.py
# multipart/form-data 解析（werkzeug FormDataParser）
# 网关把整个 body 交给我们（router 已做 base64 解码），这里在内存流上解析
import io
from typing import Dict, List, NamedTuple, Tuple

from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.formparser import FormDataParser
from werkzeug.http import parse_options_header

MULTIPART = "multipart/form-data"


class BadUpload(Exception):
    """不是合法的 multipart 表单"""


class UploadTooLarge(Exception):
    def __init__(self, limit_bytes: int):
        super().__init__(f"upload exceeds {limit_bytes} bytes")
        self.limit_bytes = limit_bytes


class UploadedFile(NamedTuple):
    field: str
    filename: str
    mimetype: str
    data: bytes


def pick_first(v):
    if isinstance(v, (list, tuple)):
        return v[0] if v else None
    return v


def is_multipart(content_type: str) -> bool:
    return MULTIPART in str(content_type or "").lower()


def parse_multipart(
    raw: bytes, content_type: str, max_bytes: int
) -> Tuple[Dict[str, List[str]], Dict[str, List[UploadedFile]]]:
    """
    返回 (fields, files)，都是 字段名 → 值列表
    超过 max_bytes 抛 UploadTooLarge；缺 boundary / 格式坏抛 BadUpload
    """
    if len(raw) > max_bytes:
        raise UploadTooLarge(max_bytes)

    mimetype, options = parse_options_header(content_type or "")
    mimetype = mimetype.lower()  # 媒体类型不区分大小写
    if mimetype != MULTIPART:
        raise BadUpload(f"unexpected content type: {mimetype or 'none'}")
    if not options.get("boundary"):
        raise BadUpload("missing multipart boundary")

    parser = FormDataParser(max_content_length=max_bytes, silent=False)
    try:
        _, form, storage = parser.parse(io.BytesIO(raw), mimetype, len(raw), options)
    except RequestEntityTooLarge:
        raise UploadTooLarge(max_bytes)
    except ValueError as e:
        raise BadUpload(str(e)) from e

    fields = form.to_dict(flat=False)
    files: Dict[str, List[UploadedFile]] = {}
    for name, fs in storage.items(multi=True):
        files.setdefault(name, []).append(UploadedFile(
            field=name,
            filename=fs.filename or "",
            mimetype=fs.mimetype or "",
            data=fs.read(),
        ))
    return fields, files
