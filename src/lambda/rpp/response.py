"""
Standard API response utilities for the lesson-plan Lambda functions
"""

import base64
import json
import re
from datetime import date, datetime
from typing import Any, Dict, Optional
from urllib.parse import quote


def _json_serializer(obj):
    """JSON serializer for objects not serializable by default json code"""
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    raise TypeError(f"Type {type(obj)} not serializable")


def _cors_headers(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    headers = {
        'Access-Control-Allow-Origin': '*',
        'Access-Control-Allow-Headers': 'Content-Type',
        'Access-Control-Allow-Methods': 'GET,POST,PUT,PATCH,DELETE,OPTIONS',
    }
    if extra:
        headers.update(extra)
    return headers


def success_response(
    body: Any,
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """
    Create a successful API Gateway response.

    Args:
        body: JSON-serializable response body
        status_code: HTTP status code (default: 200)
        headers: Optional custom headers

    Returns:
        API Gateway response dictionary
    """
    return {
        'statusCode': status_code,
        'headers': _cors_headers({'Content-Type': 'application/json', **(headers or {})}),
        'body': json.dumps(body, default=_json_serializer, ensure_ascii=False),
    }


def error_response(
    message: str,
    status_code: int = 500,
    error_code: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """
    Create an error API Gateway response.

    Body is ``{"error": message}`` plus ``error_code`` when given.
    """
    body = {'error': message}
    if error_code:
        body['error_code'] = error_code

    return {
        'statusCode': status_code,
        'headers': _cors_headers({'Content-Type': 'application/json', **(headers or {})}),
        'body': json.dumps(body, ensure_ascii=False),
    }


def content_disposition(filename: str) -> str:
    """
    Attachment header value for ``filename``.

    The quoted ``filename`` is an ASCII fallback without quotes or control
    characters; anything else is carried in an RFC 5987 ``filename*``.
    """
    fallback = filename.encode('ascii', 'replace').decode('ascii')
    fallback = re.sub(r'["\\\x00-\x1f\x7f]', '_', fallback)
    if fallback == filename:
        return f'attachment; filename="{filename}"'
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def document_response(content: bytes, filename: str, content_type: str) -> Dict[str, Any]:
    """Binary download (API Gateway needs the body base64-encoded)."""
    return {
        'statusCode': 200,
        'headers': _cors_headers({
            'Content-Type': content_type,
            'Content-Disposition': content_disposition(filename),
            'Access-Control-Expose-Headers': 'Content-Disposition',
        }),
        'body': base64.b64encode(content).decode('ascii'),
        'isBase64Encoded': True,
    }


def parse_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """JSON body of an API Gateway event (string or already-parsed dict)."""
    body = event.get('body')
    if not body:
        return {}
    if isinstance(body, str):
        if event.get('isBase64Encoded'):
            body = base64.b64decode(body).decode('utf-8')
        body = json.loads(body)
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body
