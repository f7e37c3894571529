"""
Request/response logging for the OpenSky client.

Logs method, URL, status, headers and a pretty-printed (truncated) body
at DEBUG level. Logging is diagnostic only: any failure while formatting
is swallowed so it can never change the outcome of a fetch.
"""

import json
import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_BODY_LIMIT = 2048


def format_body(body: Optional[bytes], limit: int = DEFAULT_BODY_LIMIT) -> Optional[str]:
    """
    Pretty-print a JSON body with sorted keys.

    Falls back to the raw text when the body is not JSON, and truncates
    to ``limit`` characters.
    """
    if not body:
        return None

    if isinstance(body, bytes):
        text = body.decode('utf-8', errors='replace')
    else:
        text = str(body)

    try:
        text = json.dumps(json.loads(text), indent=2, sort_keys=True)
    except ValueError:
        pass

    if len(text) > limit:
        return f'{text[:limit]}... ({len(text) - limit} more chars)'
    return text


def log_request(
    request: requests.PreparedRequest,
    request_id: str,
    body_limit: int = DEFAULT_BODY_LIMIT,
) -> None:
    """Log an outgoing request."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    try:
        lines = [
            f'REQUEST {request_id}',
            f'URL: {request.url}',
            f'Method: {request.method}',
            f'Headers: {dict(request.headers)}',
        ]
        body = format_body(request.body, body_limit)
        if body:
            lines.append(f'Body: {body}')
        logger.debug('\n'.join(lines))
    except Exception as e:
        logger.debug(f'Request logging failed: {e}')


def log_response(
    request_id: str,
    response: Optional[requests.Response] = None,
    error: Optional[BaseException] = None,
    body_limit: int = DEFAULT_BODY_LIMIT,
) -> None:
    """Log an incoming response, or the transport error that replaced it."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    try:
        lines = [f'RESPONSE {request_id}']
        if response is not None:
            lines.append(f'URL: {response.url}')
            lines.append(f'Status Code: {response.status_code}')
            lines.append(f'Headers: {dict(response.headers)}')
            body = format_body(response.content, body_limit)
            if body:
                lines.append(f'Response Data:\n{body}')
        if error is not None:
            lines.append(f'Error: {error}')
        logger.debug('\n'.join(lines))
    except Exception as e:
        logger.debug(f'Response logging failed: {e}')
