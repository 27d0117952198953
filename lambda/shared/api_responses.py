"""
Shared response helpers for API Gateway / direct Lambda invocations
"""

import json
from datetime import datetime, timezone
from typing import Dict, Any, Optional


JSON_HEADERS = {
    'Content-Type': 'application/json'
}

CORS_HEADERS = {
    'Content-Type': 'application/json',
    'Access-Control-Allow-Origin': '*'
}


def create_response(
    status_code: int,
    data: Dict[str, Any],
    headers: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """
    Create Lambda proxy response with a JSON body

    Args:
        status_code: HTTP status code
        data: Body payload, serialized with json.dumps
        headers: Response headers (defaults to JSON content type)

    Returns:
        Dict with statusCode, headers and body
    """
    return {
        'statusCode': status_code,
        'headers': dict(headers or JSON_HEADERS),
        'body': json.dumps(data, ensure_ascii=False)
    }


def create_error_response(error: Exception, **extra) -> Dict[str, Any]:
    """Create a 500 response exposing the error message"""
    return create_response(500, {
        'success': False,
        'error': str(error),
        **extra
    })


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-01-15T10:30:00.000Z"""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def is_proxy_event(event: Any) -> bool:
    """True for API Gateway proxy events (REST v1 or HTTP API v2)"""
    return isinstance(event, dict) and ('httpMethod' in event or 'requestContext' in event)


def unwrap_event(event: Any) -> Any:
    """
    Return the effective payload of an invocation event.

    API Gateway proxy integrations deliver the request payload as a JSON
    string under 'body'. Direct invocations pass the payload as-is, even
    when they carry their own 'body' field.
    """
    if is_proxy_event(event) and isinstance(event.get('body'), str):
        try:
            body = json.loads(event['body'])
        except json.JSONDecodeError:
            return event
        if isinstance(body, dict):
            return body
    return event
