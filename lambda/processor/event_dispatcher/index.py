"""
Lambda: Image Processor (event dispatcher)

Routes each invocation by event shape:
- {"text": ..., "action": ...} -> text transform (uppercase, reverse, count, words)
- S3 upload notification under uploads/ -> simulated processing, writes a
  JSON descriptor to processed/ in the same bucket
- anything else -> 400
"""

import json
import os
import sys
import time
import boto3
from typing import Dict, Any

# Add shared utilities to path
sys.path.insert(0, '/opt')  # Lambda layer path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../../shared'))

from event_types import TextRequest, StorageNotification, classify_event
from api_responses import (
    CORS_HEADERS,
    create_response,
    create_error_response,
    unwrap_event,
    utc_timestamp,
)

# Environment variables
REGION = os.environ.get('REGION', os.environ.get('AWS_REGION', 'us-east-1'))
UPLOAD_PREFIX = os.environ.get('UPLOAD_PREFIX', 'uploads/')
PROCESSED_PREFIX = os.environ.get('PROCESSED_PREFIX', 'processed/')
PROCESSING_DELAY_SECONDS = float(os.environ.get('PROCESSING_DELAY_SECONDS', '0.5'))
FUNCTION_LABEL = os.environ.get('FUNCTION_LABEL', 'image-processor')

# Initialize client once per container
s3_client = boto3.client('s3', region_name=REGION)


def handler(event, context):
    """
    Main handler for Image Processor Lambda

    Args:
        event: Direct text request, API Gateway proxy event or S3 notification
        context: Lambda context

    Returns:
        API Gateway style response (statusCode, headers, body)
    """
    print(f"Evento recibido en {FUNCTION_LABEL}: {json.dumps(event, indent=2, default=str)}")

    try:
        request = classify_event(unwrap_event(event))

        if isinstance(request, TextRequest):
            return handle_text_request(request)

        if isinstance(request, StorageNotification):
            return handle_storage_notification(request)

        return create_response(400, {
            'success': False,
            'message': 'Evento no reconocido',
            'suggestion': 'Usa {text: "texto"} para pruebas o sube archivos a S3'
        })

    except Exception as e:
        print(f"Error en {FUNCTION_LABEL}: {str(e)}")
        return create_error_response(e, lambda_function=FUNCTION_LABEL)


def transform_text(text: str, action: str) -> str:
    """
    Apply a text action. Unknown actions echo the input.
    """
    if action == 'uppercase':
        return text.upper()
    if action == 'reverse':
        return text[::-1]
    if action == 'count':
        return f"Tiene {len(text)} caracteres"
    if action == 'words':
        # Single-space split: consecutive spaces count as extra words
        return f"Tiene {len(text.split(' '))} palabras"
    return f"Procesado: {text}"


def handle_text_request(request: TextRequest) -> Dict[str, Any]:
    """Process a direct text request"""
    result = transform_text(request.text, request.action)
    print(f"Texto procesado con accion '{request.action}'")

    return create_response(200, {
        'success': True,
        'input': request.text,
        'action': request.action,
        'result': result,
        'processed_by': f"AWS Lambda {FUNCTION_LABEL}",
        'timestamp': utc_timestamp(),
        'message': '¡Procesamiento de texto exitoso!'
    }, headers=CORS_HEADERS)


def derive_processed_key(key: str) -> str:
    """
    Map an uploaded key to its processed output key

    uploads/photo.png -> processed/photo_processed.jpg
    """
    file_name = key.split('/')[-1]
    stem = file_name.split('.')[0]
    return f"{PROCESSED_PREFIX}{stem}_processed.jpg"


def build_object_url(bucket: str, key: str) -> str:
    """Virtual-hosted style S3 URL for an object"""
    return f"https://{bucket}.s3.{REGION}.amazonaws.com/{key}"


def build_processed_record(bucket: str, key: str, new_key: str) -> Dict[str, Any]:
    """
    Descriptor written to S3 in place of a real processed image
    """
    return {
        'original_file': key,
        'processed_file': new_key,
        'processed_at': utc_timestamp(),
        'processing_time': format_processing_time(PROCESSING_DELAY_SECONDS),
        'simulation': True,
        'message': 'Procesamiento simulado exitoso',
        'bucket': bucket,
        'lambda_function': FUNCTION_LABEL,
        'status': 'completed'
    }


def format_processing_time(seconds: float) -> str:
    return f"{seconds:g} segundos"


def handle_storage_notification(notification: StorageNotification) -> Dict[str, Any]:
    """
    Simulate processing of an uploaded image and store the result descriptor
    """
    bucket = notification.bucket
    key = notification.key

    print(f"Procesando imagen de S3: {key} del bucket: {bucket}")

    if not key.startswith(UPLOAD_PREFIX):
        print(f"Archivo no esta en {UPLOAD_PREFIX}, ignorando...")
        response = create_response(200, {
            'success': True,
            'status': 'skipped',
            'key': key,
            'reason': f"Key is outside {UPLOAD_PREFIX}"
        })
        # Legacy callers read the bare {"status": "skipped"} shape
        response['status'] = 'skipped'
        return response

    new_key = derive_processed_key(key)
    print(f"Procesando: {key} a: {new_key}")

    # Stand-in for real image processing
    time.sleep(PROCESSING_DELAY_SECONDS)

    record = build_processed_record(bucket, key, new_key)

    s3_client.put_object(
        Bucket=bucket,
        Key=new_key,
        Body=json.dumps(record, indent=2, ensure_ascii=False),
        ContentType='application/json',
        Metadata={
            'processed-by': 'aws-lambda',
            'original-file': key,
            'lambda-function': FUNCTION_LABEL
        }
    )

    print(f"Procesamiento completado: {new_key}")

    return create_response(200, {
        'success': True,
        'message': 'Procesamiento de imagen simulado exitoso',
        'original': key,
        'processed': new_key,
        'bucket': bucket,
        'processing_time': record['processing_time'],
        'timestamp': utc_timestamp(),
        'lambda_function': FUNCTION_LABEL,
        's3_url': build_object_url(bucket, new_key)
    })
