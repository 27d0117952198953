"""
Unit tests for Lambda: Image Processor (event dispatcher)
"""

import pytest
import json
import os
import time
from unittest.mock import patch
import importlib.util

from botocore.exceptions import ClientError

# Set required environment variables before importing
os.environ['REGION'] = 'us-east-1'
os.environ['UPLOAD_PREFIX'] = 'uploads/'
os.environ['PROCESSED_PREFIX'] = 'processed/'
os.environ['PROCESSING_DELAY_SECONDS'] = '0.5'
os.environ['FUNCTION_LABEL'] = 'image-processor'

# Import the dispatcher module directly to avoid name collision
dispatcher_path = os.path.join(os.path.dirname(__file__), '../../lambda/processor/event_dispatcher/index.py')
spec = importlib.util.spec_from_file_location("event_dispatcher", dispatcher_path)
dispatcher = importlib.util.module_from_spec(spec)
spec.loader.exec_module(dispatcher)


def make_s3_event(key, bucket='demo-bucket', source='aws:s3'):
    """Minimal S3 ObjectCreated notification"""
    return {
        'Records': [
            {
                'eventSource': source,
                'eventName': 'ObjectCreated:Put',
                's3': {
                    'bucket': {'name': bucket},
                    'object': {'key': key}
                }
            }
        ]
    }


def parse_body(response):
    return json.loads(response['body'])


class TestTransformText:
    """Tests for transform_text function"""

    def test_uppercase(self):
        assert dispatcher.transform_text('Hola mundo', 'uppercase') == 'HOLA MUNDO'

    def test_reverse(self):
        assert dispatcher.transform_text('Hola', 'reverse') == 'aloH'

    def test_count(self):
        assert dispatcher.transform_text('Hola', 'count') == 'Tiene 4 caracteres'

    def test_words(self):
        assert dispatcher.transform_text('a b c', 'words') == 'Tiene 3 palabras'

    def test_words_splits_on_single_spaces(self):
        """Consecutive spaces produce empty words"""
        assert dispatcher.transform_text('a  b', 'words') == 'Tiene 3 palabras'

    def test_unknown_action_echoes(self):
        assert dispatcher.transform_text('Hola', 'shout') == 'Procesado: Hola'

    def test_deterministic(self):
        for action in ['uppercase', 'reverse', 'count', 'words', 'unknown']:
            assert dispatcher.transform_text('abc def', action) == dispatcher.transform_text('abc def', action)


class TestDeriveProcessedKey:
    """Tests for derive_processed_key function"""

    def test_basic_key(self):
        assert dispatcher.derive_processed_key('uploads/photo.png') == 'processed/photo_processed.jpg'

    def test_nested_key_uses_last_segment(self):
        assert dispatcher.derive_processed_key('uploads/2024/01/cat.jpeg') == 'processed/cat_processed.jpg'

    def test_stem_stops_at_first_dot(self):
        assert dispatcher.derive_processed_key('uploads/archive.tar.gz') == 'processed/archive_processed.jpg'

    def test_no_extension(self):
        assert dispatcher.derive_processed_key('uploads/README') == 'processed/README_processed.jpg'


class TestBuildObjectUrl:
    """Tests for build_object_url function"""

    def test_default_region(self):
        url = dispatcher.build_object_url('demo-bucket', 'processed/photo_processed.jpg')
        assert url == 'https://demo-bucket.s3.us-east-1.amazonaws.com/processed/photo_processed.jpg'

    def test_configured_region(self):
        with patch.object(dispatcher, 'REGION', 'eu-west-1'):
            url = dispatcher.build_object_url('demo-bucket', 'processed/a_processed.jpg')
        assert url == 'https://demo-bucket.s3.eu-west-1.amazonaws.com/processed/a_processed.jpg'


class TestTextRequests:
    """Tests for the text-processing path of the handler"""

    def test_reverse_request(self):
        result = dispatcher.handler({'text': 'Hola', 'action': 'reverse'}, None)

        assert result['statusCode'] == 200
        assert result['headers']['Access-Control-Allow-Origin'] == '*'
        body = parse_body(result)
        assert body['success'] is True
        assert body['input'] == 'Hola'
        assert body['action'] == 'reverse'
        assert body['result'] == 'aloH'
        assert body['processed_by'] == 'AWS Lambda image-processor'
        assert body['timestamp'].endswith('Z')

    def test_default_action_is_uppercase(self):
        body = parse_body(dispatcher.handler({'text': 'hola'}, None))

        assert body['action'] == 'uppercase'
        assert body['result'] == 'HOLA'

    def test_words_request(self):
        body = parse_body(dispatcher.handler({'text': 'a b c', 'action': 'words'}, None))
        assert body['result'] == 'Tiene 3 palabras'

    def test_api_gateway_body_is_unwrapped(self):
        event = {
            'httpMethod': 'POST',
            'path': '/process',
            'body': json.dumps({'text': 'Hola', 'action': 'count'})
        }

        body = parse_body(dispatcher.handler(event, None))

        assert body['result'] == 'Tiene 4 caracteres'

    def test_direct_event_body_field_is_not_unwrapped(self):
        """A direct invocation keeps its own fields even if it has a 'body' key"""
        event = {'text': 'hola', 'body': json.dumps({'x': 1})}

        result = dispatcher.handler(event, None)

        assert result['statusCode'] == 200
        assert parse_body(result)['result'] == 'HOLA'

    @patch.object(dispatcher, 's3_client')
    def test_text_wins_over_records(self, mock_s3):
        """Text predicate is evaluated before the S3 predicate"""
        event = make_s3_event('uploads/photo.png')
        event['text'] = 'hola'

        body = parse_body(dispatcher.handler(event, None))

        assert body['result'] == 'HOLA'
        mock_s3.put_object.assert_not_called()


@patch.object(dispatcher.time, 'sleep')
@patch.object(dispatcher, 's3_client')
class TestStorageNotifications:
    """Tests for the S3 upload path of the handler"""

    def test_processes_upload(self, mock_s3, mock_sleep):
        result = dispatcher.handler(make_s3_event('uploads/photo.png'), None)

        assert result['statusCode'] == 200
        body = parse_body(result)
        assert body['success'] is True
        assert body['original'] == 'uploads/photo.png'
        assert body['processed'] == 'processed/photo_processed.jpg'
        assert body['bucket'] == 'demo-bucket'
        assert body['processing_time'] == '0.5 segundos'
        assert body['lambda_function'] == 'image-processor'
        assert body['s3_url'] == 'https://demo-bucket.s3.us-east-1.amazonaws.com/processed/photo_processed.jpg'

        mock_sleep.assert_called_once_with(0.5)

    def test_writes_processed_descriptor(self, mock_s3, mock_sleep):
        dispatcher.handler(make_s3_event('uploads/photo.png'), None)

        mock_s3.put_object.assert_called_once()
        call_args = mock_s3.put_object.call_args[1]
        assert call_args['Bucket'] == 'demo-bucket'
        assert call_args['Key'] == 'processed/photo_processed.jpg'
        assert call_args['ContentType'] == 'application/json'
        assert call_args['Metadata'] == {
            'processed-by': 'aws-lambda',
            'original-file': 'uploads/photo.png',
            'lambda-function': 'image-processor'
        }

        record = json.loads(call_args['Body'])
        assert record['original_file'] == 'uploads/photo.png'
        assert record['processed_file'] == 'processed/photo_processed.jpg'
        assert record['simulation'] is True
        assert record['status'] == 'completed'
        assert record['bucket'] == 'demo-bucket'
        assert record['lambda_function'] == 'image-processor'
        assert 'processed_at' in record

    def test_decodes_form_encoded_key(self, mock_s3, mock_sleep):
        body = parse_body(dispatcher.handler(make_s3_event('uploads/my+photo%281%29.png'), None))

        assert body['original'] == 'uploads/my photo(1).png'
        assert body['processed'] == 'processed/my photo(1)_processed.jpg'

    def test_skips_keys_outside_uploads(self, mock_s3, mock_sleep):
        result = dispatcher.handler(make_s3_event('other/photo.png'), None)

        assert result['status'] == 'skipped'
        assert result['statusCode'] == 200
        body = parse_body(result)
        assert body['status'] == 'skipped'
        assert body['key'] == 'other/photo.png'
        mock_s3.put_object.assert_not_called()
        mock_sleep.assert_not_called()

    def test_skips_processed_output(self, mock_s3, mock_sleep):
        """Descriptors written to processed/ never re-trigger processing"""
        result = dispatcher.handler(make_s3_event('processed/photo_processed.jpg'), None)

        assert result['status'] == 'skipped'
        mock_s3.put_object.assert_not_called()

    def test_repeated_upload_overwrites_same_key(self, mock_s3, mock_sleep):
        timestamps = [
            '2024-01-15T10:30:00.000Z', '2024-01-15T10:30:00.001Z',
            '2024-01-15T10:31:00.000Z', '2024-01-15T10:31:00.001Z',
        ]
        with patch.object(dispatcher, 'utc_timestamp', side_effect=timestamps):
            dispatcher.handler(make_s3_event('uploads/photo.png'), None)
            dispatcher.handler(make_s3_event('uploads/photo.png'), None)

        assert mock_s3.put_object.call_count == 2
        first, second = [json.loads(c[1]['Body']) for c in mock_s3.put_object.call_args_list]
        keys = [c[1]['Key'] for c in mock_s3.put_object.call_args_list]

        assert keys == ['processed/photo_processed.jpg', 'processed/photo_processed.jpg']
        assert first['original_file'] == second['original_file']
        assert first['processed_file'] == second['processed_file']
        assert first['processed_at'] != second['processed_at']

    def test_storage_error_returns_500(self, mock_s3, mock_sleep):
        mock_s3.put_object.side_effect = ClientError(
            {'Error': {'Code': 'AccessDenied', 'Message': 'Access Denied'}},
            'PutObject'
        )

        result = dispatcher.handler(make_s3_event('uploads/photo.png'), None)

        assert result['statusCode'] == 500
        body = parse_body(result)
        assert body['success'] is False
        assert 'AccessDenied' in body['error']
        assert body['lambda_function'] == 'image-processor'

    def test_malformed_record_returns_500(self, mock_s3, mock_sleep):
        event = {'Records': [{'eventSource': 'aws:s3', 's3': {}}]}

        result = dispatcher.handler(event, None)

        assert result['statusCode'] == 500
        assert parse_body(result)['success'] is False
        mock_s3.put_object.assert_not_called()

    def test_other_event_source_is_unrecognized(self, mock_s3, mock_sleep):
        result = dispatcher.handler(make_s3_event('uploads/photo.png', source='aws:sqs'), None)

        assert result['statusCode'] == 400
        mock_s3.put_object.assert_not_called()


class TestUnrecognizedEvents:
    """Tests for the fallback path"""

    def test_empty_event(self):
        result = dispatcher.handler({}, None)

        assert result['statusCode'] == 400
        body = parse_body(result)
        assert body['success'] is False
        assert body['message'] == 'Evento no reconocido'
        assert 'suggestion' in body

    def test_empty_text(self):
        assert dispatcher.handler({'text': ''}, None)['statusCode'] == 400

    def test_empty_records(self):
        assert dispatcher.handler({'Records': []}, None)['statusCode'] == 400


class TestSimulatedLatency:
    """The upload path waits for the configured processing delay"""

    @patch.object(dispatcher, 's3_client')
    def test_upload_takes_at_least_delay(self, mock_s3):
        start = time.monotonic()
        result = dispatcher.handler(make_s3_event('uploads/photo.png'), None)
        elapsed = time.monotonic() - start

        assert result['statusCode'] == 200
        assert elapsed >= 0.5


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
