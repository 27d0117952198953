"""
Shared constants for the Lambda image demo project
"""

# Default AWS region (also used to build processed object URLs)
DEFAULT_REGION = "us-east-1"

# Label renderer defaults
RENDERER_DEFAULT_TEXT = "Laravel + Lambda"
RENDERER_DEFAULT_WIDTH = 800
RENDERER_DEFAULT_HEIGHT = 600
RENDERER_CAPTION_TEXT = "AWS Lambda + Pillow"
# Largest image (width * height) the renderer accepts, 4096x4096 RGB fits in 512 MB
RENDERER_MAX_PIXELS = 16777216

# Image processor (event dispatcher) settings
PROCESSOR_FUNCTION_LABEL = "image-processor"
UPLOAD_PREFIX = "uploads/"
PROCESSED_PREFIX = "processed/"
PROCESSING_DELAY_SECONDS = 0.5

# Supported text actions for the dispatcher
TEXT_ACTIONS = ["uppercase", "reverse", "count", "words"]

# Default bucket for uploads
UPLOAD_BUCKET_NAME = "lamp-lambda-demo-uploads"
