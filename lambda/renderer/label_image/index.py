"""
Lambda: Label Image Renderer

Renders a text label onto a generated image:
- Builds a scene (background + centered label + caption)
- Rasterizes it to PNG with Pillow
- Returns the PNG base64-encoded in a JSON response
"""

import base64
import json
import os
import re
import sys
from io import BytesIO
from typing import Dict, Any, List

from PIL import Image, ImageDraw, ImageFont

# Add shared utilities to path
sys.path.insert(0, '/opt')  # Lambda layer path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../../shared'))

from api_responses import create_response, unwrap_event, utc_timestamp

# Environment variables
DEFAULT_TEXT = os.environ.get('DEFAULT_TEXT', 'Laravel + Lambda')
DEFAULT_WIDTH = int(os.environ.get('DEFAULT_WIDTH', '800'))
DEFAULT_HEIGHT = int(os.environ.get('DEFAULT_HEIGHT', '600'))
CAPTION_TEXT = os.environ.get('CAPTION_TEXT', 'AWS Lambda + Pillow')
MAX_PIXELS = int(os.environ.get('MAX_PIXELS', '16777216'))

BACKGROUND_COLOR = '#2563eb'
TEXT_COLOR = 'white'
LABEL_FONT_SIZE = 30
CAPTION_FONT_SIZE = 16

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


def handler(event, context):
    """
    Main handler for Label Image Renderer Lambda

    Expected input (direct invocation or API Gateway body):
    {"text": "Hello", "width": 800, "height": 600}

    Returns:
        API Gateway style response with the PNG in body.image_data
    """
    print(f"Evento recibido: {json.dumps(event, default=str)}")

    try:
        payload = unwrap_event(event)
        if not isinstance(payload, dict):
            payload = {}

        text = str(payload.get('text') or DEFAULT_TEXT)
        width = parse_dimension(payload.get('width'), DEFAULT_WIDTH)
        height = parse_dimension(payload.get('height'), DEFAULT_HEIGHT)

        if width * height > MAX_PIXELS:
            raise ValueError(
                f"Image {width}x{height} exceeds the pixel limit ({MAX_PIXELS} pixels)"
            )

        print(f"Creando imagen: {text} ({width}x{height})")

        scene = build_label_scene(text, width, height)
        image_bytes = rasterize_scene(scene)

        return create_response(200, {
            'success': True,
            'message': '¡Imagen creada con Pillow!',
            'text': text,
            'image_size': f"{width}x{height}",
            'image_data': base64.b64encode(image_bytes).decode('ascii'),
            'image_format': 'PNG',
            'file_size': len(image_bytes),
            'renderer': 'Pillow',
            'timestamp': utc_timestamp()
        })

    except Exception as e:
        print(f"Error: {str(e)}")
        return create_response(500, {
            'success': False,
            'error': str(e),
            'message': 'Error procesando imagen'
        })


def parse_dimension(value: Any, default: int) -> int:
    """
    Parse a width/height value leniently.

    Takes the leading integer of strings ("300px" -> 300) and truncates
    floats. Anything unparseable, zero or negative yields the default.
    """
    if isinstance(value, bool) or value is None:
        return default

    if isinstance(value, (int, float)):
        try:
            parsed = int(value)
        except (OverflowError, ValueError):
            return default
    else:
        match = _LEADING_INT.match(str(value))
        if not match:
            return default
        parsed = int(match.group(1))

    return parsed if parsed > 0 else default


def build_label_scene(text: str, width: int, height: int) -> Dict[str, Any]:
    """
    Describe the label image as a list of drawing primitives

    Positions are absolute pixels. Text anchors use Pillow's two-letter
    anchor codes ('mm' = middle/middle, 'ms' = middle/baseline).
    """
    elements: List[Dict[str, Any]] = [
        {
            'type': 'rect',
            'box': (0, 0, width, height),
            'fill': BACKGROUND_COLOR
        },
        {
            'type': 'text',
            'text': text,
            'position': (width / 2, height * 0.5),
            'anchor': 'mm',
            'font_size': LABEL_FONT_SIZE,
            'fill': TEXT_COLOR
        },
        {
            'type': 'text',
            'text': CAPTION_TEXT,
            'position': (width / 2, height * 0.6),
            'anchor': 'ms',
            'font_size': CAPTION_FONT_SIZE,
            'fill': TEXT_COLOR
        }
    ]

    return {
        'width': width,
        'height': height,
        'elements': elements
    }


def rasterize_scene(scene: Dict[str, Any]) -> bytes:
    """
    Draw a scene with Pillow and encode it as PNG

    Raises:
        ValueError: Unknown element type
    """
    image = Image.new('RGB', (scene['width'], scene['height']))
    draw = ImageDraw.Draw(image)

    for element in scene['elements']:
        if element['type'] == 'rect':
            x0, y0, x1, y1 = element['box']
            # Pillow boxes are inclusive of the lower-right corner
            draw.rectangle((x0, y0, x1 - 1, y1 - 1), fill=element['fill'])
        elif element['type'] == 'text':
            font = ImageFont.load_default(size=element['font_size'])
            draw.text(
                element['position'],
                element['text'],
                fill=element['fill'],
                font=font,
                anchor=element['anchor']
            )
        else:
            raise ValueError(f"Unsupported scene element: {element['type']}")

    output_buffer = BytesIO()
    image.save(output_buffer, format='PNG')
    return output_buffer.getvalue()
