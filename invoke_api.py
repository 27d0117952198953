#!/usr/bin/env python3
"""
Quick smoke script for the deployed renderer and processor APIs
"""

import base64
import json
import sys

import requests

from config.constants import TEXT_ACTIONS


def post_json(url, payload):
    """POST a payload and print the response"""
    print(f"\nPOST {url}")
    print(f"   Payload: {json.dumps(payload)}")
    print("-" * 60)

    try:
        response = requests.post(url, json=payload, timeout=30)
        print(f"Status Code: {response.status_code}")
        return response.json()

    except requests.exceptions.RequestException as e:
        print(f"Request failed: {e}")
        return None
    except json.JSONDecodeError:
        print("Invalid JSON response:")
        print(response.text)
        return None


def check_renderer(render_url, text, output_path="label.png"):
    """Render a label and save the PNG locally"""
    data = post_json(render_url, {"text": text, "width": 640, "height": 360})
    if not data or not data.get("success"):
        print(json.dumps(data, indent=2))
        return

    image_bytes = base64.b64decode(data["image_data"])
    with open(output_path, "wb") as f:
        f.write(image_bytes)

    print(f"Saved {data['file_size']} bytes ({data['image_size']}) to {output_path}")


def check_processor(process_url, text):
    """Run every text action against the processor"""
    for action in TEXT_ACTIONS:
        data = post_json(process_url, {"text": text, "action": action})
        if data:
            print(f"{action}: {data.get('result')}")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: invoke_api.py <render-endpoint> <process-endpoint> [text]")
        sys.exit(1)

    render_url, process_url = sys.argv[1], sys.argv[2]
    text = sys.argv[3] if len(sys.argv) > 3 else "Hola Lambda"

    print("\n" + "=" * 60)
    print("TEST 1: Label renderer")
    print("=" * 60)
    check_renderer(render_url, text)

    print("\n" + "=" * 60)
    print("TEST 2: Processor text actions")
    print("=" * 60)
    check_processor(process_url, text)
