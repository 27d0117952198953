#!/usr/bin/env python3
"""
Lambda Image Demo CDK Application

This app defines the infrastructure for two independent functions:
a label image renderer and an S3-triggered image processor.
"""

import aws_cdk as cdk
from lib.renderer_stack import RendererStack
from lib.processor_stack import ProcessorStack

from config.constants import DEFAULT_REGION

app = cdk.App()

# Get environment configuration
env = cdk.Environment(
    account=app.node.try_get_context("account"),
    region=app.node.try_get_context("region") or DEFAULT_REGION
)

# Label renderer (PNG generation behind API Gateway)
renderer = RendererStack(
    app,
    "LabelRendererStack",
    env=env,
    description="Label renderer - text label rasterized to PNG"
)

# Image processor (text requests + S3 upload simulation)
processor = ProcessorStack(
    app,
    "ImageProcessorStack",
    env=env,
    description="Image processor - text actions and simulated S3 upload processing"
)

app.synth()
