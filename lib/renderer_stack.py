"""
Renderer Stack - Label image rendering API

This stack creates:
- Lambda layers for Pillow and the shared helpers
- Label renderer Lambda function
- API Gateway REST API (POST /render)
"""

from aws_cdk import (
    Stack,
    Duration,
    aws_lambda as lambda_,
    aws_apigateway as apigw,
    aws_logs as logs,
    CfnOutput,
)
from constructs import Construct
import json

from config.constants import (
    RENDERER_CAPTION_TEXT,
    RENDERER_DEFAULT_HEIGHT,
    RENDERER_DEFAULT_TEXT,
    RENDERER_DEFAULT_WIDTH,
    RENDERER_MAX_PIXELS,
)


class RendererStack(Stack):
    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Load configuration
        config = self._load_config()

        # Create Label Renderer Lambda
        self.renderer_lambda = self._create_renderer_lambda(config)

        # Create API Gateway
        self.api = self._create_api_gateway()

        CfnOutput(
            self,
            "RenderEndpoint",
            value=f"{self.api.url}render",
            description="POST endpoint for label image rendering",
        )

    def _load_config(self) -> dict:
        """Load configuration from context or use defaults"""
        env = self.node.try_get_context("environment") or "dev"
        config_path = f"config/{env}.json"

        try:
            with open(config_path, "r") as f:
                return json.load(f)
        except FileNotFoundError:
            # Return default config
            return {
                "renderer": {
                    "default_text": RENDERER_DEFAULT_TEXT,
                    "default_width": RENDERER_DEFAULT_WIDTH,
                    "default_height": RENDERER_DEFAULT_HEIGHT,
                    "caption_text": RENDERER_CAPTION_TEXT,
                    "max_pixels": RENDERER_MAX_PIXELS,
                    "memory_size": 512,
                },
            }

    def _create_renderer_lambda(self, config: dict) -> lambda_.Function:
        """Create Label Renderer Lambda"""
        renderer_config = config["renderer"]

        # Pillow is built for the Lambda runtime outside of CDK
        pillow_layer = lambda_.LayerVersion(
            self,
            "PillowLayer",
            code=lambda_.Code.from_asset("lambda/layers/pillow"),
            compatible_runtimes=[lambda_.Runtime.PYTHON_3_11],
            description="Pillow for PNG rasterization",
        )

        shared_layer = lambda_.LayerVersion(
            self,
            "RendererSharedLayer",
            code=lambda_.Code.from_asset("lambda/shared"),
            compatible_runtimes=[lambda_.Runtime.PYTHON_3_11],
            description="Shared response helpers",
        )

        return lambda_.Function(
            self,
            "LabelRendererFunction",
            runtime=lambda_.Runtime.PYTHON_3_11,
            handler="index.handler",
            code=lambda_.Code.from_asset("lambda/renderer/label_image"),
            layers=[pillow_layer, shared_layer],
            timeout=Duration.seconds(30),
            memory_size=renderer_config.get("memory_size", 512),
            log_retention=logs.RetentionDays.THREE_DAYS,  # Auto-delete logs after 3 days
            environment={
                "DEFAULT_TEXT": renderer_config["default_text"],
                "DEFAULT_WIDTH": str(renderer_config["default_width"]),
                "DEFAULT_HEIGHT": str(renderer_config["default_height"]),
                "CAPTION_TEXT": renderer_config["caption_text"],
                "MAX_PIXELS": str(renderer_config.get("max_pixels", RENDERER_MAX_PIXELS)),
            },
        )

    def _create_api_gateway(self) -> apigw.RestApi:
        """Create API Gateway REST API"""
        api = apigw.RestApi(
            self,
            "RendererApi",
            rest_api_name="Label Renderer API",
            description="Renders a text label onto a PNG image",
            default_cors_preflight_options=apigw.CorsOptions(
                allow_origins=apigw.Cors.ALL_ORIGINS,
                allow_methods=apigw.Cors.ALL_METHODS,
                allow_headers=["Content-Type", "Authorization"],
            ),
        )

        render_resource = api.root.add_resource("render")
        render_resource.add_method(
            "POST",
            apigw.LambdaIntegration(self.renderer_lambda, proxy=True),
        )

        return api
