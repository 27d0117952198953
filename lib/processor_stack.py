"""
Processor Stack - Image processor with S3 upload trigger

This stack creates:
- S3 bucket for uploads and processed descriptors
- Image processor (event dispatcher) Lambda function
- S3 event notification for objects created under uploads/
- API Gateway REST API (POST /process) for direct text requests
"""

from aws_cdk import (
    Stack,
    Duration,
    RemovalPolicy,
    aws_s3 as s3,
    aws_lambda as lambda_,
    aws_apigateway as apigw,
    aws_s3_notifications as s3n,
    aws_logs as logs,
    CfnOutput,
)
from constructs import Construct
import json

from config.constants import (
    PROCESSED_PREFIX,
    PROCESSING_DELAY_SECONDS,
    PROCESSOR_FUNCTION_LABEL,
    UPLOAD_BUCKET_NAME,
    UPLOAD_PREFIX,
)


class ProcessorStack(Stack):
    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Load configuration
        config = self._load_config()

        # Create S3 bucket for uploads and processed output
        self.upload_bucket = s3.Bucket(
            self,
            "UploadBucket",
            bucket_name=config["buckets"]["upload_bucket"],
            removal_policy=RemovalPolicy.DESTROY,
            auto_delete_objects=True,
            versioned=False,
        )

        # Create Image Processor Lambda
        self.processor_lambda = self._create_processor_lambda(config)

        # Processor only writes descriptors, it never reads uploads
        self.upload_bucket.grant_put(self.processor_lambda)

        # Add S3 event notification for new uploads
        self._setup_s3_trigger(config)

        # Create API Gateway
        self.api = self._create_api_gateway()

        CfnOutput(
            self,
            "UploadBucketName",
            value=self.upload_bucket.bucket_name,
            description=f"Upload images under {config['processor']['upload_prefix']}",
        )
        CfnOutput(
            self,
            "ProcessEndpoint",
            value=f"{self.api.url}process",
            description="POST endpoint for text processing requests",
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
                "buckets": {
                    "upload_bucket": UPLOAD_BUCKET_NAME,
                },
                "processor": {
                    "function_label": PROCESSOR_FUNCTION_LABEL,
                    "upload_prefix": UPLOAD_PREFIX,
                    "processed_prefix": PROCESSED_PREFIX,
                    "processing_delay_seconds": PROCESSING_DELAY_SECONDS,
                },
            }

    def _create_processor_lambda(self, config: dict) -> lambda_.Function:
        """Create Image Processor Lambda"""
        processor_config = config["processor"]

        shared_layer = lambda_.LayerVersion(
            self,
            "ProcessorSharedLayer",
            code=lambda_.Code.from_asset("lambda/shared"),
            compatible_runtimes=[lambda_.Runtime.PYTHON_3_11],
            description="Shared event classification and response helpers",
        )

        return lambda_.Function(
            self,
            "ImageProcessorFunction",
            runtime=lambda_.Runtime.PYTHON_3_11,
            handler="index.handler",
            code=lambda_.Code.from_asset("lambda/processor/event_dispatcher"),
            layers=[shared_layer],
            timeout=Duration.seconds(30),
            memory_size=256,
            log_retention=logs.RetentionDays.THREE_DAYS,  # Auto-delete logs after 3 days
            environment={
                "REGION": self.region,
                "FUNCTION_LABEL": processor_config["function_label"],
                "UPLOAD_PREFIX": processor_config["upload_prefix"],
                "PROCESSED_PREFIX": processor_config["processed_prefix"],
                "PROCESSING_DELAY_SECONDS": str(
                    processor_config["processing_delay_seconds"]
                ),
            },
        )

    def _setup_s3_trigger(self, config: dict):
        """Invoke the processor for objects created under the upload prefix"""
        # Filtering on the prefix keeps processed/ writes from re-triggering
        self.upload_bucket.add_event_notification(
            s3.EventType.OBJECT_CREATED,
            s3n.LambdaDestination(self.processor_lambda),
            s3.NotificationKeyFilter(prefix=config["processor"]["upload_prefix"]),
        )

    def _create_api_gateway(self) -> apigw.RestApi:
        """Create API Gateway REST API"""
        api = apigw.RestApi(
            self,
            "ProcessorApi",
            rest_api_name="Image Processor API",
            description="Direct text processing requests for the image processor",
            default_cors_preflight_options=apigw.CorsOptions(
                allow_origins=apigw.Cors.ALL_ORIGINS,
                allow_methods=apigw.Cors.ALL_METHODS,
                allow_headers=["Content-Type", "Authorization"],
            ),
        )

        process_resource = api.root.add_resource("process")
        process_resource.add_method(
            "POST",
            apigw.LambdaIntegration(self.processor_lambda, proxy=True),
        )

        return api
