#!/usr/bin/env python3

from aws_cdk import (
    Stack,
    Duration,
    RemovalPolicy,
    aws_kinesis as kinesis,
    aws_lambda as lambda_,
    aws_lambda_event_sources as sources,
    aws_sqs as sqs,
    aws_ssm as ssm,
    CfnOutput,
)
from constructs import Construct

from stream_functions.config import STREAM_ARN_PARAMETER

from .common import create_logged_function


class ConsumerStack(Stack):
    """
    CDK Stack for the Kinesis-triggered consumer Lambda.

    A record that keeps failing is retried a bounded number of times, then its
    batch metadata goes to an SQS failure queue and the shard moves on.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        environment: str = "dev",
        batch_size: int = 5,
        retry_attempts: int = 3,
        max_record_age: Duration = Duration.days(1),
        arn_parameter: str = STREAM_ARN_PARAMETER,
        **kwargs,
    ) -> None:
        """
        Initialize the Consumer Stack.

        Args:
            scope: CDK scope
            construct_id: Stack identifier
            environment: Environment name (dev/test/prod)
            batch_size: Maximum records per consumer invocation
            retry_attempts: Retries of a failing batch before it is sent to the failure queue
            max_record_age: Records older than this are sent to the failure queue
            arn_parameter: SSM parameter holding the stream ARN
            **kwargs: Additional stack properties
        """
        super().__init__(scope, construct_id, **kwargs)

        stream_arn = ssm.StringParameter.value_for_string_parameter(
            self, arn_parameter
        )
        stream = kinesis.Stream.from_stream_arn(self, "ImportedStream", stream_arn)

        consumer_fn, log_group = create_logged_function(
            self,
            "Consumer",
            function_name=f"consumer-lambda-{environment}",
            handler="stream_functions.consumer.lambda_handler",
            environment={
                "REPORT_BATCH_ITEM_FAILURES": "true",
                "LOG_LEVEL": "INFO",
                "ENVIRONMENT": environment,
            },
        )

        failure_queue = sqs.Queue(
            self,
            "ConsumerFailureQueue",
            queue_name=f"consumer-lambda-failures-{environment}",
            retention_period=Duration.days(14),
            removal_policy=RemovalPolicy.DESTROY,
        )

        # The event source grants the function read access to the stream
        consumer_fn.add_event_source(
            sources.KinesisEventSource(
                stream,
                starting_position=lambda_.StartingPosition.TRIM_HORIZON,
                batch_size=batch_size,
                report_batch_item_failures=True,
                retry_attempts=retry_attempts,
                bisect_batch_on_error=True,
                max_record_age=max_record_age,
                on_failure=sources.SqsDlq(failure_queue),
            )
        )

        CfnOutput(
            self,
            "LambdaFunctionName",
            value=consumer_fn.function_name,
            description="Consumer Lambda function name",
        )

        CfnOutput(
            self,
            "LogGroupName",
            value=log_group.log_group_name,
            description="CloudWatch Log Group name",
        )

        CfnOutput(
            self,
            "FailureQueueUrl",
            value=failure_queue.queue_url,
            description="SQS queue receiving records the consumer gave up on",
        )
