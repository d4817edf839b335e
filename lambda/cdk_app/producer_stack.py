#!/usr/bin/env python3

from aws_cdk import (
    Stack,
    Duration,
    RemovalPolicy,
    aws_events as events,
    aws_events_targets as targets,
    aws_kinesis as kinesis,
    aws_ssm as ssm,
    CfnOutput,
)
from constructs import Construct

from stream_functions.config import (
    DEFAULT_MESSAGE_TEXT,
    DEFAULT_PARTITION_KEY,
    STREAM_ARN_PARAMETER,
    STREAM_NAME_PARAMETER,
)

from .common import create_logged_function


class ProducerStack(Stack):
    """CDK Stack for the scheduled producer Lambda."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        environment: str = "dev",
        schedule_minutes: int = 5,
        partition_key: str = DEFAULT_PARTITION_KEY,
        message_text: str = DEFAULT_MESSAGE_TEXT,
        name_parameter: str = STREAM_NAME_PARAMETER,
        arn_parameter: str = STREAM_ARN_PARAMETER,
        **kwargs,
    ) -> None:
        """
        Initialize the Producer Stack.

        Args:
            scope: CDK scope
            construct_id: Stack identifier
            environment: Environment name (dev/test/prod)
            schedule_minutes: Minutes between producer invocations
            partition_key: Partition key of every produced record
            message_text: Payload of every produced message
            name_parameter: SSM parameter holding the stream name
            arn_parameter: SSM parameter holding the stream ARN
            **kwargs: Additional stack properties
        """
        super().__init__(scope, construct_id, **kwargs)

        stream_name = ssm.StringParameter.value_for_string_parameter(
            self, name_parameter
        )
        stream_arn = ssm.StringParameter.value_for_string_parameter(
            self, arn_parameter
        )
        stream = kinesis.Stream.from_stream_arn(self, "ImportedStream", stream_arn)

        producer_fn, log_group = create_logged_function(
            self,
            "Producer",
            function_name=f"producer-lambda-{environment}",
            handler="stream_functions.producer.lambda_handler",
            environment={
                "STREAM_NAME": stream_name,
                "PARTITION_KEY": partition_key,
                "MESSAGE_TEXT": message_text,
                "LOG_LEVEL": "INFO",
                "ENVIRONMENT": environment,
            },
        )

        stream.grant_write(producer_fn)

        schedule_rule = events.Rule(
            self,
            "ScheduleProducer",
            description=f"Triggers the producer Lambda every {schedule_minutes} minutes ({environment})",
            schedule=events.Schedule.rate(Duration.minutes(schedule_minutes)),
            targets=[targets.LambdaFunction(producer_fn)],
        )
        schedule_rule.apply_removal_policy(RemovalPolicy.DESTROY)

        CfnOutput(
            self,
            "LambdaFunctionName",
            value=producer_fn.function_name,
            description="Producer Lambda function name",
        )

        CfnOutput(
            self,
            "ScheduleRuleName",
            value=schedule_rule.rule_name,
            description="EventBridge schedule rule name",
        )

        CfnOutput(
            self,
            "LogGroupName",
            value=log_group.log_group_name,
            description="CloudWatch Log Group name",
        )
