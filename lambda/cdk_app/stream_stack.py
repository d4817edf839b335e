#!/usr/bin/env python3

from aws_cdk import (
    Stack,
    RemovalPolicy,
    aws_kinesis as kinesis,
    aws_ssm as ssm,
    CfnOutput,
)
from constructs import Construct

from stream_functions.config import STREAM_ARN_PARAMETER, STREAM_NAME_PARAMETER


class StreamStack(Stack):
    """CDK Stack owning the Kinesis stream and its parameter store entries."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        stream_name: str = "MyStream",
        shard_count: int = 1,
        name_parameter: str = STREAM_NAME_PARAMETER,
        arn_parameter: str = STREAM_ARN_PARAMETER,
        **kwargs,
    ) -> None:
        """
        Initialize the Stream Stack.

        Args:
            scope: CDK scope
            construct_id: Stack identifier
            stream_name: Kinesis stream name
            shard_count: Number of provisioned shards
            name_parameter: SSM parameter receiving the stream name
            arn_parameter: SSM parameter receiving the stream ARN
            **kwargs: Additional stack properties
        """
        super().__init__(scope, construct_id, **kwargs)

        self.stream = kinesis.Stream(
            self,
            "KinesisStream",
            stream_name=stream_name,
            shard_count=shard_count,
            removal_policy=RemovalPolicy.DESTROY,
        )

        # Published for the producer and consumer stacks, which deploy separately
        ssm.StringParameter(
            self,
            "StreamName",
            parameter_name=name_parameter,
            string_value=self.stream.stream_name,
            data_type=ssm.ParameterDataType.TEXT,
        )

        ssm.StringParameter(
            self,
            "StreamArn",
            parameter_name=arn_parameter,
            string_value=self.stream.stream_arn,
            data_type=ssm.ParameterDataType.TEXT,
        )

        CfnOutput(
            self,
            "StreamNameOutput",
            value=self.stream.stream_name,
            description="Kinesis stream name",
        )

        CfnOutput(
            self,
            "StreamArnOutput",
            value=self.stream.stream_arn,
            description="Kinesis stream ARN",
        )
