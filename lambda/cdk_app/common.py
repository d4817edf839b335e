"""Constructs shared by the producer and consumer stacks."""

import os
from typing import Dict, Tuple

from aws_cdk import (
    RemovalPolicy,
    Stack,
    aws_iam as iam,
    aws_lambda as lambda_,
    aws_logs as logs,
)

# Directory holding the stream_functions package shipped as the Lambda asset
LAMBDA_SOURCE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

ASSET_EXCLUDES = [
    "cdk_app",
    "app.py",
    "cdk.json",
    "cdk.out",
    "**/__pycache__",
    "*.pyc",
]


def create_logged_function(
    stack: Stack,
    construct_prefix: str,
    function_name: str,
    handler: str,
    environment: Dict[str, str],
) -> Tuple[lambda_.Function, logs.LogGroup]:
    """
    Create a Python Lambda function with its own one-week log group.

    Args:
        stack: Stack the constructs belong to
        construct_prefix: Prefix for construct ids, e.g. "Producer"
        function_name: Physical function name
        handler: Dotted handler path inside the asset
        environment: Function environment variables

    Returns:
        The function and its log group
    """
    log_group_name = f"/aws/lambda/{function_name}"

    log_group = logs.LogGroup(
        stack,
        f"{construct_prefix}LogGroup",
        log_group_name=log_group_name,
        retention=logs.RetentionDays.ONE_WEEK,
        removal_policy=RemovalPolicy.DESTROY,
    )

    function = lambda_.Function(
        stack,
        f"{construct_prefix}Lambda",
        function_name=function_name,
        runtime=lambda_.Runtime.PYTHON_3_11,
        handler=handler,
        code=lambda_.Code.from_asset(LAMBDA_SOURCE_DIR, exclude=ASSET_EXCLUDES),
        environment=environment,
        log_group=log_group,
    )
    function.apply_removal_policy(RemovalPolicy.DESTROY)
    function.role.apply_removal_policy(RemovalPolicy.DESTROY)

    logs.LogStream(
        stack,
        f"{construct_prefix}LogStream",
        log_group=log_group,
        log_stream_name=f"{function_name}-stream",
        removal_policy=RemovalPolicy.DESTROY,
    )

    # Explicit CloudWatch Logs permissions scoped to the function's group
    function.add_to_role_policy(
        iam.PolicyStatement(
            effect=iam.Effect.ALLOW,
            actions=[
                "logs:CreateLogGroup",
                "logs:CreateLogStream",
                "logs:PutLogEvents",
                "logs:DescribeLogStreams",
            ],
            resources=[
                f"arn:aws:logs:{stack.region}:{stack.account}:log-group:{log_group_name}:*",
                f"arn:aws:logs:{stack.region}:{stack.account}:log-group:{log_group_name}:log-stream:*",
            ],
        )
    )

    return function, log_group
