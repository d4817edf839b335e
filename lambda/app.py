#!/usr/bin/env python3

"""
AWS CDK Application for the Kinesis Hello pipeline

This CDK app deploys three independent stacks:
- StreamStack: a single-shard Kinesis stream, with its name and ARN
  published to SSM Parameter Store
- ProducerStack: a Lambda putting a "Hello" message on the stream every
  5 minutes (EventBridge schedule)
- ConsumerStack: a Lambda triggered by the stream that decodes and logs
  each record
"""

import os
from aws_cdk import App, Environment, Tags
from cdk_app import ConsumerStack, ProducerStack, StreamStack

# AWS Account and Region
AWS_ACCOUNT = os.environ.get('CDK_DEFAULT_ACCOUNT')
AWS_REGION = os.environ.get('CDK_DEFAULT_REGION', 'us-east-1')

# Environment (dev/test/prod)
ENVIRONMENT = os.environ.get('ENVIRONMENT', 'dev')

STREAM_NAME = os.environ.get('STREAM_NAME', 'MyStream')

app = App()
env = Environment(account=AWS_ACCOUNT, region=AWS_REGION)

stream_stack = StreamStack(
    app,
    "StreamStack",
    stream_name=STREAM_NAME,
    env=env,
    description="Kinesis stream shared by the producer and consumer stacks",
)

producer_stack = ProducerStack(
    app,
    "ProducerStack",
    environment=ENVIRONMENT,
    env=env,
    description=f"Scheduled Kinesis producer Lambda ({ENVIRONMENT})",
)

consumer_stack = ConsumerStack(
    app,
    "ConsumerStack",
    environment=ENVIRONMENT,
    env=env,
    description=f"Kinesis consumer Lambda ({ENVIRONMENT})",
)

# The SSM parameters must exist before the dependent stacks resolve them
producer_stack.add_dependency(stream_stack)
consumer_stack.add_dependency(stream_stack)

# Add tags for all resources
for stack in (stream_stack, producer_stack, consumer_stack):
    Tags.of(stack).add("Environment", ENVIRONMENT)
    Tags.of(stack).add("Project", "KinesisHello")
    Tags.of(stack).add("ManagedBy", "CDK")

app.synth()
