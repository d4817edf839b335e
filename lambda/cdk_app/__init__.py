"""CDK app package for the Kinesis stream, producer and consumer stacks."""

from .consumer_stack import ConsumerStack
from .producer_stack import ProducerStack
from .stream_stack import StreamStack

__all__ = ['ConsumerStack', 'ProducerStack', 'StreamStack']
