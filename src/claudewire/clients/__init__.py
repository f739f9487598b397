"""Transport backends: direct HTTPS and AWS Bedrock."""

from claudewire.clients.base import Backend, ClientConfig
from claudewire.clients.bedrock import BedrockBackend, BedrockConfig
from claudewire.clients.native import NativeBackend, NativeConfig
from claudewire.clients.retry import RetryExecutor

__all__ = [
    "Backend",
    "BedrockBackend",
    "BedrockConfig",
    "ClientConfig",
    "NativeBackend",
    "NativeConfig",
    "RetryExecutor",
]
