from .dto.base import (
    BaseMessage as BaseMessage,
    EventMessage as EventMessage,
)
from .dto.rpc import RpcResponse as RpcResponse
