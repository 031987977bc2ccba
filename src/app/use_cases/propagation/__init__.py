"""
Propagation Use Cases

Acknowledgement, retry, inspection and background delivery of cookie
directives.
"""

from .acknowledge_propagation_use_case import AcknowledgePropagationUseCase
from .retry_propagation_use_case import RetryPropagationUseCase
from .list_propagation_targets_use_case import ListPropagationTargetsUseCase
from .deliver_propagation_use_case import DeliverPropagationUseCase
from .dtos import (
    AcknowledgeCommand,
    PropagationTargetInfo,
    PropagationTargetListResponse,
)

__all__ = [
    # Use Cases
    "AcknowledgePropagationUseCase",
    "RetryPropagationUseCase",
    "ListPropagationTargetsUseCase",
    "DeliverPropagationUseCase",
    # DTOs
    "AcknowledgeCommand",
    "PropagationTargetInfo",
    "PropagationTargetListResponse",
]
