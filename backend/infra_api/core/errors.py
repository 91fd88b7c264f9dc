"""
Domain errors raised by the hierarchy engine and its collaborators.

Each error carries the HTTP status code the API layer answers with, so
routers can let them propagate to the application exception handler.
"""
from typing import List, Optional


class InfraError(Exception):
    """Base error for the infrastructure backend"""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NodeNotFound(InfraError):
    status_code = 404

    def __init__(self, node_id: int):
        super().__init__(f"Hierarchy node {node_id} not found")
        self.node_id = node_id


class InstanceNotFound(InfraError):
    status_code = 404


class InvalidDepth(InfraError):
    status_code = 400

    def __init__(self, depth: int, minimum: int, maximum: int):
        super().__init__(f"Depth must be between {minimum} and {maximum}, got {depth}")
        self.depth = depth


class InvalidInstanceType(InfraError):
    status_code = 400

    def __init__(self, instance_type_id: int):
        super().__init__(f"Instance type {instance_type_id} is not valid")
        self.instance_type_id = instance_type_id


class ValidationFailed(InfraError):
    status_code = 400


class CycleDetected(InfraError):
    status_code = 409

    def __init__(self, node_id: int, visited: Optional[List[int]] = None):
        super().__init__(f"Cycle detected in hierarchy: node {node_id} already visited")
        self.node_id = node_id
        self.visited = list(visited or [])


class DepthExceeded(InfraError):
    status_code = 409

    def __init__(self, node_id: int, max_depth: int):
        super().__init__(
            f"Maximum depth ({max_depth}) exceeded while building tree from node {node_id}"
        )
        self.node_id = node_id
        self.max_depth = max_depth
