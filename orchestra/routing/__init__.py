"""Routing module."""

from .router import ROUTER_INSTRUCTION, RouteDecision, Router

__all__ = ["ROUTER_INSTRUCTION", "RouteDecision", "Router"]
