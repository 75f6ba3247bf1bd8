"""Syntax tree abstraction and front ends."""

from eagerlint.tree.nodes import LOOP_KINDS, NODE_SLOTS, Node, NodeKind, iter_nodes, make

__all__ = ["LOOP_KINDS", "NODE_SLOTS", "Node", "NodeKind", "iter_nodes", "make"]
