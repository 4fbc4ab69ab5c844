"""Org hierarchy resolution: rebuild the reporting tree from manager references."""

import logging
from collections.abc import Iterator, Sequence

from orgscope.analysis.models import EmployeeRecord, HierarchyNode

logger = logging.getLogger(__name__)

type NodeIndex = dict[str, int]


def _index_nodes(records: Sequence[EmployeeRecord]) -> tuple[list[HierarchyNode], NodeIndex]:
    """Create one node per identifier, in input order.

    When an identifier repeats, the last record carrying it wins but the
    node keeps the position of the identifier's first appearance, which is
    what root selection and child order see.
    """
    nodes: list[HierarchyNode] = []
    index: NodeIndex = {}
    for position, record in enumerate(records):
        existing = index.get(record.employee_id)
        if existing is None:
            index[record.employee_id] = len(nodes)
            nodes.append(HierarchyNode(record=record))
            continue
        logger.warning(
            "Duplicate employee_id %r: record at position %d replaces the earlier one",
            record.employee_id,
            position,
        )
        nodes[existing] = HierarchyNode(record=record)
    return nodes, index


def _link_edges(nodes: list[HierarchyNode], index: NodeIndex) -> list[int]:
    """Attach every node to its manager and return root candidates in input order."""
    candidates: list[int] = []
    reports: list[list[HierarchyNode]] = [[] for _ in nodes]
    for position, node in enumerate(nodes):
        manager_position = index.get(node.record.manager_id) if node.record.manager_id else None
        if manager_position is None:
            candidates.append(position)
        else:
            reports[manager_position].append(node)

    for node, node_reports in zip(nodes, reports):
        node.children = tuple(node_reports)
    return candidates


def _assign_layers(root: HierarchyNode) -> int:
    """Set each reachable node's layer to its depth below the root.

    Iterative so that arbitrarily deep chains cannot exhaust the call stack.
    Returns the number of nodes reached.
    """
    root.layer = 0
    reached = 0
    stack = [root]
    while stack:
        node = stack.pop()
        reached += 1
        for child in node.children:
            child.layer = node.layer + 1
            stack.append(child)
    return reached


def build_org_tree(records: Sequence[EmployeeRecord]) -> HierarchyNode | None:
    """Reconstruct a single-root reporting tree from flat records.

    A record whose manager reference is absent or does not resolve is a root
    candidate. The first candidate in input order becomes the root; every
    other candidate, together with anything reporting up to it, is left out
    of the tree. Manager cycles never contain the root, so cycle members are
    simply unreachable.
    """
    if not records:
        return None

    nodes, index = _index_nodes(records)
    candidates = _link_edges(nodes, index)
    if not candidates:
        # Every node sits on a manager cycle
        logger.warning("No root candidate among %d employees; every record is on a cycle", len(nodes))
        return None

    root = nodes[candidates[0]]
    reached = _assign_layers(root)

    if len(candidates) > 1:
        logger.warning(
            "Found %d root candidates; using %r as root and excluding the rest",
            len(candidates),
            root.employee_id,
        )
        logger.debug(
            "Excluded root candidates: %s",
            [nodes[c].employee_id for c in candidates[1:]],
        )
    if reached < len(nodes):
        logger.info("%d of %d employees are unreachable from the root", len(nodes) - reached, len(nodes))

    logger.info("Built org tree rooted at %r: %d nodes", root.employee_id, reached)
    return root


def walk_tree(root: HierarchyNode | None) -> Iterator[HierarchyNode]:
    """Yield every node of the tree in pre-order, children in input order."""
    if root is None:
        return
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def reachable_records(root: HierarchyNode | None) -> list[EmployeeRecord]:
    return [node.record for node in walk_tree(root)]


def excluded_ids(records: Sequence[EmployeeRecord], root: HierarchyNode | None) -> list[str]:
    """Identifiers present in the input but absent from the tree, in input order."""
    in_tree = {node.employee_id for node in walk_tree(root)}
    seen: set[str] = set()
    excluded = []
    for record in records:
        if record.employee_id not in in_tree and record.employee_id not in seen:
            excluded.append(record.employee_id)
            seen.add(record.employee_id)
    return excluded


def is_manager(node: HierarchyNode) -> bool:
    """A position manages when at least one other record reports to it."""
    return node.direct_reports > 0
