"""Graph algorithms over plug connection graphs."""

from collections import defaultdict, deque
from collections.abc import Collection, Hashable, Mapping


def find_blocked_nodes[T: Hashable](successors: Mapping[T, Collection[T]]) -> frozenset[T]:
    """Return the nodes that lie on a cycle or downstream of one.

    These are exactly the nodes Kahn's topological sort can never release.

    Args:
        successors: Mapping from node to collection of nodes it drives.
            An edge (a -> b) means "b is driven by a".

    Example:
        >>> sorted(find_blocked_nodes({"a": ["b"], "b": ["a", "c"], "c": [], "d": ["c"]}))
        ['a', 'b', 'c']

    """
    # Calculate in-degree for each node
    indegree: defaultdict[T, int] = defaultdict(int)
    for node, deps in successors.items():
        indegree[node] = indegree.get(node, 0)
        for dep in deps:
            indegree[dep] += 1

    # Start with nodes that have no predecessors (in-degree 0)
    queue = deque([node for node, deg in indegree.items() if deg == 0])
    released: set[T] = set()

    while queue:
        node = queue.popleft()
        released.add(node)
        for successor in successors.get(node, []):
            indegree[successor] -= 1
            if indegree[successor] == 0:
                queue.append(successor)

    return frozenset(n for n in indegree if n not in released)
