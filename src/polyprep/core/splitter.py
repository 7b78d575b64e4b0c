"""Decomposition of self-intersecting rings into simple rings.

The input ring is turned into a planar graph: one node per vertex, wired
to its ring neighbours. Crossings are materialized as nodes until no two
edges cross, coincident nodes are collapsed, and the outline is traced by
always taking the rightmost turn. Loops closed inside that trace become
separate rings.

Nodes live in an arena addressed by integer index; connections are index
sets, so rewiring never touches object references and the whole graph is
dropped when the call returns.
"""

import logging

from polyprep.config import ToleranceConfig, get_default_settings
from polyprep.domain import Point, PointRing
from polyprep.domain.primitives import segment_contacts
from polyprep.exceptions import SplitGraphError

logger = logging.getLogger(__name__)


class SplitGraph:
    """Arena of graph nodes for one split call.

    Attributes:
        positions: Node coordinates by index
        connections: Neighbour index sets by index
        active: False once a node has been collapsed into another
    """

    def __init__(self, epsilon: float) -> None:
        self.epsilon = epsilon
        self.positions: list[Point] = []
        self.connections: list[set[int]] = []
        self.active: list[bool] = []

    @classmethod
    def from_ring(cls, ring: PointRing) -> "SplitGraph":
        """One node per vertex, each wired to its ring neighbours."""
        graph = cls(ring.epsilon)
        nodes = [graph.add_node(point) for point in ring]
        for i, node in enumerate(nodes):
            graph.connect(node, nodes[(i + 1) % len(nodes)])
        return graph

    def __len__(self) -> int:
        return len(self.positions)

    @property
    def active_count(self) -> int:
        return sum(self.active)

    def add_node(self, point: Point) -> int:
        """Append a node and return its index."""
        self.positions.append(point)
        self.connections.append(set())
        self.active.append(True)
        return len(self.positions) - 1

    def connect(self, a: int, b: int) -> None:
        if a != b:
            self.connections[a].add(b)
            self.connections[b].add(a)

    def disconnect(self, a: int, b: int) -> None:
        self.connections[a].discard(b)
        self.connections[b].discard(a)

    def find_node(self, point: Point) -> int | None:
        """Index of an active node within epsilon of a point."""
        for index, position in enumerate(self.positions):
            if self.active[index] and position.equals(point, self.epsilon):
                return index
        return None

    def edges(self) -> list[tuple[int, int]]:
        """Undirected edges as (low, high) index pairs."""
        return [
            (a, b)
            for a, neighbours in enumerate(self.connections)
            if self.active[a]
            for b in sorted(neighbours)
            if a < b
        ]

    def split_edge(self, a: int, b: int, node: int) -> None:
        """Reroute edge a-b through node."""
        self.disconnect(a, b)
        self.connect(a, node)
        self.connect(node, b)

    def merge_nodes(self, keep: int, drop: int) -> None:
        """Move every connection of drop onto keep and retire drop."""
        for neighbour in list(self.connections[drop]):
            self.disconnect(drop, neighbour)
            self.connect(keep, neighbour)
        self.active[drop] = False


def is_righter(sin_a: float, cos_a: float, sin_b: float, cos_b: float) -> bool:
    """Check if turn a bends further clockwise than turn b.

    Turns are given as sine and cosine of the angle from the incoming
    direction. Right turns (negative sine) beat straight and left turns;
    among right turns the sharper one wins, among left turns the shallower.
    """
    if sin_a < 0:
        if sin_b >= 0:
            return True
        return cos_a < cos_b
    if sin_b < 0:
        return False
    return cos_a > cos_b


class SelfIntersectionSplitter:
    """Splits a self-intersecting ring into simple rings.

    Example:
        splitter = SelfIntersectionSplitter()
        rings = splitter.split(PointRing([Point(0, 0), Point(4, 4), Point(4, 0), Point(0, 4)]))
        len(rings)  # 2
    """

    def __init__(self, tolerance: ToleranceConfig | None = None) -> None:
        self._tolerance = tolerance if tolerance is not None else get_default_settings().tolerance

    def split(self, ring: PointRing) -> list[PointRing]:
        """Rebuild a ring as one or more simple rings.

        Args:
            ring: Possibly self-intersecting ring

        Returns:
            Simple, anti-clockwise rings covering the ring's outline

        Raises:
            SplitGraphError: If the graph collapses below 3 nodes or the
                outline trace does not close
        """
        if len(ring) < 3:
            raise SplitGraphError(f"ring has only {len(ring)} points")

        graph = SplitGraph.from_ring(ring)
        crossings = self._materialize_crossings(graph)
        self._collapse_duplicates(graph)
        trace = self._trace_outline(graph)
        rings = self._split_loops(graph, trace, ring)

        logger.debug(
            "Split ring of %d points: %d crossings, %d active nodes, %d rings",
            len(ring),
            crossings,
            graph.active_count,
            len(rings),
        )
        return rings

    def _materialize_crossings(self, graph: SplitGraph) -> int:
        """Insert nodes at edge contacts until no two edges touch away from shared nodes."""
        changes = 0
        limit = 4 * len(graph) * len(graph) + 16
        while self._resolve_one_crossing(graph):
            changes += 1
            if changes > limit:
                raise SplitGraphError(f"crossing resolution did not settle after {limit} changes")
        return changes

    def _resolve_one_crossing(self, graph: SplitGraph) -> bool:
        edges = graph.edges()
        eps = graph.epsilon
        positions = graph.positions
        for i, (a, b) in enumerate(edges):
            for c, d in edges[i + 1 :]:
                if len({a, b, c, d}) < 4:
                    continue
                for contact in segment_contacts(positions[a], positions[b], positions[c], positions[d], eps):
                    on_first = self._endpoint_at(graph, contact, a, b)
                    on_second = self._endpoint_at(graph, contact, c, d)
                    if on_first is not None and on_second is not None:
                        # Two distinct nodes on one spot, left to the collapse pass
                        continue
                    if on_first is not None:
                        graph.split_edge(c, d, on_first)
                    elif on_second is not None:
                        graph.split_edge(a, b, on_second)
                    else:
                        node = graph.find_node(contact)
                        if node is None:
                            node = graph.add_node(contact)
                        graph.split_edge(a, b, node)
                        graph.split_edge(c, d, node)
                    return True
        return False

    @staticmethod
    def _endpoint_at(graph: SplitGraph, point: Point, a: int, b: int) -> int | None:
        if graph.positions[a].equals(point, graph.epsilon):
            return a
        if graph.positions[b].equals(point, graph.epsilon):
            return b
        return None

    def _collapse_duplicates(self, graph: SplitGraph) -> None:
        """Merge nodes that sit within epsilon of each other."""
        for keep in range(len(graph)):
            if not graph.active[keep]:
                continue
            for drop in range(keep + 1, len(graph)):
                if graph.active[drop] and graph.positions[keep].equals(
                    graph.positions[drop], graph.epsilon
                ):
                    graph.merge_nodes(keep, drop)
                    if graph.active_count < 3:
                        raise SplitGraphError("collapsing duplicate nodes left fewer than 3 nodes")

        for node in range(len(graph)):
            if graph.active[node] and not graph.connections[node]:
                graph.active[node] = False
        if graph.active_count < 3:
            raise SplitGraphError("fewer than 3 connected nodes remain")

    def _trace_outline(self, graph: SplitGraph) -> list[int]:
        """Walk the outline from the lowest node, always turning rightmost."""
        active = [i for i in range(len(graph)) if graph.active[i]]
        start = min(active, key=lambda i: (graph.positions[i].y, -graph.positions[i].x))

        trace = [start]
        traveled: set[tuple[int, int]] = set()
        previous: int | None = None
        current = start
        direction = Point(1.0, 0.0)
        limit = 4 * len(active)

        while True:
            nxt = self._rightest_connection(graph, current, previous, direction, traveled)
            traveled.add((min(current, nxt), max(current, nxt)))
            if nxt == start:
                break
            trace.append(nxt)
            if len(trace) > limit:
                raise SplitGraphError(f"outline trace exceeded {limit} steps")
            direction = (graph.positions[nxt] - graph.positions[current]).normalized()
            previous, current = current, nxt

        return trace

    def _rightest_connection(
        self,
        graph: SplitGraph,
        node: int,
        previous: int | None,
        direction: Point,
        traveled: set[tuple[int, int]],
    ) -> int:
        connections = graph.connections[node]
        if not connections:
            raise SplitGraphError(f"node {node} has no connections")

        candidates = [n for n in connections if n != previous]
        if not candidates:
            # Dead end: walk back the way we came
            return next(iter(connections))
        untraveled = [n for n in candidates if (min(node, n), max(node, n)) not in traveled]
        if untraveled:
            candidates = untraveled

        origin = graph.positions[node]
        best = -1
        best_sin = 0.0
        best_cos = 0.0
        for candidate in sorted(candidates):
            heading = (graph.positions[candidate] - origin).normalized()
            sin_a = direction.cross(heading)
            cos_a = direction.dot(heading)
            if best < 0 or is_righter(sin_a, cos_a, best_sin, best_cos):
                best, best_sin, best_cos = candidate, sin_a, cos_a
        return best

    def _split_loops(self, graph: SplitGraph, trace: list[int], source: PointRing) -> list[PointRing]:
        """Cut the trace into rings wherever it revisits a node."""
        loops: list[list[int]] = []
        stack: list[int] = []
        for node in trace:
            if node in stack:
                first = stack.index(node)
                loops.append(stack[first:])
                del stack[first + 1 :]
            else:
                stack.append(node)
        loops.append(stack)

        rings: list[PointRing] = []
        for loop in loops:
            if len(loop) < 3:
                continue
            ring = PointRing([graph.positions[i] for i in loop], tolerance=self._tolerance)
            ring.simplify()
            if len(ring) < 3 or ring.area() < source.epsilon:
                continue
            rings.append(ring)
        return rings
