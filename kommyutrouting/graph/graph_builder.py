from typing import Dict, Iterable, List, Optional, Tuple

import networkx as nx


def stop_node(stop_id: str) -> Tuple[str, str]:
    return ('stop', stop_id)


def route_node(route_id: str) -> Tuple[str, str]:
    return ('route', route_id)


def build_route_stop_graph(route_ids: Iterable[str], trip_routes: Dict[str, str],
                           trip_patterns: Dict[str, List[str]], logger) -> nx.Graph:
    """Build the bipartite route/stop graph used for connectivity queries.

    A route node links to every stop any of its trips serves. Each route node
    keeps its load ``order`` and the distinct ordered stop ``patterns`` of its
    trips as ``(trip_id, [stop_id, ...])`` so direction can be checked later.
    """
    graph = nx.Graph()
    for order, route_id in enumerate(route_ids):
        graph.add_node(route_node(route_id), kind='route', order=order, patterns=[])

    edges = 0
    for trip_id, stop_ids in trip_patterns.items():
        route_id = trip_routes.get(trip_id)
        if route_id is None:
            logger.warning(f"Trip {trip_id} not found in trips")
            continue
        rnode = route_node(route_id)
        if rnode not in graph:
            logger.warning(f"Route {route_id} not found for trip {trip_id}")
            continue

        patterns = graph.nodes[rnode]['patterns']
        if all(existing != stop_ids for _, existing in patterns):
            patterns.append((trip_id, list(stop_ids)))

        for stop_id in stop_ids:
            snode = stop_node(stop_id)
            if snode not in graph:
                graph.add_node(snode, kind='stop')
            if not graph.has_edge(rnode, snode):
                graph.add_edge(rnode, snode)
                edges += 1

    logger.debug(f"Route/stop graph: {graph.number_of_nodes()} nodes, {edges} edges")
    return graph


def connecting_route_ids(graph: nx.Graph, from_stop_id: str, to_stop_id: str) -> List[str]:
    """Routes adjacent to both stops, in route load order"""
    a, b = stop_node(from_stop_id), stop_node(to_stop_id)
    if a not in graph or b not in graph:
        return []
    if a == b:
        shared = set(graph.neighbors(a))
    else:
        shared = set(nx.common_neighbors(graph, a, b))
    return [node[1] for node in sorted(shared, key=lambda n: graph.nodes[n]['order'])]


def pattern_serves_in_order(stop_ids: List[str], from_stop_id: str, to_stop_id: str) -> bool:
    """True when ``from_stop_id`` is visited before some later visit of ``to_stop_id``"""
    try:
        first = stop_ids.index(from_stop_id)
    except ValueError:
        return False
    return to_stop_id in stop_ids[first + 1:]


def representative_trip_id(graph: nx.Graph, route_id: str, from_stop_id: str, to_stop_id: str,
                           enforce_order: bool = False) -> Optional[str]:
    """First trip of the route covering both stops (in travel order when enforced)"""
    patterns = graph.nodes[route_node(route_id)]['patterns']
    for trip_id, stop_ids in patterns:
        if enforce_order:
            if pattern_serves_in_order(stop_ids, from_stop_id, to_stop_id):
                return trip_id
        elif from_stop_id in stop_ids and to_stop_id in stop_ids:
            return trip_id
    return None
