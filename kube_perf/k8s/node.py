import logging

from kube_perf.k8s.exceptions import EmptySelection, InsufficientNodes

log = logging.getLogger(__name__)


def parse_allow_list(allow_list):
    """
    Args:
        allow_list (str or list): Comma separated node names, or a list

    Returns:
        list: Node names, blanks removed
    """
    if not allow_list:
        return []
    if isinstance(allow_list, str):
        allow_list = allow_list.split(",")
    return [name.strip() for name in allow_list if name and name.strip()]


def select_nodes(inventory, allow_list="", minimum=1):
    """
    Filter the node inventory down to the nodes the benchmark runs on.

    Args:
        inventory (list): Node names of the cluster
        allow_list (str or list): Comma separated node names, empty for all
            nodes
        minimum (int): Number of nodes the caller requires

    Returns:
        list: inventory intersected with the allow-list, in inventory order

    Raises:
        EmptySelection: The selection is empty and at least one node is
            required
        InsufficientNodes: Fewer than `minimum` (> 1) nodes were selected

    """
    allowed = parse_allow_list(allow_list)
    if allowed:
        allowed_set = set(allowed)
        selected = [node for node in inventory if node in allowed_set]
        unknown = [node for node in allowed if node not in set(inventory)]
        if unknown:
            log.warning(f"Nodes {unknown} from the allow-list are not in the cluster")
    else:
        selected = list(inventory)
    if not selected and minimum >= 1:
        raise EmptySelection(",".join(allowed))
    if len(selected) < minimum:
        raise InsufficientNodes(minimum, len(selected))
    return selected


def get_node_set(gateway, allow_list="", minimum=1):
    """
    List the cluster nodes and select the working set of the run

    Args:
        gateway (ClusterGateway): The cluster
        allow_list (str or list): Comma separated node names
        minimum (int): Number of nodes the caller requires

    Returns:
        list: Selected node names

    """
    inventory = gateway.list_nodes()
    log.info("Nodes:\n" + "\n".join(inventory))
    selected = select_nodes(inventory, allow_list, minimum)
    log.info(f"Selected {len(selected)} node(s): {', '.join(selected)}")
    return selected
