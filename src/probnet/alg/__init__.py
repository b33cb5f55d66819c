from .structure import (sort_topologically, sort_variables_topologically,
    remove_barren_nodes, remove_unreachable_nodes, get_pruned, project_evidence,
    get_evidence_nodes, get_nodes_and_ancestors, get_node_ancestors)
from .convert import convert_numerical_variables_to_finite_states
from .decisions import (get_parentless_decisions, get_decision_sequence,
    has_predecessor_decision, get_predecessor_decisions, add_no_forgetting_arcs,
    get_informational_predecessors, get_always_observed_variables,
    get_observable_variables, get_never_observed_variables, has_structural_asymmetry,
    has_order_asymmetry, get_unrestricted_states)
