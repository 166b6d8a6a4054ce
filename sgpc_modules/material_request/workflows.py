"""
Material Request Workflow.

PENDENTE -> APROVADA | REJEITADA.  Both targets are terminal.  Line items
may only be edited while the request is PENDENTE.
"""

from sgpc_kernel.domain.workflow import Transition, Workflow

APPROVE = "approve"
REJECT = "reject"
EDIT_ITEMS = "edit_items"

MATERIAL_REQUEST_WORKFLOW = Workflow(
    name="material_request",
    description="Material request approval",
    initial_state="PENDENTE",
    states=("PENDENTE", "APROVADA", "REJEITADA"),
    transitions=(
        Transition("PENDENTE", "APROVADA", action=APPROVE, mutates_stock=True),
        Transition("PENDENTE", "REJEITADA", action=REJECT),
        Transition("PENDENTE", "PENDENTE", action=EDIT_ITEMS),
    ),
    terminal_states=("APROVADA", "REJEITADA"),
)
