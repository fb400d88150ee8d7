"""Layer navigation, power sequencing and the panel session that ties them together."""

from .bridge import AutomationStatus, ExternalAutomationBridge, component_name_for_page
from .controller import LayerChange, NavigationStateMachine
from .layers import LAYER_CONFIGS, LayerConfig, MainLayer
from .policy import DEFAULT_TRANSITIONS, TransitionPolicy
from .rules import DEFAULT_RULES, LayerAction, RoutingSubLayerRules, SubLayerRule
from .sequencer import ProgressSequencer, SequencerState
from .session import PanelSession, create_panel, current_panel
from .visibility import LayerVisibilityApplier

__all__ = [
    "AutomationStatus",
    "DEFAULT_RULES",
    "DEFAULT_TRANSITIONS",
    "ExternalAutomationBridge",
    "LAYER_CONFIGS",
    "LayerAction",
    "LayerChange",
    "LayerConfig",
    "LayerVisibilityApplier",
    "MainLayer",
    "NavigationStateMachine",
    "PanelSession",
    "ProgressSequencer",
    "RoutingSubLayerRules",
    "SequencerState",
    "SubLayerRule",
    "TransitionPolicy",
    "component_name_for_page",
    "create_panel",
    "current_panel",
]
