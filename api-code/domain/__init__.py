from .deploy_states import DeploymentStage, DeploymentState, is_valid_transition
from .environments import EnvironmentCheck, EnvironmentVerdict, classify_environment, is_protected

__all__ = [
    "DeploymentStage",
    "DeploymentState",
    "is_valid_transition",
    "EnvironmentCheck",
    "EnvironmentVerdict",
    "classify_environment",
    "is_protected",
]
