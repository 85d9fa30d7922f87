from .config import AgentToggles, ManagerConfig, config_from_dict, load_config
from .convenience import create_default_registry, create_manager, create_mock_registry, run_tests
from .dispatch import DispatchResult, dispatch_reports
from .exceptions import AgentTimeoutError, ConfigError
from .manager import TestManager
from .policy import execute_with_policy
from .summary import GATING_AGENTS, exit_code, get_summary
