"""
Package exports
"""

# Local
from . import config, notifications
from .cloud_manager import PlatformManager, SystemMode, SystemNamespace, SystemType
from .deploy_manager import (
    DeployManagerBase,
    DryRunDeployManager,
    OpenshiftDeployManager,
)
from .exceptions import (
    ClientError,
    CloudManagerError,
    ClusterError,
    ConfigError,
    PlatformError,
    WaitForMonitor,
)
from .monitor import (
    ConditionMonitor,
    HostStateMonitor,
    Monitor,
    MonitorState,
    build_monitor_key,
)
from .platform_client import PlatformClient, build_platform_client
from .reconcile import (
    Controller,
    ReconcileOutcome,
    ReconcileResult,
    RequeueParams,
    safe_reconcile,
)
