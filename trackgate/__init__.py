from .config import Settings, load_settings
from .jobs import ReportQueue
from .logs import setup_logging
from .models import Configuration, DeviceInfo, ReportKind, ReportResult, ReportTask, VariableScope
from .reporter import (
    ActiveReporter,
    ConfigurationError,
    Dispatcher,
    NullReporter,
    Reporter,
    configure,
    get_active,
    set_enabled,
    shutdown,
)
from .store import FileFlagStore, MemoryFlagStore, RedisFlagStore, build_store
from .tracker import HttpTracker, LoggingTracker, build_tracker

__version__ = "0.1.0"
