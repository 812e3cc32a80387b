"""
Startup-time flame graphs from nested component start intervals
"""

# These imports allow users to simply import startupflame instead of manually
# importing each submodule
from .events import IntervalRecord  # NOQA
from .collector import collect_intervals  # NOQA
from .stacker import IntervalStacker, write_flame_stacks  # NOQA
from .formatter import format_stack  # NOQA
from .recording import RawEvent, read_recording, write_event  # NOQA
from .recorder import ComponentState, StartupRecorder  # NOQA
from .config import FlameConfig, load_config  # NOQA
from .errors import ConfigurationError, ConfigurationFileError, RecordingError  # NOQA
