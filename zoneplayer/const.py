"""Constants used throughout the package."""

DEFAULT_PORT = 1400
DEFAULT_TIMEOUT = 15
MIN_TIMEOUT = 1
MAX_TIMEOUT = 60

DESCRIPTION_PATH = "/xml/device_description.xml"

# Operating modes
MODE_DAEMON = "daemon"
MODE_SERVICE = "service"

# Lifecycle states
STATE_STARTING = "starting"
STATE_LISTENING = "listening"
STATE_RUNNING = "running"
STATE_SHUTTING_DOWN = "shutting-down"
STATE_TERMINATED = "terminated"

# Dispatcher events
EVENT_LISTENER_LISTENING = "listener_listening"
EVENT_LISTENER_ERROR = "listener_error"
EVENT_LISTENER_NOTIFY = "listener_notify"
EVENT_CLIENT_EVENT = "client_event"
EVENT_CLIENT_ERROR = "client_error"
EVENT_SIGNAL = "signal"

# UPnP eventing
METH_SUBSCRIBE = "SUBSCRIBE"
METH_UNSUBSCRIBE = "UNSUBSCRIBE"
METH_NOTIFY = "NOTIFY"
NT_EVENT = "upnp:event"
DEFAULT_SUBSCRIPTION_TIMEOUT = 1800
RENEW_FACTOR = 0.8

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
