DOMAIN = "temp_group"

##### model constants

# TempGroupData keys, as written to storage
EXPIRY_TIME = "ExpiryTime"
ORIGINAL_GROUP = "OriginalGroup"

# duration unit -> seconds
DURATION_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


##### service constants
SERVICE_TEMPGROUP = "tempgroup"
SERVICE_TEMPGROUP_ALIAS = "ptempgroup"
SERVICE_CANCEL_TEMPGROUP = "cancel_tempgroup"

ATTR_SUBJECT = "subject"
ATTR_GROUP = "group"
ATTR_DURATION = "duration"
ATTR_REVERT = "revert"


##### event constants
EVENT_TEMP_GROUP_SET = f"{DOMAIN}_set"
EVENT_TEMP_GROUP_REVERTED = f"{DOMAIN}_reverted"
EVENT_TEMP_GROUP_CANCELLED = f"{DOMAIN}_cancelled"


##### HA constants
SENSOR = "sensor"
STORAGE_KEY = f"{DOMAIN}.timers"
STORAGE_VERSION = 1
