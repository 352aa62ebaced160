"""
Topic names shared by every agent on the bus.
"""

ROUTE_REQUEST = "route.request"                     # external → signal agent
ROUTE_PATH = "route.path"                           # signal agent → vehicle, volume, UI
ROUTE_INTERSECTIONS = "route.intersections.batch"   # signal agent → volume, UI
VEHICLE_INIT = "vehicle.init"                       # signal agent → vehicle
VEHICLE_SPEED = "vehicle.speedOverride"             # signal agent → vehicle
VEHICLE_TELEMETRY = "vehicle.telemetry"             # vehicle → signal agent, UI
SIGNAL_STATE = "signal.state"                       # signal agent → UI, volume
VOLUME_DATA = "volume.data"                         # volume agent → signal agent
CONFIG_PREEMPTION = "config.preemption"             # external → signal agent
CONFIG_TRAFFIC = "config.traffic"                   # external → volume agent
ERROR = "error"                                     # signal agent → external

ALL_TOPICS = (
    ROUTE_REQUEST,
    ROUTE_PATH,
    ROUTE_INTERSECTIONS,
    VEHICLE_INIT,
    VEHICLE_SPEED,
    VEHICLE_TELEMETRY,
    SIGNAL_STATE,
    VOLUME_DATA,
    CONFIG_PREEMPTION,
    CONFIG_TRAFFIC,
    ERROR,
)
