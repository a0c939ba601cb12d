"""Domain enumerations, error codes and state-transition rules."""

import enum


class TripStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    DISPUTED = "disputed"


# State machine: maps current status -> set of valid next statuses
TRIP_TRANSITIONS: dict[TripStatus, set[TripStatus]] = {
    TripStatus.PENDING: {TripStatus.VERIFIED, TripStatus.DISPUTED},
    TripStatus.VERIFIED: set(),
    TripStatus.DISPUTED: set(),
}


class ErrorCode(enum.IntEnum):
    NOT_AUTHORIZED = 100
    INVALID_DRIVER = 102
    INVALID_PASSENGERS = 103
    INVALID_GPS_DATA = 105
    INVALID_DISTANCE = 106
    INVALID_CONGESTION = 107
    TRIP_ALREADY_VERIFIED = 108
    TRIP_NOT_FOUND = 109
    INVALID_CONFIRMATIONS = 110
    INVALID_REWARD = 111
    ORACLE_NOT_TRUSTED = 112
    DISPUTE_ALREADY_RAISED = 113
    INVALID_DISPUTE_REASON = 114
    INVALID_PARAMETER = 115
    INVALID_STATUS = 117
    INVALID_TIMESTAMP = 118
    MAX_TRIPS_EXCEEDED = 119
    ALREADY_CONFIRMED = 120
    INVALID_ROUTE = 121
