"""Attendance engine package.

Feature modules (attendance, classes, geofence, users) hold frozen-dataclass
models, repository protocols with MySQL implementations and the services that
enforce the check-in/check-out rules. Flask controllers stay thin.
"""
