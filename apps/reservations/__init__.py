"""Reservations app package.

This app owns the booking life cycle: the ledger that grants a scooter
to exactly one open booking, the booking state machine and the timed
expiry of requests nobody answered.
"""
