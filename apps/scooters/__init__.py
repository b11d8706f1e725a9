"""Scooters app package.

Listings, the owner-defined weekly availability calendar and the matcher
that decides which scooters can be bid on for a requested window. Featured
listings are purchased here as well.
"""
