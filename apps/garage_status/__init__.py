"""Garage status app package.

Decides, at any instant, whether a garage accepts new bookings by
combining the admin-set manual status, the weekly operating schedule and
time-boxed temporary overrides. Reads are a pure derivation over stored
rows; writes are validated admin commands that run in a single
transaction per garage.
"""
