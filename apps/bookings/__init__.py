"""Bookings app package.

A thin view of garage bookings: the booking record, the active booking
count consulted before a garage is closed, and the admission check that
refuses new bookings while a garage is not open. The booking lifecycle
itself is managed elsewhere.
"""
