"""Absence Booking package.

This package is organized by feature modules (absences, users, notifications)
with a thin Flask controller layer and service/repository layers. Booking runs
inside one serializable unit of work so no user ever holds two overlapping
pending/approved absences.
"""
