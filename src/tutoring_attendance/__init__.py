"""Tutoring-center attendance package.

Organized by feature modules (users, groups, lessons, attendance, reports, ...)
with a thin Flask controller layer over service/repository layers.
"""
