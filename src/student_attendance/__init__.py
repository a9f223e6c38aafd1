"""Student Attendance package.

This package is organized by feature modules (users, auth, attendance, reports)
with a thin Flask controller layer over service/repository layers that talk to
an abstract document store.
"""
